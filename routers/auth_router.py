from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session
from starlette import status

from auth.auth_bearer import get_current_user, get_current_admin, get_current_manager
from db.database import get_db
from db.models import User
from middleware.rate_limiter import auth_limiter, verification_limiter
from schemas import base, user
from service.user_service import UserService

auth_router = APIRouter(
    tags=['auth']
)


@auth_router.post('/login',
                  dependencies=[Depends(auth_limiter)],
                  response_model=user.LoginOutput,
                  name='Login',
                  responses={
                      401: {
                          "description": "Unknown email or wrong password",
                          "content": {
                              "application/json": {
                                  "example": {"detail": "Invalid email or password"}
                              }
                          }
                      },
                      403: {
                          "description": "The account is blacklisted or its email is not verified yet",
                          "content": {
                              "application/json": {
                                  "example": {"detail": "This user has not been verified. Verify via email."}
                              }
                          }
                      },
                      429: {
                          "description": "More than 10 attempts from this IP within 5 minutes",
                      }
                  })
def login(login_user: user.LoginUser, db: Session = Depends(get_db)):
    """
    Logs in with `email` and `password` and returns the user together with a bearer token.
    """
    user_service = UserService(db)
    return user_service.login(login_user)


@auth_router.post('/register',
                  dependencies=[Depends(auth_limiter)],
                  status_code=status.HTTP_201_CREATED,
                  response_model=user.RegisterOutput,
                  name='Register',
                  responses={
                      409: {
                          "description": "The email already belongs to a registered account",
                          "content": {
                              "application/json": {
                                  "example": {"detail": "Email already registered"}
                              }
                          }
                      }
                  })
def register(register_user: user.RegisterUser, db: Session = Depends(get_db)):
    """
    Creates an unverified `faculty` or `student` account and mails a verification link.
    A guest can upgrade to a full account by registering with the same email.
    """
    user_service = UserService(db)
    return user_service.register(register_user)


@auth_router.get('/verify-email/{token}', response_model=user.VerifyEmailOutput, name='Verify email')
def verify_email(db: Session = Depends(get_db),
                 token: str = Path(..., description='Token from the verification mail')):
    user_service = UserService(db)
    return user_service.verify_email(token)


@auth_router.post('/resend-verification',
                  dependencies=[Depends(verification_limiter)],
                  response_model=base.MessageOutputBase,
                  name='Resend verification email')
def resend_verification(request: user.EmailRequest, db: Session = Depends(get_db)):
    user_service = UserService(db)
    return user_service.resend_verification(request.email)


@auth_router.post('/forgot-password',
                  dependencies=[Depends(verification_limiter)],
                  response_model=base.MessageOutputBase,
                  name='Request password reset')
def forgot_password(request: user.EmailRequest, db: Session = Depends(get_db)):
    user_service = UserService(db)
    return user_service.forgot_password(request.email)


@auth_router.post('/reset-password/{token}',
                  dependencies=[Depends(verification_limiter)],
                  response_model=base.MessageOutputBase,
                  name='Reset password',
                  responses={
                      400: {
                          "description": "Unknown or expired reset token",
                          "content": {
                              "application/json": {
                                  "example": {"detail": "Password reset token has expired"}
                              }
                          }
                      }
                  })
def reset_password(request: user.ResetPasswordRequest, db: Session = Depends(get_db),
                   token: str = Path(..., description='Token from the password reset mail')):
    user_service = UserService(db)
    return user_service.reset_password(token, request)


@auth_router.get('/verify-admin', response_model=base.MessageOutputBase, name='Verify admin')
def verify_admin(current_user: Annotated[User, Depends(get_current_admin)]):
    return base.MessageOutputBase(message='Admin verified')


@auth_router.get('/verify-manager', response_model=base.MessageOutputBase, name='Verify manager')
def verify_manager(current_user: Annotated[User, Depends(get_current_manager)]):
    return base.MessageOutputBase(message='Infrastructure manager verified')


@auth_router.get('/verify-user', response_model=user.UserBase, name='Verify user')
def verify_user(current_user: Annotated[User, Depends(get_current_user)]):
    """
    Returns the user behind the bearer token.
    """
    return user.UserBase.model_validate(current_user)
