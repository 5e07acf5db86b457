import datetime
import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

import config
from auth.auth_bearer import ensure_allowed_user
from db.models import User, UserRole
from repository.user_repository import UserRepository
from schemas.base import MessageOutputBase
from schemas.user import UserBase, LoginUser, LoginOutput, RegisterUser, RegisterOutput, VerifyEmailOutput, \
    ResetPasswordRequest
from service.email_service import EmailService
from util import encode_jwt, hash_password, verify_password, generate_token, utcnow

logger = logging.getLogger(__name__)


def _login_output(user: User) -> LoginOutput:
    token = encode_jwt(user.id, user.email, user.role)
    return LoginOutput(user=UserBase.model_validate(user), token=token)


class UserService:
    """
    Registration, email verification, password reset and login.
    """

    def __init__(self, session: Session):
        self.session = session
        self.repository = UserRepository(session)
        self.email_service = EmailService()

    def login(self, login_user: LoginUser) -> LoginOutput:
        user = self.repository.get_by_email(login_user.email.strip())

        if not user or not verify_password(login_user.password, user.password_hash):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid email or password')

        ensure_allowed_user(user)

        logger.info('User %s logged in', user.id)
        return _login_output(user)

    def register(self, register_user: RegisterUser) -> RegisterOutput:
        existing_user = self.repository.get_by_email(register_user.email)

        if existing_user and existing_user.role != UserRole.GUEST:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail='Email already registered')

        verification_token = generate_token()
        fields = dict(
            password_hash=hash_password(register_user.password),
            name=register_user.name,
            role=register_user.role,
            is_verified=False,
            verification_token=verification_token,
            verification_token_expires=utcnow() + datetime.timedelta(hours=config.VERIFICATION_TOKEN_EXPIRY_HOURS),
        )

        if existing_user:
            # a guest upgrades to a full account and keeps its bookings
            user = self.repository.update(existing_user, **fields)
        else:
            user = self.repository.create(email=register_user.email, **fields)

        self.session.commit()
        logger.info('Registered user %s with role %s', user.id, user.role)

        if self.email_service.send_verification_email(user, verification_token):
            message = 'Registration successful. Please check your email to verify your account.'
        else:
            message = 'Registration successful, but failed to send verification email. Please contact support.'

        return RegisterOutput(message=message, user_id=user.id)

    def verify_email(self, token: str) -> VerifyEmailOutput:
        user = self.repository.get_by_verification_token(token)

        if not user or not user.verification_token_expires or user.verification_token_expires < utcnow():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Invalid or expired verification token')

        self.repository.update(user, is_verified=True, verification_token=None, verification_token_expires=None)
        self.session.commit()

        login_output = _login_output(user)
        return VerifyEmailOutput(message='Email verification successful! Your account is now active.',
                                 user=login_output.user, token=login_output.token)

    def resend_verification(self, email: str) -> MessageOutputBase:
        user = self.repository.get_by_email(email.strip())

        if not user or user.role == UserRole.GUEST:
            return MessageOutputBase(message='No user with such an email is registered.')

        if user.is_verified:
            return MessageOutputBase(message='Your account is already verified. You can log in.')

        token = generate_token()
        self.repository.update(
            user,
            verification_token=token,
            verification_token_expires=utcnow() + datetime.timedelta(hours=config.VERIFICATION_TOKEN_EXPIRY_HOURS),
        )
        self.session.commit()

        self.email_service.send_verification_email(user, token)
        return MessageOutputBase(message='A new verification email has been sent. Please check your inbox.')

    def forgot_password(self, email: str) -> MessageOutputBase:
        user = self.repository.get_by_email(email.strip())

        if not user or user.role == UserRole.GUEST:
            return MessageOutputBase(message='No user with such an email is registered.')

        token = generate_token()
        self.repository.update(
            user,
            password_reset_token=token,
            password_reset_expires=utcnow() + datetime.timedelta(hours=config.PASSWORD_RESET_EXPIRY_HOURS),
        )
        self.session.commit()

        self.email_service.send_password_reset_email(user, token)
        return MessageOutputBase(message='A password reset link has been sent to your email.')

    def reset_password(self, token: str, request: ResetPasswordRequest) -> MessageOutputBase:
        user = self.repository.get_by_password_reset_token(token)

        if not user:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Invalid or expired password reset token')

        if not user.password_reset_expires or user.password_reset_expires < utcnow():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Password reset token has expired')

        self.repository.update(user, password_hash=hash_password(request.password), password_reset_token=None,
                               password_reset_expires=None)
        self.session.commit()

        logger.info('Password reset for user %s', user.id)
        return MessageOutputBase(
            message='Password has been reset successfully. You can now log in with your new password.')
