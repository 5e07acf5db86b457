from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from starlette import status

from db.database import get_db
from db.models import User, UserRole
from repository.user_repository import UserRepository
from util import decode_jwt


class JWTBearer(HTTPBearer):
    """
    Reads the `Authorization: Bearer <token>` header and returns the decoded payload.
    A missing header is a 401, a malformed, expired or forged token is a 403.
    """

    def __init__(self):
        super().__init__(auto_error=False)

    async def __call__(self, request: Request) -> dict:
        credentials: HTTPAuthorizationCredentials | None = await super().__call__(request)

        if not credentials:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Authentication required')

        if credentials.scheme.lower() != 'bearer':
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Invalid authentication scheme')

        try:
            return decode_jwt(credentials.credentials)
        except jwt.PyJWTError:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Invalid or expired token')


def ensure_allowed_user(user: User):
    if user.is_blacklisted:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='This user has been blacklisted.')

    if not user.is_verified:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail='This user has not been verified. Verify via email.')


def get_current_user(payload: Annotated[dict, Depends(JWTBearer())], db: Session = Depends(get_db)) -> User:
    """
    Resolves the token to a fresh user row so role changes and blacklisting apply immediately.
    """
    user = UserRepository(db).get_by_id(payload.get('id'))
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

    ensure_allowed_user(user)

    return user


def get_current_admin(user: Annotated[User, Depends(get_current_user)]) -> User:
    if user.role != UserRole.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Admin access required')
    return user


def get_current_manager(user: Annotated[User, Depends(get_current_user)]) -> User:
    if user.role != UserRole.MANAGER:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Manager access required')
    return user


def get_current_admin_or_manager(user: Annotated[User, Depends(get_current_user)]) -> User:
    if user.role not in (UserRole.ADMIN, UserRole.MANAGER):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail='Admin or manager access required')
    return user
