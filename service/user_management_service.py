import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import User, UserRole
from repository.infrastructure_repository import InfrastructureRepository
from repository.user_repository import UserRepository
from schemas.base import MessageOutputBase
from schemas.infrastructure import InfrastructureBase
from schemas.user import UserAdminView

logger = logging.getLogger(__name__)

ASSIGNABLE_ROLES = (UserRole.ADMIN, UserRole.MANAGER, UserRole.FACULTY, UserRole.STUDENT)


class UserManagementService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = UserRepository(session)
        self.infrastructure_repository = InfrastructureRepository(session)

    def _get_user(self, user_id: int) -> User:
        user = self.repository.get_by_id(user_id)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')
        return user

    def get_all(self) -> List[UserAdminView]:
        return [UserAdminView.model_validate(user) for user in self.repository.get_all()]

    def update_role(self, user_id: int, role: str) -> MessageOutputBase:
        if role not in ASSIGNABLE_ROLES:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid role')

        user = self._get_user(user_id)
        previous_role = user.role

        self.repository.update(user, role=role)
        if previous_role == UserRole.MANAGER and role != UserRole.MANAGER:
            removed = self.repository.remove_all_assignments(user.id)
            logger.info('Dropped %s infrastructure assignments of former manager %s', removed, user.id)

        self.session.commit()

        logger.info('Changed role of user %s from %s to %s', user.id, previous_role, role)
        return MessageOutputBase(message='User role updated successfully')

    def update_blacklist(self, user_id: int, blacklist: bool) -> MessageOutputBase:
        user = self._get_user(user_id)

        self.repository.update(user, is_blacklisted=blacklist)
        self.session.commit()

        logger.info('Set blacklist of user %s to %s', user.id, blacklist)
        return MessageOutputBase(message='User blacklist status updated successfully')

    def get_manager_infrastructures(self, user_id: int) -> List[InfrastructureBase]:
        self._get_user(user_id)
        return [InfrastructureBase.model_validate(infrastructure)
                for infrastructure in self.repository.get_managed_infrastructures(user_id)]

    def assign_infrastructure(self, user_id: int, infrastructure_id: int) -> MessageOutputBase:
        user = self.repository.get_by_id(user_id)
        if not user or user.role != UserRole.MANAGER:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND,
                                detail='User not found or not an infrastructure manager')

        if not self.infrastructure_repository.get_by_id(infrastructure_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Infrastructure not found')

        if self.repository.is_manager_of(user_id, infrastructure_id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail='Infrastructure already assigned to this manager')

        self.repository.assign_infrastructure(user_id, infrastructure_id)
        self.session.commit()

        return MessageOutputBase(message='Infrastructure assigned successfully')

    def unassign_infrastructure(self, user_id: int, infrastructure_id: int) -> MessageOutputBase:
        if not self.repository.unassign_infrastructure(user_id, infrastructure_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Assignment not found')

        self.session.commit()
        return MessageOutputBase(message='Infrastructure removed from manager successfully')
