import datetime
import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import Infrastructure, User, UserRole
from repository.booking_repository import BookingRepository
from repository.infrastructure_repository import InfrastructureRepository
from repository.user_repository import UserRepository
from schemas.base import MessageOutputBase
from schemas.booking import BookingBase
from schemas.infrastructure import InfrastructureBase, CreateEditInfrastructure, CreateInfrastructureOutput

logger = logging.getLogger(__name__)


def ensure_infrastructure_access(session: Session, user: User, infrastructure_id: int):
    """
    Admins reach every infrastructure, managers only the ones they are assigned to.
    """
    if user.role == UserRole.ADMIN:
        return

    if user.role == UserRole.MANAGER and UserRepository(session).is_manager_of(user.id, infrastructure_id):
        return

    raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                        detail='You do not have permission to manage this infrastructure')


class InfrastructureService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = InfrastructureRepository(session)
        self.booking_repository = BookingRepository(session)
        self.user_repository = UserRepository(session)

    def get_by_id(self, infrastructure_id: int) -> Infrastructure:
        infrastructure = self.repository.get_by_id(infrastructure_id)
        if not infrastructure:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Infrastructure not found')
        return infrastructure

    def get_all(self) -> List[InfrastructureBase]:
        return [InfrastructureBase.model_validate(infrastructure) for infrastructure in self.repository.get_all()]

    def get_active(self) -> List[InfrastructureBase]:
        return [InfrastructureBase.model_validate(infrastructure) for infrastructure in self.repository.get_active()]

    def get_managed(self, user: User) -> List[InfrastructureBase]:
        return [InfrastructureBase.model_validate(infrastructure)
                for infrastructure in self.user_repository.get_managed_infrastructures(user.id)]

    def get_available_timeslots(self, infrastructure_id: int,
                                on_date: Optional[datetime.date] = None) -> List[BookingBase]:
        self.get_by_id(infrastructure_id)

        timeslots = self.booking_repository.get_available_timeslots(infrastructure_id, datetime.date.today(), on_date)
        return [BookingBase.model_validate(timeslot) for timeslot in timeslots]

    def create(self, data: CreateEditInfrastructure) -> CreateInfrastructureOutput:
        if self.repository.exist_by_name(data.name):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='An infrastructure with this name already exists')

        infrastructure = self.repository.create(data)
        logger.info('Created infrastructure %s (%s)', infrastructure.id, infrastructure.name)

        return CreateInfrastructureOutput(message='Infrastructure created successfully', id=infrastructure.id)

    def update(self, infrastructure_id: int, data: CreateEditInfrastructure) -> InfrastructureBase:
        infrastructure = self.get_by_id(infrastructure_id)

        if self.repository.exist_by_name(data.name, exclude_id=infrastructure_id):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='An infrastructure with this name already exists')

        return InfrastructureBase.model_validate(self.repository.update(infrastructure, data))

    def toggle_status(self, infrastructure_id: int) -> MessageOutputBase:
        infrastructure = self.repository.toggle_active(self.get_by_id(infrastructure_id))
        state = 'activated' if infrastructure.is_active else 'deactivated'

        logger.info('Infrastructure %s %s', infrastructure.id, state)
        return MessageOutputBase(message=f'Infrastructure {state} successfully')
