import logging
from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import Booking, BookingStatus, BookingType, User
from repository.booking_repository import BookingRepository
from repository.infrastructure_repository import InfrastructureRepository
from repository.user_repository import UserRepository
from schemas.booking import UpdateBookingStatusOutput
from service.email_service import EmailService
from service.infrastructure_service import ensure_infrastructure_access

logger = logging.getLogger(__name__)

# target status -> statuses it may be reached from
ALLOWED_TRANSITIONS = {
    BookingStatus.APPROVED: (BookingStatus.PENDING,),
    BookingStatus.REJECTED: (BookingStatus.PENDING,),
    BookingStatus.CANCELED: (BookingStatus.PENDING, BookingStatus.APPROVED),
}

MESSAGES = {
    BookingStatus.APPROVED: 'Booking approved successfully',
    BookingStatus.REJECTED: 'Booking rejected successfully',
    BookingStatus.CANCELED: 'Booking canceled successfully',
}


class BookingStatusService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = BookingRepository(session)
        self.infrastructure_repository = InfrastructureRepository(session)
        self.user_repository = UserRepository(session)
        self.email_service = EmailService()

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Booking not found')
        return booking

    def update_status(self, user: User, booking_id: int, new_status: str) -> UpdateBookingStatusOutput:
        if new_status not in ALLOWED_TRANSITIONS:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Status must be one of approved, rejected or canceled')

        booking = self.get_booking(booking_id)
        ensure_infrastructure_access(self.session, user, booking.infrastructure_id)

        return self.apply_transition(booking, new_status)

    def apply_transition(self, booking: Booking, new_status: str) -> UpdateBookingStatusOutput:
        """
        Moves `booking` to `new_status` in one transaction and mails the affected users afterwards.
        Approving also rejects every other pending booking that overlaps it.
        """
        if booking.booking_type != BookingType.BOOKING:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Timeslots cannot change status')

        allowed_from = ALLOWED_TRANSITIONS[new_status]
        if booking.status not in allowed_from:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail=f'Only {" or ".join(allowed_from)} bookings can be {new_status}')

        rejected: List[Booking] = []
        try:
            if not self.repository.set_status(booking.id, new_status, allowed_from):
                raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                    detail='Booking status changed concurrently, please reload')

            if new_status == BookingStatus.APPROVED:
                rejected = self.repository.get_overlapping_pending(booking)
                self.repository.reject_bookings([other.id for other in rejected])

            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

        logger.info('Booking %s is now %s', booking.id, new_status)
        if rejected:
            logger.info('Auto-rejected %s overlapping bookings: %s', len(rejected), [other.id for other in rejected])

        self._notify_owner(booking, new_status)
        for other in rejected:
            self._notify_owner(other, BookingStatus.REJECTED)

        return UpdateBookingStatusOutput(message=MESSAGES[new_status], status=new_status,
                                         rejected_count=len(rejected))

    def _notify_owner(self, booking: Booking, new_status: str):
        infrastructure = self.infrastructure_repository.get_by_id(booking.infrastructure_id)
        owner = self.user_repository.get_by_email(booking.user_email)
        self.email_service.send_booking_status_update(booking, infrastructure, new_status, owner)
