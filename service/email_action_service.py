import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import BookingStatus
from repository.booking_repository import BookingRepository
from repository.email_action_token_repository import EmailActionTokenRepository, load_metadata
from schemas.booking import EmailActionOutput
from service.booking_request_service import BOOKING_ACTION_TOKEN_TYPE
from service.booking_status_service import BookingStatusService

logger = logging.getLogger(__name__)

ACTIONS = {
    'approve': BookingStatus.APPROVED,
    'reject': BookingStatus.REJECTED,
}


class EmailActionService:
    """
    Approve and reject links mailed to managers. Each link works once, whichever of the two is followed.
    """

    def __init__(self, session: Session):
        self.session = session
        self.booking_repository = BookingRepository(session)
        self.token_repository = EmailActionTokenRepository(session)

    def process(self, action: str, token: str) -> EmailActionOutput:
        if action not in ACTIONS:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid action')

        action_token = self.token_repository.get_valid(token)
        if not action_token:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid or expired token')

        if load_metadata(action_token).get('type') != BOOKING_ACTION_TOKEN_TYPE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid token type')

        booking = self.booking_repository.get_by_id(action_token.booking_id)
        if not booking:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Booking not found')

        self.token_repository.mark_used(action_token)

        if booking.status != BookingStatus.PENDING:
            self.session.commit()
            logger.info('Email action %s on booking %s ignored, booking is %s', action, booking.id, booking.status)
            return EmailActionOutput(message='This booking has already been processed', action=action,
                                     status='already_processed', booking_id=booking.id,
                                     current_status=booking.status)

        result = BookingStatusService(self.session).apply_transition(booking, ACTIONS[action])

        return EmailActionOutput(message=result.message, action=action, status='success', booking_id=booking.id,
                                 current_status=result.status, rejected_count=result.rejected_count)
