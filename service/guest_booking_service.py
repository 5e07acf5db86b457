import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status
from starlette.datastructures import FormData

import config
from db.models import UserRole
from middleware.file_upload import cleanup_temp_files
from repository.booking_repository import BookingRepository
from repository.email_action_token_repository import EmailActionTokenRepository, load_metadata
from repository.infrastructure_repository import InfrastructureRepository
from repository.question_repository import QuestionRepository
from repository.user_repository import UserRepository
from schemas.base import EMAIL_PATTERN
from schemas.booking import GuestBookingRequestOutput, GuestBookingConfirmOutput
from service.booking_request_service import BookingRequestService, find_missing_answers, temp_paths_of
from service.booking_service import parse_booking_form, form_int
from service.email_service import EmailService
from util import generate_token, hash_password

logger = logging.getLogger(__name__)

GUEST_BOOKING_TOKEN_TYPE = 'guest_booking'
GUEST_CONFIRMATION_EXPIRY_HOURS = 24


class GuestBookingService:
    """
    Guests book without an account: the request is parked in an email action token and only turned into a
    booking once the guest follows the confirmation link.
    """

    def __init__(self, session: Session):
        self.session = session
        self.booking_repository = BookingRepository(session)
        self.question_repository = QuestionRepository(session)
        self.infrastructure_repository = InfrastructureRepository(session)
        self.user_repository = UserRepository(session)
        self.token_repository = EmailActionTokenRepository(session)
        self.email_service = EmailService()

    def _check_daily_limit(self, email: str, booking_date):
        if self.booking_repository.count_bookings_on(email, booking_date) >= config.GUEST_MAX_BOOKINGS_PER_DAY:
            raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                                detail='You have already made a booking for this day. Try another day.')

    def request_booking(self, form: FormData) -> GuestBookingRequestOutput:
        name = (form.get('name') or '').strip()
        email = (form.get('email') or '').strip()
        purpose = form.get('purpose') or ''
        infrastructure_id = form_int(form, 'infrastructure_id')
        timeslot_id = form_int(form, 'timeslot_id')

        if not name or not email:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Name, email, infrastructure ID, and timeslot ID are required')

        if not EMAIL_PATTERN.match(email):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid email format')

        answers = parse_booking_form(form)

        try:
            token = self._park_request(name, email, purpose, infrastructure_id, timeslot_id, answers)
            self.session.commit()
        except Exception:
            self.session.rollback()
            cleanup_temp_files(temp_paths_of(answers))
            raise

        logger.info('Guest booking of timeslot %s requested by %s', timeslot_id, email)
        self.email_service.send_guest_booking_confirmation(name, email, token)

        return GuestBookingRequestOutput(
            message='Booking verification email sent. Please check your inbox to confirm your booking.',
            email=email,
        )

    def _park_request(self, name: str, email: str, purpose: str, infrastructure_id: int, timeslot_id: int,
                      answers: dict) -> str:
        timeslot = self.booking_repository.get_available_timeslot(timeslot_id)
        if not timeslot or timeslot.infrastructure_id != infrastructure_id:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Timeslot not found or not available')

        missing_answers = find_missing_answers(self.question_repository.get_required_ids(infrastructure_id), answers)
        if missing_answers:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail={'message': 'Not all required questions were answered',
                                        'missing_answers': missing_answers})

        user = self.user_repository.get_by_email(email)
        if user and user.role != UserRole.GUEST:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='This email is already registered. Please login to book.')

        if user:
            self.user_repository.update(user, name=name, is_verified=False)
        else:
            user = self.user_repository.create(email=email, name=name, role=UserRole.GUEST, is_verified=False,
                                               password_hash=hash_password(generate_token()))

        self._check_daily_limit(email, timeslot.booking_date)

        action_token = self.token_repository.create(timeslot.id, GUEST_CONFIRMATION_EXPIRY_HOURS, {
            'type': GUEST_BOOKING_TOKEN_TYPE,
            'email': email,
            'name': name,
            'purpose': purpose,
            'user_id': user.id,
            'answers': {str(question_id): answer for question_id, answer in answers.items()},
        })

        return action_token.token

    def confirm_booking(self, token: str) -> GuestBookingConfirmOutput:
        action_token = self.token_repository.get_valid(token)
        if not action_token:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid or expired booking token')

        metadata = load_metadata(action_token)
        if metadata.get('type') != GUEST_BOOKING_TOKEN_TYPE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid token type')

        timeslot = self.booking_repository.get_by_id(action_token.booking_id)
        if not timeslot:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Timeslot not found or not available')

        email = metadata['email']
        self._check_daily_limit(email, timeslot.booking_date)

        answers = {int(question_id): answer for question_id, answer in (metadata.get('answers') or {}).items()}

        # consumed in the same transaction that creates the booking
        self.token_repository.mark_used(action_token)

        booking = BookingRequestService(self.session).request_booking(
            email, action_token.booking_id, metadata.get('purpose') or '', answers, skip_validation=True)

        infrastructure = self.infrastructure_repository.get_by_id(booking.infrastructure_id)
        logger.info('Guest booking %s confirmed by %s', booking.id, email)

        return GuestBookingConfirmOutput(
            message='Booking confirmed successfully',
            booking_id=booking.id,
            infrastructure_name=infrastructure.name if infrastructure else None,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
        )
