import datetime
import logging
import os
from typing import Dict, List

from fastapi import HTTPException
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session
from starlette import status
from starlette.datastructures import FormData, UploadFile

from db.models import Booking, BookingStatus, User, UserRole
from middleware.file_upload import save_temp_upload, get_file_url, get_mime_type, cleanup_temp_files
from repository.booking_repository import BookingRepository
from repository.user_repository import UserRepository
from schemas.base import MessageOutputBase
from schemas.booking import BookingWithInfrastructure, BookingDetails, AnswerDetail, BookingRequestOutput
from service.booking_request_service import BookingRequestService

logger = logging.getLogger(__name__)

RECENT_BOOKINGS_LIMIT = 5
CANCELLATION_NOTICE = datetime.timedelta(hours=24)


def _question_id(key: str, prefix: str):
    suffix = key[len(prefix):]
    return int(suffix) if suffix.isdigit() else None


def parse_booking_form(form: FormData) -> Dict[int, dict]:
    """
    Collects `answer_<question_id>` text fields and `file_<question_id>` uploads. Uploads are written to the
    temp directory right away and removed again if a later upload is rejected.
    """
    answers: Dict[int, dict] = {}
    temp_files: List[str] = []

    try:
        for key, value in form.multi_items():
            if key.startswith('answer_') and isinstance(value, str):
                question_id = _question_id(key, 'answer_')
                if question_id is not None:
                    answers[question_id] = {'type': 'text', 'value': value}

            elif key.startswith('file_') and isinstance(value, UploadFile) and value.filename:
                question_id = _question_id(key, 'file_')
                if question_id is not None:
                    answer = save_temp_upload(value)
                    temp_files.append(answer['file_path'])
                    answers[question_id] = answer
    except HTTPException:
        cleanup_temp_files(temp_files)
        raise

    return answers


def form_int(form: FormData, key: str) -> int:
    value = form.get(key)
    if not isinstance(value, str) or not value.strip().isdigit():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f'Missing required parameter: {key}')
    return int(value)


class BookingService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = BookingRepository(session)
        self.user_repository = UserRepository(session)

    def request_booking(self, user: User, form: FormData) -> BookingRequestOutput:
        timeslot_id = form_int(form, 'timeslot_id')
        purpose = form.get('purpose') or ''

        answers = parse_booking_form(form)

        booking = BookingRequestService(self.session).request_booking(user.email, timeslot_id, purpose, answers)

        return BookingRequestOutput(
            message='Booking request submitted successfully',
            booking_id=booking.id,
            infrastructure_id=booking.infrastructure_id,
            booking_date=booking.booking_date,
            start_time=booking.start_time,
            end_time=booking.end_time,
        )

    def get_recent(self, user: User) -> List[BookingWithInfrastructure]:
        return self.repository.get_user_bookings(user.email, limit=RECENT_BOOKINGS_LIMIT)

    def get_all(self, user: User) -> List[BookingWithInfrastructure]:
        return self.repository.get_user_bookings(user.email)

    def cancel_own_booking(self, user: User, booking_id: int) -> MessageOutputBase:
        booking = self.repository.get_user_booking(booking_id, user.email)
        if not booking:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Booking not found')

        if booking.status not in (BookingStatus.PENDING, BookingStatus.APPROVED):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Only pending or approved bookings can be canceled by the user')

        starts_at = datetime.datetime.combine(booking.booking_date, booking.start_time)
        if starts_at - datetime.datetime.now() <= CANCELLATION_NOTICE:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail='Bookings within 24 hours cannot be canceled')

        if not self.repository.set_status(booking.id, BookingStatus.CANCELED,
                                          (BookingStatus.PENDING, BookingStatus.APPROVED)):
            self.session.rollback()
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Failed to cancel booking')

        self.session.commit()

        logger.info('User %s canceled booking %s', user.id, booking.id)
        return MessageOutputBase(message='Booking canceled successfully')

    def _check_view_access(self, user: User, booking: Booking):
        if user.role == UserRole.ADMIN or booking.user_email == user.email:
            return

        if user.role == UserRole.MANAGER and self.user_repository.is_manager_of(user.id, booking.infrastructure_id):
            return

        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN,
                            detail='You do not have permission to view this booking')

    def get_details(self, user: User, booking_id: int) -> BookingDetails:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Booking not found')

        self._check_view_access(user, booking)

        answers = [
            AnswerDetail(
                question_id=question.id,
                question_text=question.question_text,
                question_type=question.question_type,
                answer_text=answer.answer_text,
                document_url=get_file_url(answer.document_path),
            )
            for answer, question in self.repository.get_answers(booking.id)
        ]

        return BookingDetails(booking=self.repository.get_booking_with_infrastructure(booking.id), answers=answers)

    def download_file(self, user: User, booking_id: int, question_id: int) -> FileResponse:
        booking = self.repository.get_by_id(booking_id)
        if not booking:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Booking not found')

        self._check_view_access(user, booking)

        answer = self.repository.get_answer(booking_id, question_id)
        if not answer or not answer.document_path:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='File not found')

        if not os.path.isfile(answer.document_path):
            logger.error('Document %s of booking %s is missing on disk', answer.document_path, booking_id)
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='File not found on server')

        filename = answer.answer_text or os.path.basename(answer.document_path)
        return FileResponse(answer.document_path, filename=filename, media_type=get_mime_type(filename))
