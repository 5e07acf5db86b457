"""
Turns an available timeslot into a pending booking.

Answers are keyed by question id and come in two shapes::

    {'type': 'text', 'value': '42'}
    {'type': 'file', 'file_path': '/uploads/temp/...', 'original_name': 'plan.pdf', 'secure_filename': '...'}
"""

import logging
import os
from typing import Dict, List, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

import config
from db.models import Booking, EmailActionToken
from middleware.file_upload import is_temp_path, move_file_to_storage, cleanup_temp_files
from repository.booking_repository import BookingRepository
from repository.email_action_token_repository import EmailActionTokenRepository
from repository.infrastructure_repository import InfrastructureRepository
from repository.question_repository import QuestionRepository
from repository.user_repository import UserRepository
from service.email_service import EmailService

logger = logging.getLogger(__name__)

BOOKING_ACTION_TOKEN_TYPE = 'booking_action'


def is_answered(answer: Optional[dict]) -> bool:
    if not answer:
        return False

    if answer.get('type') == 'file':
        return bool(answer.get('file_path') or answer.get('original_name'))

    if answer.get('type') == 'text':
        return bool((answer.get('value') or '').strip())

    return False


def find_missing_answers(required_question_ids: List[int], answers: Dict[int, dict]) -> List[int]:
    return [question_id for question_id in required_question_ids if not is_answered(answers.get(question_id))]


def temp_paths_of(answers: Dict[int, dict]) -> List[str]:
    return [answer['file_path'] for answer in answers.values()
            if answer.get('type') == 'file' and is_temp_path(answer.get('file_path'))]


class BookingRequestService:
    def __init__(self, session: Session):
        self.session = session
        self.booking_repository = BookingRepository(session)
        self.question_repository = QuestionRepository(session)
        self.infrastructure_repository = InfrastructureRepository(session)
        self.user_repository = UserRepository(session)
        self.token_repository = EmailActionTokenRepository(session)
        self.email_service = EmailService()
        self.stored_files: List[str] = []

    def process_booking_request(self, email: str, timeslot_id: int, purpose: str = '',
                                answers: Optional[Dict[int, dict]] = None,
                                skip_validation: bool = False) -> Tuple[Booking, EmailActionToken]:
        """
        Claims the timeslot, stores the answers and issues the manager action token, all inside the session's
        current transaction. Nothing is committed here; on error the caller rolls back.

        `skip_validation` bypasses the required-question check for answers collected and checked earlier, as in
        the guest confirmation flow.
        """
        answers = answers or {}

        timeslot = self.booking_repository.get_available_timeslot(timeslot_id)
        if not timeslot:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Timeslot not found or not available')

        infrastructure_id = timeslot.infrastructure_id

        if not skip_validation:
            missing_answers = find_missing_answers(self.question_repository.get_required_ids(infrastructure_id),
                                                   answers)
            if missing_answers:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                    detail={'message': 'Not all required questions were answered',
                                            'missing_answers': missing_answers})

        if not self.booking_repository.claim_timeslot(timeslot_id, email, purpose or ''):
            # another request claimed the slot between the lookup and the update
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Timeslot not found or not available')

        booking = self.booking_repository.get_by_id(timeslot_id)

        question_ids = {question.id for question in self.question_repository.get_by_infrastructure(infrastructure_id)}
        for question_id, answer in answers.items():
            if question_id not in question_ids:
                logger.warning('Ignoring answer to question %s, not asked by infrastructure %s',
                               question_id, infrastructure_id)
                continue

            answer_text, document_path = self._store_answer(booking.id, answer)
            self.booking_repository.add_answer(booking.id, question_id, answer_text, document_path)

        action_token = self.token_repository.create(booking.id, config.EMAIL_ACTION_EXPIRY_HOURS,
                                                    {'type': BOOKING_ACTION_TOKEN_TYPE})

        logger.info('Timeslot %s claimed by %s, now pending', booking.id, email)
        return booking, action_token

    def _store_answer(self, booking_id: int, answer: dict) -> Tuple[str, Optional[str]]:
        if answer.get('type') != 'file':
            return answer.get('value') or '', None

        file_path = answer.get('file_path')
        answer_text = answer.get('original_name') or os.path.basename(file_path or '')

        if not is_temp_path(file_path):
            return answer_text, file_path

        stored_path = move_file_to_storage(file_path, booking_id, answer.get('secure_filename'))
        if not stored_path:
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                                detail='Failed to process file uploads')

        self.stored_files.append(stored_path)
        return answer_text, stored_path

    def request_booking(self, email: str, timeslot_id: int, purpose: str = '',
                        answers: Optional[Dict[int, dict]] = None, skip_validation: bool = False) -> Booking:
        """
        Runs `process_booking_request` as one transaction and notifies the infrastructure's managers once it is
        committed. Uploaded files are removed again when the request fails.
        """
        answers = answers or {}
        temp_files = temp_paths_of(answers)

        try:
            booking, action_token = self.process_booking_request(email, timeslot_id, purpose, answers,
                                                                 skip_validation)
            self.session.commit()
        except Exception:
            self.session.rollback()
            cleanup_temp_files(temp_files + self.stored_files)
            raise

        self.notify_managers(booking, action_token.token)
        return booking

    def notify_managers(self, booking: Booking, action_token: str) -> int:
        infrastructure = self.infrastructure_repository.get_by_id(booking.infrastructure_id)
        managers = self.user_repository.get_managers_for_infrastructure(booking.infrastructure_id)

        if not infrastructure or not managers:
            return 0

        requester = self.user_repository.get_by_email(booking.user_email)
        return self.email_service.send_booking_notification_to_managers(booking, infrastructure, managers,
                                                                        action_token, requester)
