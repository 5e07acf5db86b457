from typing import List

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import User, InfrastructureQuestion
from repository.infrastructure_repository import InfrastructureRepository
from repository.question_repository import QuestionRepository
from schemas.base import MessageOutputBase
from schemas.question import QuestionBase, CreateEditQuestion, CreateQuestionOutput, ReorderQuestions
from service.infrastructure_service import ensure_infrastructure_access


class QuestionService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = QuestionRepository(session)
        self.infrastructure_repository = InfrastructureRepository(session)

    def _check_access(self, user: User, infrastructure_id: int):
        if not self.infrastructure_repository.get_by_id(infrastructure_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Infrastructure not found')

        ensure_infrastructure_access(self.session, user, infrastructure_id)

    def _get_question(self, infrastructure_id: int, question_id: int) -> InfrastructureQuestion:
        question = self.repository.get_by_id(question_id, infrastructure_id)
        if not question:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Question not found')
        return question

    def get_public_questions(self, infrastructure_id: int) -> List[QuestionBase]:
        """
        Questions of an active infrastructure. Inactive or unknown infrastructures yield an empty list.
        """
        return [QuestionBase.model_validate(question)
                for question in self.repository.get_for_active_infrastructure(infrastructure_id)]

    def get_questions(self, user: User, infrastructure_id: int) -> List[QuestionBase]:
        self._check_access(user, infrastructure_id)
        return [QuestionBase.model_validate(question)
                for question in self.repository.get_by_infrastructure(infrastructure_id)]

    def create(self, user: User, infrastructure_id: int, data: CreateEditQuestion) -> CreateQuestionOutput:
        self._check_access(user, infrastructure_id)

        question = self.repository.create(infrastructure_id, data)
        return CreateQuestionOutput(message='Question added successfully', id=question.id)

    def update(self, user: User, infrastructure_id: int, question_id: int,
               data: CreateEditQuestion) -> MessageOutputBase:
        self._check_access(user, infrastructure_id)

        self.repository.update(self._get_question(infrastructure_id, question_id), data)
        return MessageOutputBase(message='Question updated successfully')

    def delete(self, user: User, infrastructure_id: int, question_id: int) -> MessageOutputBase:
        self._check_access(user, infrastructure_id)
        question = self._get_question(infrastructure_id, question_id)

        if self.repository.has_answers(question.id):
            raise HTTPException(status_code=status.HTTP_409_CONFLICT,
                                detail='Question has already been answered and cannot be deleted')

        self.repository.delete(question)
        return MessageOutputBase(message='Question deleted successfully')

    def reorder(self, user: User, infrastructure_id: int, data: ReorderQuestions) -> MessageOutputBase:
        self._check_access(user, infrastructure_id)

        self.repository.reorder(infrastructure_id, {item.id: item.display_order for item in data.questions})
        return MessageOutputBase(message='Question order updated successfully')
