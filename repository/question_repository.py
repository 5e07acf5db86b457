from typing import List, Optional

from sqlalchemy.orm import Session

from db.models import InfrastructureQuestion, Infrastructure, BookingAnswer, QuestionType
from schemas.question import CreateEditQuestion


class QuestionRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_infrastructure(self, infrastructure_id: int) -> List[InfrastructureQuestion]:
        return self.session.query(InfrastructureQuestion) \
            .filter_by(infrastructure_id=infrastructure_id) \
            .order_by(InfrastructureQuestion.display_order, InfrastructureQuestion.id) \
            .all()

    def get_for_active_infrastructure(self, infrastructure_id: int) -> List[InfrastructureQuestion]:
        return self.session.query(InfrastructureQuestion) \
            .join(Infrastructure, Infrastructure.id == InfrastructureQuestion.infrastructure_id) \
            .filter(InfrastructureQuestion.infrastructure_id == infrastructure_id,
                    Infrastructure.is_active.is_(True)) \
            .order_by(InfrastructureQuestion.display_order, InfrastructureQuestion.id) \
            .all()

    def get_required_ids(self, infrastructure_id: int) -> List[int]:
        rows = self.session.query(InfrastructureQuestion.id) \
            .filter(InfrastructureQuestion.infrastructure_id == infrastructure_id,
                    InfrastructureQuestion.is_required.is_(True)) \
            .order_by(InfrastructureQuestion.display_order, InfrastructureQuestion.id) \
            .all()
        return [row.id for row in rows]

    def get_by_id(self, _id: int, infrastructure_id: int) -> Optional[InfrastructureQuestion]:
        return self.session.query(InfrastructureQuestion) \
            .filter_by(id=_id, infrastructure_id=infrastructure_id).first()

    def create(self, infrastructure_id: int, data: CreateEditQuestion) -> InfrastructureQuestion:
        fields = data.model_dump()
        if data.question_type != QuestionType.DROPDOWN:
            fields['options'] = None

        question = InfrastructureQuestion(infrastructure_id=infrastructure_id, **fields)
        self.session.add(question)
        self.session.commit()
        self.session.refresh(question)

        return question

    def update(self, question: InfrastructureQuestion, data: CreateEditQuestion) -> InfrastructureQuestion:
        # ordering is only changed through `reorder`
        fields = data.model_dump(exclude={'display_order'})
        if data.question_type != QuestionType.DROPDOWN:
            fields['options'] = None

        for key, value in fields.items():
            setattr(question, key, value)

        self.session.commit()
        self.session.refresh(question)

        return question

    def has_answers(self, question_id: int) -> bool:
        return self.session.query(BookingAnswer.id).filter_by(question_id=question_id).first() is not None

    def delete(self, question: InfrastructureQuestion):
        self.session.delete(question)
        self.session.commit()

    def reorder(self, infrastructure_id: int, orders: dict) -> int:
        """
        Applies `{question_id: display_order}`. Ids belonging to another infrastructure are ignored.
        """
        questions = self.session.query(InfrastructureQuestion) \
            .filter(InfrastructureQuestion.infrastructure_id == infrastructure_id,
                    InfrastructureQuestion.id.in_(list(orders))) \
            .all()

        for question in questions:
            question.display_order = orders[question.id]

        self.session.commit()

        return len(questions)
