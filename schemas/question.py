from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from schemas.base import MessageOutputBase


class QuestionBase(BaseModel):
    model_config = ConfigDict(extra='ignore', from_attributes=True)

    id: int
    infrastructure_id: int
    question_text: str
    question_type: str
    is_required: bool
    options: Optional[str] = None
    display_order: int


class CreateEditQuestion(BaseModel):
    model_config = ConfigDict(extra='ignore')

    question_text: str = Field(min_length=1, examples=['Which sample type will you bring?'])
    question_type: Literal['text', 'number', 'dropdown', 'document']
    is_required: bool = False
    options: Optional[str] = Field(default=None, description='Dropdown options, ignored for other types')
    display_order: int = 0


class CreateQuestionOutput(MessageOutputBase):
    id: int


class ReorderItem(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    display_order: int


class ReorderQuestions(BaseModel):
    model_config = ConfigDict(extra='ignore')

    questions: List[ReorderItem]
