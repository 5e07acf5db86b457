import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, model_validator

from schemas.base import MessageOutputBase


class BookingBase(BaseModel):
    model_config = ConfigDict(extra='ignore', from_attributes=True)

    id: int
    booking_type: str
    user_email: Optional[str] = None
    infrastructure_id: int
    booking_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time
    status: str
    purpose: Optional[str] = None
    created_at: Optional[datetime.datetime] = None


class BookingWithInfrastructure(BookingBase):
    infrastructure_name: str
    infrastructure_location: Optional[str] = None
    user_role: Optional[str] = None


class CreateTimeslots(BaseModel):
    model_config = ConfigDict(extra='ignore')

    infrastructure_id: int
    start_date: datetime.date = Field(examples=['2030-01-07'])
    end_date: datetime.date = Field(examples=['2030-01-11'])
    daily_start_time: datetime.time = Field(examples=['09:00'])
    slot_duration: PositiveInt = Field(description='Minutes per slot', examples=[60])
    slots_per_day: PositiveInt = Field(examples=[4])

    @model_validator(mode='after')
    def check_date_range(self):
        if self.end_date < self.start_date:
            raise ValueError('end_date must not be before start_date')
        return self


class CreateTimeslotsOutput(MessageOutputBase):
    created: int
    skipped: int


class CancelTimeslots(BaseModel):
    model_config = ConfigDict(extra='ignore')

    ids: List[int] = Field(min_length=1)


class CancelTimeslotsOutput(MessageOutputBase):
    canceled: int


class UpdateBookingStatus(BaseModel):
    model_config = ConfigDict(extra='ignore')

    status: str = Field(description='`approved`, `rejected` or `canceled`', examples=['approved'])


class UpdateBookingStatusOutput(MessageOutputBase):
    status: str
    rejected_count: int = 0


class ForceStatusUpdateOutput(MessageOutputBase):
    completed: int
    expired: int
    expired_timeslots: int


class BookingRequestOutput(MessageOutputBase):
    booking_id: int
    infrastructure_id: int
    booking_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time


class AnswerDetail(BaseModel):
    model_config = ConfigDict(extra='ignore')

    question_id: int
    question_text: str
    question_type: str
    answer_text: Optional[str] = None
    document_url: Optional[str] = None


class BookingDetails(BaseModel):
    model_config = ConfigDict(extra='ignore')

    booking: BookingWithInfrastructure
    answers: List[AnswerDetail]


class GuestBookingRequestOutput(MessageOutputBase):
    email: str


class GuestBookingConfirmOutput(MessageOutputBase):
    booking_id: int
    infrastructure_name: Optional[str] = None
    booking_date: datetime.date
    start_time: datetime.time
    end_time: datetime.time


class EmailActionOutput(MessageOutputBase):
    action: str
    status: str
    booking_id: int
    current_status: Optional[str] = None
    rejected_count: int = 0
