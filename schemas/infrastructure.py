from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt

from schemas.base import MessageOutputBase


class InfrastructureBase(BaseModel):
    model_config = ConfigDict(extra='ignore', from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    location: Optional[str] = None
    is_active: bool
    max_booking_duration: Optional[int] = None


class CreateEditInfrastructure(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: str = Field(min_length=1, max_length=100, description='Unique infrastructure name', examples=['Cryo-EM'])
    description: str = Field(min_length=1, examples=['Cryogenic electron microscope'])
    location: Optional[str] = Field(default=None, max_length=100, examples=['Building B, room 012'])
    is_active: bool = True
    max_booking_duration: Optional[PositiveInt] = Field(default=None, description='Longest allowed slot in minutes')


class CreateInfrastructureOutput(MessageOutputBase):
    id: int
