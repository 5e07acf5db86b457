import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_validator

from schemas.base import MessageOutputBase, validate_email_format


class UserBase(BaseModel):
    model_config = ConfigDict(extra='ignore', from_attributes=True)

    id: int
    email: str
    name: str
    role: str


class UserAdminView(UserBase):
    is_verified: bool
    is_blacklisted: bool
    email_notifications: bool
    created_at: datetime.datetime
    updated_at: datetime.datetime


class LoginUser(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email: str = Field(description='Account email', examples=['student@example.com'])
    password: str


class LoginOutput(BaseModel):
    model_config = ConfigDict(extra='ignore')

    user: UserBase
    token: str


class VerifyEmailOutput(LoginOutput):
    message: str


class RegisterUser(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email: str = Field(description='Account email', examples=['student@example.com'])
    password: str = Field(min_length=8, description='At least 8 characters')
    name: str = Field(min_length=1, examples=['Jane Doe'])
    role: Literal['faculty', 'student'] = Field(description='Self registration is limited to these roles')

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return validate_email_format(value)


class RegisterOutput(MessageOutputBase):
    user_id: int


class EmailRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email: str


class ResetPasswordRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    password: str = Field(min_length=8)


class TokenPayload(BaseModel):
    model_config = ConfigDict(extra='ignore')

    id: int
    email: str
    role: str
    exp: int


class UpdateRoleRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    role: str = Field(examples=['manager'])


class UpdateBlacklistRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    blacklist: StrictBool


class AssignInfrastructureRequest(BaseModel):
    model_config = ConfigDict(extra='ignore')

    infrastructure_id: int


class EmailPreference(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email_notifications: StrictBool


class EmailPreferenceOutput(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email_notifications: bool
    message: Optional[str] = None
