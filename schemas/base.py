import re

from pydantic import BaseModel, ConfigDict

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def validate_email_format(value: str) -> str:
    value = value.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError('Invalid email format')
    return value


class MessageOutputBase(BaseModel):
    model_config = ConfigDict(extra='ignore')

    message: str
