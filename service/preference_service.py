from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import User
from repository.user_repository import UserRepository
from schemas.base import MessageOutputBase
from schemas.user import EmailPreference, EmailPreferenceOutput


class PreferenceService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = UserRepository(session)

    def get_email_preference(self, user: User) -> EmailPreferenceOutput:
        return EmailPreferenceOutput(email_notifications=user.email_notifications)

    def update_email_preference(self, user: User, preference: EmailPreference) -> EmailPreferenceOutput:
        self.repository.update(user, email_notifications=preference.email_notifications)
        self.session.commit()

        return EmailPreferenceOutput(email_notifications=user.email_notifications,
                                     message='Email preferences updated successfully')

    def unsubscribe(self, email: str) -> MessageOutputBase:
        user = self.repository.get_by_email(email)
        if not user:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='User not found')

        self.repository.update(user, email_notifications=False)
        self.session.commit()

        return MessageOutputBase(message='You have been unsubscribed from email notifications')
