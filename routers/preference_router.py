from typing import Annotated

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from auth.auth_bearer import get_current_user
from db.database import get_db
from db.models import User
from schemas import base, user
from service.preference_service import PreferenceService

preference_router = APIRouter(
    prefix='/preferences',
    tags=['preferences']
)


@preference_router.get('/email', response_model=user.EmailPreferenceOutput, name='Email preferences')
def get_email_preference(current_user: Annotated[User, Depends(get_current_user)], db: Session = Depends(get_db)):
    preference_service = PreferenceService(db)
    return preference_service.get_email_preference(current_user)


@preference_router.put('/email', response_model=user.EmailPreferenceOutput, name='Update email preferences')
def update_email_preference(current_user: Annotated[User, Depends(get_current_user)],
                            preference: user.EmailPreference,
                            db: Session = Depends(get_db)):
    preference_service = PreferenceService(db)
    return preference_service.update_email_preference(current_user, preference)


@preference_router.get('/unsubscribe/{email}', response_model=base.MessageOutputBase, name='Unsubscribe')
def unsubscribe(db: Session = Depends(get_db),
                email: str = Path(..., description='Address taken from the unsubscribe link')):
    """
    Target of the unsubscribe link in notification mails. Turns email notifications off without logging in.
    """
    preference_service = PreferenceService(db)
    return preference_service.unsubscribe(email)
