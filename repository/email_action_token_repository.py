import datetime
import json
from typing import Optional

from sqlalchemy.orm import Session

from db.models import EmailActionToken
from util import utcnow, generate_token


class EmailActionTokenRepository:
    def __init__(self, session: Session):
        self.session = session

    def create(self, booking_id: int, expires_in_hours: int, metadata: Optional[dict] = None) -> EmailActionToken:
        action_token = EmailActionToken(
            token=generate_token(),
            booking_id=booking_id,
            expires=utcnow() + datetime.timedelta(hours=expires_in_hours),
            token_metadata=json.dumps(metadata) if metadata is not None else None,
        )
        self.session.add(action_token)
        self.session.flush()

        return action_token

    def get_valid(self, token: str) -> Optional[EmailActionToken]:
        """
        The unused, unexpired token row for `token`, if any.
        """
        return self.session.query(EmailActionToken) \
            .filter(EmailActionToken.token == token,
                    EmailActionToken.used.is_(False),
                    EmailActionToken.expires > utcnow()) \
            .first()

    def mark_used(self, action_token: EmailActionToken):
        action_token.used = True
        action_token.used_at = utcnow()
        self.session.flush()


def load_metadata(action_token: EmailActionToken) -> dict:
    if not action_token.token_metadata:
        return {}
    return json.loads(action_token.token_metadata)
