from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from db.database import get_db
from schemas import booking
from service.email_action_service import EmailActionService

email_action_router = APIRouter(
    prefix='/email-action',
    tags=['email actions']
)


@email_action_router.get('/{action}/{token}',
                         response_model=booking.EmailActionOutput,
                         name='Approve or reject from email',
                         responses={
                             200: {
                                 "content": {
                                     "application/json": {
                                         "example": {"message": "This booking has already been processed",
                                                     "action": "approve", "status": "already_processed",
                                                     "booking_id": 12, "current_status": "canceled",
                                                     "rejected_count": 0}
                                     }
                                 }
                             },
                             400: {
                                 "content": {
                                     "application/json": {
                                         "example": {"detail": "Invalid or expired token"}
                                     }
                                 }
                             }
                         })
def process_email_action(db: Session = Depends(get_db),
                         action: str = Path(..., description='`approve` or `reject`'),
                         token: str = Path(..., description='Token from the manager notification')):
    """
    Target of the links in the new-booking mail sent to managers. The token works once.
    """
    email_action_service = EmailActionService(db)
    return email_action_service.process(action, token)
