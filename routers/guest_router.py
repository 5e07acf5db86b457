from fastapi import APIRouter, Depends, Path, Request
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from db.database import get_db
from schemas import booking
from service.guest_booking_service import GuestBookingService

guest_router = APIRouter(
    prefix='/guest',
    tags=['guest bookings']
)


@guest_router.post('/request',
                   response_model=booking.GuestBookingRequestOutput,
                   name='Request a guest booking',
                   responses={
                       400: {
                           "description": "Missing fields, malformed email, unanswered required questions or an "
                                          "email that belongs to a registered account",
                           "content": {
                               "application/json": {
                                   "example": {"detail": "This email is already registered. Please login to book."}
                               }
                           }
                       },
                       429: {
                           "description": "The guest already holds a booking on that day",
                       }
                   })
async def request_guest_booking(request: Request, db: Session = Depends(get_db)):
    """
    Multipart form with `name`, `email`, `infrastructure_id`, `timeslot_id`, `purpose` and the same
    `answer_<question_id>` / `file_<question_id>` fields as a regular booking request.
    Nothing is booked yet: a confirmation link is mailed to the guest.
    """
    form = await request.form()
    guest_booking_service = GuestBookingService(db)
    return await run_in_threadpool(guest_booking_service.request_booking, form)


@guest_router.get('/confirm-booking/{token}', response_model=booking.GuestBookingConfirmOutput,
                  name='Confirm a guest booking')
def confirm_guest_booking(db: Session = Depends(get_db),
                          token: str = Path(..., description='Token from the confirmation mail')):
    guest_booking_service = GuestBookingService(db)
    return guest_booking_service.confirm_booking(token)
