import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.orm import Session
from starlette import status
from starlette.concurrency import run_in_threadpool

from auth.auth_bearer import get_current_user, get_current_admin_or_manager
from db.database import get_db
from db.models import User
from schemas import base, booking
from service.booking_service import BookingService
from service.booking_status_service import BookingStatusService
from service.timeslot_service import TimeslotService

booking_router = APIRouter(
    prefix='/bookings',
    tags=['bookings']
)

user_booking_router = APIRouter(
    prefix='/bookings/user',
    tags=['my bookings']
)


@booking_router.post('/timeslots',
                     status_code=status.HTTP_201_CREATED,
                     response_model=booking.CreateTimeslotsOutput,
                     name='Create timeslots',
                     responses={
                         400: {
                             "description": "Start date in the past, slots longer than the infrastructure allows or "
                                            "running past midnight",
                             "content": {
                                 "application/json": {
                                     "example": {"detail": "Start date cannot be in the past"}
                                 }
                             }
                         },
                         403: {
                             "description": "The user does not manage this infrastructure",
                             "content": {
                                 "application/json": {
                                     "example": {"detail": "You do not have permission to manage this infrastructure"}
                                 }
                             }
                         }
                     })
def create_timeslots(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                     create_request: booking.CreateTimeslots,
                     db: Session = Depends(get_db)):
    """
    Generates `slots_per_day` consecutive slots of `slot_duration` minutes from `daily_start_time` on every day
    between `start_date` and `end_date`. Slots that overlap an existing timeslot or an active booking are skipped.
    """
    timeslot_service = TimeslotService(db)
    return timeslot_service.create_timeslots(current_user, create_request)


@booking_router.delete('/timeslots', response_model=booking.CancelTimeslotsOutput, name='Cancel timeslots')
def cancel_timeslots(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                     cancel_request: booking.CancelTimeslots,
                     db: Session = Depends(get_db)):
    timeslot_service = TimeslotService(db)
    return timeslot_service.cancel_timeslots(current_user, cancel_request)


@booking_router.post('/force-status-update', response_model=booking.ForceStatusUpdateOutput,
                     name='Close past bookings and timeslots')
def force_status_update(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                        db: Session = Depends(get_db)):
    """
    Approved bookings that have ended become `completed`; pending bookings and available timeslots that have
    ended become `expired`.
    """
    timeslot_service = TimeslotService(db)
    return timeslot_service.force_status_update()


@booking_router.put('/{booking_id}/status',
                    response_model=booking.UpdateBookingStatusOutput,
                    name='Change booking status',
                    responses={
                        200: {
                            "content": {
                                "application/json": {
                                    "example": {"message": "Booking approved successfully", "status": "approved",
                                                "rejected_count": 2}
                                }
                            }
                        },
                        400: {
                            "description": "Unknown target status, the row is a timeslot or the transition is not "
                                           "allowed from the current status",
                            "content": {
                                "application/json": {
                                    "example": {"detail": "Only pending bookings can be approved"}
                                }
                            }
                        },
                        404: {
                            "content": {
                                "application/json": {
                                    "example": {"detail": "Booking not found"}
                                }
                            }
                        }
                    })
def update_booking_status(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                          status_request: booking.UpdateBookingStatus,
                          db: Session = Depends(get_db),
                          booking_id: int = Path(..., description='`id` of the booking')):
    """
    Approves, rejects or cancels a booking. Approving rejects every other pending booking of the same
    infrastructure whose time overlaps, their count is returned as `rejected_count`.
    """
    booking_status_service = BookingStatusService(db)
    return booking_status_service.update_status(current_user, booking_id, status_request.status)


@booking_router.get('/{infrastructure_id}/all-entries', response_model=List[booking.BookingWithInfrastructure],
                    name='All bookings and timeslots')
def get_all_entries(current_user: Annotated[User, Depends(get_current_admin_or_manager)],
                    db: Session = Depends(get_db),
                    infrastructure_id: int = Path(..., description='`id` of the infrastructure'),
                    start_date: Annotated[Optional[datetime.date], Query()] = None,
                    end_date: Annotated[Optional[datetime.date], Query()] = None,
                    limit: Annotated[Optional[int], Query(gt=0)] = None):
    timeslot_service = TimeslotService(db)
    return timeslot_service.get_all_entries(current_user, infrastructure_id, start_date, end_date, limit)


@booking_router.get('/{booking_id}/details', response_model=booking.BookingDetails, name='Booking details')
def get_booking_details(current_user: Annotated[User, Depends(get_current_user)],
                        db: Session = Depends(get_db),
                        booking_id: int = Path(..., description='`id` of the booking')):
    """
    The booking with its question answers. Visible to the owner, admins and the infrastructure's managers.
    """
    booking_service = BookingService(db)
    return booking_service.get_details(current_user, booking_id)


@booking_router.get('/download-file/{booking_id}/{question_id}', name='Download answer document')
def download_file(current_user: Annotated[User, Depends(get_current_user)],
                  db: Session = Depends(get_db),
                  booking_id: int = Path(..., description='`id` of the booking'),
                  question_id: int = Path(..., description='`id` of the document question')):
    booking_service = BookingService(db)
    return booking_service.download_file(current_user, booking_id, question_id)


@user_booking_router.get('/recent', response_model=List[booking.BookingWithInfrastructure],
                         name='My recent bookings')
def get_recent_bookings(current_user: Annotated[User, Depends(get_current_user)],
                        db: Session = Depends(get_db)):
    booking_service = BookingService(db)
    return booking_service.get_recent(current_user)


@user_booking_router.get('/all', response_model=List[booking.BookingWithInfrastructure], name='My bookings')
def get_all_bookings(current_user: Annotated[User, Depends(get_current_user)],
                     db: Session = Depends(get_db)):
    booking_service = BookingService(db)
    return booking_service.get_all(current_user)


@user_booking_router.post('/{booking_id}/cancel', response_model=base.MessageOutputBase, name='Cancel my booking',
                          responses={
                              400: {
                                  "description": "The booking is not pending/approved or starts within 24 hours",
                                  "content": {
                                      "application/json": {
                                          "example": {"detail": "Bookings within 24 hours cannot be canceled"}
                                      }
                                  }
                              }
                          })
def cancel_booking(current_user: Annotated[User, Depends(get_current_user)],
                   db: Session = Depends(get_db),
                   booking_id: int = Path(..., description='`id` of the booking')):
    booking_service = BookingService(db)
    return booking_service.cancel_own_booking(current_user, booking_id)


@user_booking_router.post('/request',
                          status_code=status.HTTP_201_CREATED,
                          response_model=booking.BookingRequestOutput,
                          name='Request a booking',
                          responses={
                              400: {
                                  "description": "A required question was left unanswered",
                                  "content": {
                                      "application/json": {
                                          "example": {"detail": {"message": "Not all required questions were answered",
                                                                 "missing_answers": [3]}}
                                      }
                                  }
                              },
                              404: {
                                  "description": "The timeslot does not exist or was claimed already",
                                  "content": {
                                      "application/json": {
                                          "example": {"detail": "Timeslot not found or not available"}
                                      }
                                  }
                              }
                          })
async def request_booking(request: Request,
                          current_user: Annotated[User, Depends(get_current_user)],
                          db: Session = Depends(get_db)):
    """
    Multipart form with `timeslot_id`, `purpose`, `answer_<question_id>` text fields and `file_<question_id>`
    uploads. The timeslot becomes a pending booking and the infrastructure's managers are notified.
    """
    form = await request.form()
    booking_service = BookingService(db)
    return await run_in_threadpool(booking_service.request_booking, current_user, form)
