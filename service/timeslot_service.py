import datetime
import logging
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session
from starlette import status

from db.models import User
from repository.booking_repository import BookingRepository
from repository.infrastructure_repository import InfrastructureRepository
from schemas.booking import CreateTimeslots, CreateTimeslotsOutput, CancelTimeslots, CancelTimeslotsOutput, \
    ForceStatusUpdateOutput, BookingWithInfrastructure
from service.infrastructure_service import ensure_infrastructure_access

logger = logging.getLogger(__name__)


def generate_daily_slots(daily_start_time: datetime.time, slot_duration: int, slots_per_day: int):
    """
    Consecutive `(start, end)` pairs for one day. Raises `ValueError` when the last slot would run past midnight.
    """
    day_start = datetime.datetime.combine(datetime.date.min, daily_start_time)
    day_end = day_start.replace(hour=0, minute=0, second=0, microsecond=0) + datetime.timedelta(days=1)

    slots = []
    current = day_start
    for _ in range(slots_per_day):
        end = current + datetime.timedelta(minutes=slot_duration)
        if end > day_end:
            raise ValueError('Timeslots must end before midnight')
        if end == day_end:
            # 24:00 is not representable, the last slot of the day ends at 23:59:59
            slots.append((current.time(), datetime.time(23, 59, 59)))
        else:
            slots.append((current.time(), end.time()))
        current = end

    return slots


class TimeslotService:
    def __init__(self, session: Session):
        self.session = session
        self.repository = BookingRepository(session)
        self.infrastructure_repository = InfrastructureRepository(session)

    def create_timeslots(self, user: User, data: CreateTimeslots) -> CreateTimeslotsOutput:
        infrastructure = self.infrastructure_repository.get_by_id(data.infrastructure_id)
        if not infrastructure:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Infrastructure not found')

        ensure_infrastructure_access(self.session, user, infrastructure.id)

        if data.start_date < datetime.date.today():
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Start date cannot be in the past')

        if infrastructure.max_booking_duration and data.slot_duration > infrastructure.max_booking_duration:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                                detail=f'Slot duration exceeds the maximum booking duration of '
                                       f'{infrastructure.max_booking_duration} minutes')

        try:
            daily_slots = generate_daily_slots(data.daily_start_time, data.slot_duration, data.slots_per_day)
        except ValueError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

        created = 0
        skipped = 0
        day = data.start_date
        while day <= data.end_date:
            for start_time, end_time in daily_slots:
                if self.repository.count_overlapping(infrastructure.id, day, start_time, end_time):
                    skipped += 1
                    continue

                self.repository.create_timeslot(infrastructure.id, day, start_time, end_time)
                created += 1
            day += datetime.timedelta(days=1)

        self.session.commit()

        logger.info('Created %s timeslots for infrastructure %s (%s skipped)', created, infrastructure.id, skipped)
        return CreateTimeslotsOutput(message='Timeslots created successfully', created=created, skipped=skipped)

    def cancel_timeslots(self, user: User, data: CancelTimeslots) -> CancelTimeslotsOutput:
        timeslots = self.repository.get_timeslots_by_ids(data.ids)

        for infrastructure_id in {timeslot.infrastructure_id for timeslot in timeslots}:
            ensure_infrastructure_access(self.session, user, infrastructure_id)

        canceled = self.repository.cancel_timeslots(data.ids) if timeslots else 0
        self.session.commit()

        logger.info('Canceled %s timeslots', canceled)
        return CancelTimeslotsOutput(message='Timeslots canceled successfully', canceled=canceled)

    def force_status_update(self) -> ForceStatusUpdateOutput:
        counts = self.repository.update_past_statuses(datetime.datetime.now())
        self.session.commit()

        logger.info('Forced status update: %s', counts)
        return ForceStatusUpdateOutput(message='Status update forced successfully', **counts)

    def get_all_entries(self, user: User, infrastructure_id: int, start_date: Optional[datetime.date] = None,
                        end_date: Optional[datetime.date] = None,
                        limit: Optional[int] = None) -> List[BookingWithInfrastructure]:
        if not self.infrastructure_repository.get_by_id(infrastructure_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Infrastructure not found')

        ensure_infrastructure_access(self.session, user, infrastructure_id)

        return self.repository.get_all_entries(infrastructure_id, start_date, end_date, limit)
