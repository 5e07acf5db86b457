import datetime
from typing import List, Optional

from sqlalchemy import func, or_, and_
from sqlalchemy.orm import Session

from db.models import Booking, BookingAnswer, BookingStatus, BookingType, Infrastructure, InfrastructureQuestion, User
from schemas.booking import BookingWithInfrastructure

# statuses that keep a time window occupied
BLOCKING_STATUSES = (BookingStatus.AVAILABLE, BookingStatus.PENDING, BookingStatus.APPROVED)


def _with_infrastructure(booking: Booking, name: str, location: Optional[str],
                         user_role: Optional[str] = None) -> BookingWithInfrastructure:
    return BookingWithInfrastructure(
        **{column.name: getattr(booking, column.name) for column in Booking.__table__.columns},
        infrastructure_name=name,
        infrastructure_location=location,
        user_role=user_role,
    )


class BookingRepository:
    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, _id: int) -> Optional[Booking]:
        return self.session.query(Booking).filter_by(id=_id).first()

    def get_booking_with_infrastructure(self, _id: int) -> Optional[BookingWithInfrastructure]:
        row = self.session.query(Booking, Infrastructure.name, Infrastructure.location) \
            .join(Infrastructure, Infrastructure.id == Booking.infrastructure_id) \
            .filter(Booking.id == _id) \
            .first()

        if not row:
            return None

        return _with_infrastructure(*row)

    def get_available_timeslot(self, _id: int) -> Optional[Booking]:
        return self.session.query(Booking) \
            .filter(Booking.id == _id,
                    Booking.booking_type == BookingType.TIMESLOT,
                    Booking.status == BookingStatus.AVAILABLE) \
            .first()

    def get_available_timeslots(self, infrastructure_id: int, from_date: datetime.date,
                                on_date: Optional[datetime.date] = None) -> List[Booking]:
        query = self.session.query(Booking) \
            .filter(Booking.infrastructure_id == infrastructure_id,
                    Booking.booking_type == BookingType.TIMESLOT,
                    Booking.status == BookingStatus.AVAILABLE,
                    Booking.booking_date >= from_date)

        if on_date:
            query = query.filter(Booking.booking_date == on_date)

        return query.order_by(Booking.booking_date, Booking.start_time).all()

    def claim_timeslot(self, timeslot_id: int, email: str, purpose: str) -> int:
        """
        Turns an available timeslot into a pending booking in a single conditional UPDATE.
        Returns the number of affected rows, 0 when the slot is gone or already claimed.
        """
        return self.session.query(Booking) \
            .filter(Booking.id == timeslot_id,
                    Booking.booking_type == BookingType.TIMESLOT,
                    Booking.status == BookingStatus.AVAILABLE) \
            .update({
                Booking.booking_type: BookingType.BOOKING,
                Booking.user_email: email,
                Booking.purpose: purpose,
                Booking.status: BookingStatus.PENDING,
            }, synchronize_session='fetch')

    def set_status(self, booking_id: int, new_status: str, from_statuses) -> int:
        return self.session.query(Booking) \
            .filter(Booking.id == booking_id,
                    Booking.booking_type == BookingType.BOOKING,
                    Booking.status.in_(from_statuses)) \
            .update({Booking.status: new_status}, synchronize_session='fetch')

    def get_overlapping_pending(self, booking: Booking) -> List[Booking]:
        """
        Other pending bookings on the same infrastructure and date whose window strictly overlaps `booking`.
        Bookings that only touch at an edge do not overlap.
        """
        return self.session.query(Booking) \
            .filter(Booking.id != booking.id,
                    Booking.infrastructure_id == booking.infrastructure_id,
                    Booking.booking_date == booking.booking_date,
                    Booking.booking_type == BookingType.BOOKING,
                    Booking.status == BookingStatus.PENDING,
                    Booking.start_time < booking.end_time,
                    Booking.end_time > booking.start_time) \
            .all()

    def reject_bookings(self, booking_ids: List[int]) -> int:
        if not booking_ids:
            return 0

        return self.session.query(Booking) \
            .filter(Booking.id.in_(booking_ids),
                    Booking.booking_type == BookingType.BOOKING,
                    Booking.status == BookingStatus.PENDING) \
            .update({Booking.status: BookingStatus.REJECTED}, synchronize_session='fetch')

    def count_overlapping(self, infrastructure_id: int, booking_date: datetime.date,
                          start_time: datetime.time, end_time: datetime.time) -> int:
        return self.session.query(func.count(Booking.id)) \
            .filter(Booking.infrastructure_id == infrastructure_id,
                    Booking.booking_date == booking_date,
                    Booking.status.in_(BLOCKING_STATUSES),
                    Booking.start_time < end_time,
                    Booking.end_time > start_time) \
            .scalar() or 0

    def create_timeslot(self, infrastructure_id: int, booking_date: datetime.date,
                        start_time: datetime.time, end_time: datetime.time) -> Booking:
        timeslot = Booking(
            booking_type=BookingType.TIMESLOT,
            infrastructure_id=infrastructure_id,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            status=BookingStatus.AVAILABLE,
        )
        self.session.add(timeslot)
        self.session.flush()

        return timeslot

    def get_timeslots_by_ids(self, ids: List[int]) -> List[Booking]:
        return self.session.query(Booking) \
            .filter(Booking.id.in_(ids), Booking.booking_type == BookingType.TIMESLOT) \
            .all()

    def cancel_timeslots(self, ids: List[int]) -> int:
        return self.session.query(Booking) \
            .filter(Booking.id.in_(ids), Booking.booking_type == BookingType.TIMESLOT) \
            .update({Booking.status: BookingStatus.CANCELED}, synchronize_session='fetch')

    def update_past_statuses(self, now: datetime.datetime) -> dict:
        """
        Closes every row whose end lies before `now`: approved bookings complete, pending bookings and
        available timeslots expire.
        """
        ended = or_(
            Booking.booking_date < now.date(),
            and_(Booking.booking_date == now.date(), Booking.end_time < now.time()),
        )

        completed = self.session.query(Booking) \
            .filter(ended, Booking.booking_type == BookingType.BOOKING, Booking.status == BookingStatus.APPROVED) \
            .update({Booking.status: BookingStatus.COMPLETED}, synchronize_session='fetch')

        expired = self.session.query(Booking) \
            .filter(ended, Booking.booking_type == BookingType.BOOKING, Booking.status == BookingStatus.PENDING) \
            .update({Booking.status: BookingStatus.EXPIRED}, synchronize_session='fetch')

        expired_timeslots = self.session.query(Booking) \
            .filter(ended, Booking.booking_type == BookingType.TIMESLOT, Booking.status == BookingStatus.AVAILABLE) \
            .update({Booking.status: BookingStatus.EXPIRED}, synchronize_session='fetch')

        return {'completed': completed, 'expired': expired, 'expired_timeslots': expired_timeslots}

    def get_user_bookings(self, email: str, limit: Optional[int] = None) -> List[BookingWithInfrastructure]:
        query = self.session.query(Booking, Infrastructure.name, Infrastructure.location) \
            .join(Infrastructure, Infrastructure.id == Booking.infrastructure_id) \
            .filter(Booking.user_email == email, Booking.booking_type == BookingType.BOOKING) \
            .order_by(Booking.booking_date.desc(), Booking.start_time.desc())

        if limit:
            query = query.limit(limit)

        return [_with_infrastructure(*row) for row in query.all()]

    def get_user_booking(self, _id: int, email: str) -> Optional[Booking]:
        return self.session.query(Booking) \
            .filter(Booking.id == _id, Booking.user_email == email, Booking.booking_type == BookingType.BOOKING) \
            .first()

    def get_all_entries(self, infrastructure_id: int, start_date: Optional[datetime.date] = None,
                        end_date: Optional[datetime.date] = None,
                        limit: Optional[int] = None) -> List[BookingWithInfrastructure]:
        query = self.session.query(Booking, Infrastructure.name, Infrastructure.location, User.role) \
            .join(Infrastructure, Infrastructure.id == Booking.infrastructure_id) \
            .outerjoin(User, User.email == Booking.user_email) \
            .filter(Booking.infrastructure_id == infrastructure_id)

        if start_date:
            query = query.filter(Booking.booking_date >= start_date)
        if end_date:
            query = query.filter(Booking.booking_date <= end_date)

        query = query.order_by(Booking.booking_date.desc(), Booking.start_time.asc())

        if limit:
            query = query.limit(limit)

        return [_with_infrastructure(*row) for row in query.all()]

    def count_bookings_on(self, email: str, day: datetime.date) -> int:
        """
        Non-canceled bookings `email` holds on `day`.
        """
        return self.session.query(func.count(Booking.id)) \
            .filter(Booking.user_email == email,
                    Booking.booking_type == BookingType.BOOKING,
                    Booking.status != BookingStatus.CANCELED,
                    Booking.booking_date == day) \
            .scalar() or 0

    def add_answer(self, booking_id: int, question_id: int, answer_text: str, document_path: Optional[str]):
        self.session.add(BookingAnswer(booking_id=booking_id, question_id=question_id, answer_text=answer_text,
                                       document_path=document_path))
        self.session.flush()

    def get_answers(self, booking_id: int) -> List[tuple]:
        return self.session.query(BookingAnswer, InfrastructureQuestion) \
            .join(InfrastructureQuestion, InfrastructureQuestion.id == BookingAnswer.question_id) \
            .filter(BookingAnswer.booking_id == booking_id) \
            .order_by(InfrastructureQuestion.display_order, InfrastructureQuestion.id) \
            .all()

    def get_answer(self, booking_id: int, question_id: int) -> Optional[BookingAnswer]:
        return self.session.query(BookingAnswer).filter_by(booking_id=booking_id, question_id=question_id).first()
