from sqlalchemy import Column, Integer, String, Boolean, DateTime, Date, Time, ForeignKey, Text, CheckConstraint, Index
from sqlalchemy.orm import relationship
from sqlalchemy.schema import PrimaryKeyConstraint

from db.database import Base
from util import utcnow


class UserRole:
    ADMIN = 'admin'
    MANAGER = 'manager'
    FACULTY = 'faculty'
    STUDENT = 'student'
    GUEST = 'guest'

    ALL = (ADMIN, MANAGER, FACULTY, STUDENT, GUEST)


class BookingType:
    TIMESLOT = 'timeslot'
    BOOKING = 'booking'


class BookingStatus:
    AVAILABLE = 'available'
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    COMPLETED = 'completed'
    EXPIRED = 'expired'
    CANCELED = 'canceled'


class QuestionType:
    TEXT = 'text'
    NUMBER = 'number'
    DROPDOWN = 'dropdown'
    DOCUMENT = 'document'

    ALL = (TEXT, NUMBER, DROPDOWN, DOCUMENT)


class User(Base):
    """
    A registered account. Guests are created implicitly by the guest booking flow with role `guest`.
    """
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False)  # admin / manager / faculty / student / guest
    is_verified = Column(Boolean, nullable=False, default=False)
    is_blacklisted = Column(Boolean, nullable=False, default=False)
    email_notifications = Column(Boolean, nullable=False, default=True)
    verification_token = Column(String(255), nullable=True, index=True)
    verification_token_expires = Column(DateTime, nullable=True)
    password_reset_token = Column(String(255), nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    managed_infrastructures = relationship('InfrastructureManager', back_populates='user',
                                           cascade='all, delete-orphan')


class Infrastructure(Base):
    """
    A bookable room or piece of equipment. `max_booking_duration` is in minutes.
    """
    __tablename__ = 'infrastructures'

    id = Column(Integer, primary_key=True, nullable=False)
    name = Column(String(100), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    location = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    max_booking_duration = Column(Integer, nullable=True)

    managers = relationship('InfrastructureManager', back_populates='infrastructure',
                            cascade='all, delete-orphan')
    questions = relationship('InfrastructureQuestion', back_populates='infrastructure',
                             order_by='InfrastructureQuestion.display_order')
    bookings = relationship('Booking', back_populates='infrastructure')


class InfrastructureManager(Base):
    __tablename__ = 'infrastructure_managers'

    user_id = Column(Integer, ForeignKey('users.id'), primary_key=True)
    user = relationship('User', back_populates='managed_infrastructures')
    infrastructure_id = Column(Integer, ForeignKey('infrastructures.id'), primary_key=True)
    infrastructure = relationship('Infrastructure', back_populates='managers')

    # composite primary key
    __table_args__ = (
        PrimaryKeyConstraint('user_id', 'infrastructure_id'),
    )


class Booking(Base):
    """
    Timeslots and bookings share one table. An available timeslot turns into a booking in place when a user
    claims it, so `booking_type` and `status` together describe what a row is.
    """
    __tablename__ = 'bookings'

    id = Column(Integer, primary_key=True, nullable=False)
    booking_type = Column(String(20), nullable=False, default=BookingType.TIMESLOT)
    user_email = Column(String(255), ForeignKey('users.email'), nullable=True)
    infrastructure_id = Column(Integer, ForeignKey('infrastructures.id'), nullable=False)
    infrastructure = relationship('Infrastructure', back_populates='bookings')
    booking_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    status = Column(String(20), nullable=False, default=BookingStatus.AVAILABLE)
    purpose = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    answers = relationship('BookingAnswer', back_populates='booking', cascade='all, delete-orphan')

    __table_args__ = (
        CheckConstraint(
            "(booking_type = 'timeslot' AND user_email IS NULL) OR "
            "(booking_type = 'booking' AND user_email IS NOT NULL)",
            name='check_timeslot_has_no_user'
        ),
        Index('idx_infra_date_status', 'infrastructure_id', 'booking_date', 'status'),
        Index('idx_user_bookings', 'user_email', 'booking_type', 'status'),
    )


class InfrastructureQuestion(Base):
    __tablename__ = 'infrastructure_questions'

    id = Column(Integer, primary_key=True, nullable=False)
    infrastructure_id = Column(Integer, ForeignKey('infrastructures.id'), nullable=False)
    infrastructure = relationship('Infrastructure', back_populates='questions')
    question_text = Column(Text, nullable=False)
    question_type = Column(String(20), nullable=False)  # text / number / dropdown / document
    is_required = Column(Boolean, nullable=False, default=False)
    options = Column(Text, nullable=True)
    display_order = Column(Integer, nullable=False, default=0)


class BookingAnswer(Base):
    __tablename__ = 'booking_answers'

    id = Column(Integer, primary_key=True, nullable=False)
    booking_id = Column(Integer, ForeignKey('bookings.id'), nullable=False)
    booking = relationship('Booking', back_populates='answers')
    question_id = Column(Integer, ForeignKey('infrastructure_questions.id'), nullable=False)
    answer_text = Column(Text, nullable=True)
    document_path = Column(String(500), nullable=True)


class EmailActionToken(Base):
    """
    Single use token behind an emailed link. `booking_id` points at the booking (or, for guest confirmations, the
    timeslot) the link acts on.
    """
    __tablename__ = 'email_action_tokens'

    id = Column(Integer, primary_key=True, nullable=False)
    token = Column(String(255), nullable=False, unique=True, index=True)
    booking_id = Column(Integer, ForeignKey('bookings.id'), nullable=False)
    expires = Column(DateTime, nullable=False)
    used = Column(Boolean, nullable=False, default=False)
    used_at = Column(DateTime, nullable=True)
    token_metadata = Column('metadata', Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
