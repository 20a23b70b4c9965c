import enum
import uuid

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Numeric,
    String,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


def generate_id():
    """Generate an opaque string identifier"""
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    USER = "user"
    FACILITY_OWNER = "facility_owner"
    ADMIN = "admin"


class BookingStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(Enum(UserRole), default=UserRole.USER, nullable=False)
    email_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    bookings = relationship("Booking", back_populates="user", cascade="all, delete-orphan")
    facilities = relationship("Facility", back_populates="owner")


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(String(36), primary_key=True, default=generate_id)
    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    city = Column(String(100), nullable=True)
    opening_time = Column(String(5), default="06:00")  # HH:MM, facility-local
    closing_time = Column(String(5), default="22:00")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    owner = relationship("User", back_populates="facilities")
    courts = relationship("Court", back_populates="facility", cascade="all, delete-orphan")


class Court(Base):
    __tablename__ = "courts"

    id = Column(String(36), primary_key=True, default=generate_id)
    facility_id = Column(String(36), ForeignKey("facilities.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    sport_type = Column(String(50), nullable=True)
    price_per_hour = Column(Numeric(10, 2), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    facility = relationship("Facility", back_populates="courts")
    bookings = relationship("Booking", back_populates="court")


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (Index("ix_bookings_court_slot", "court_id", "booking_date", "start_time"),)

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    facility_id = Column(String(36), ForeignKey("facilities.id"), nullable=False)
    court_id = Column(String(36), ForeignKey("courts.id"), nullable=False)
    booking_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)  # HH:MM, facility-local
    end_time = Column(String(5), nullable=False)
    status = Column(Enum(BookingStatus), default=BookingStatus.PENDING, nullable=False, index=True)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    final_amount = Column(Numeric(10, 2), nullable=False, default=0)  # includes fees
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="bookings")
    facility = relationship("Facility")
    court = relationship("Court", back_populates="bookings")

    @property
    def price_per_hour(self):
        return self.court.price_per_hour if self.court else None
