"""Booking repository - Database operations for bookings"""

import logging
from datetime import date
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from ...models import Booking, BookingStatus
from ...shared.errors import DispatchFailure

logger = logging.getLogger(__name__)


class BookingRepository:
    """Repository for booking database operations"""

    @staticmethod
    def get_bookings(db: Session, user_id: str, status: Optional[BookingStatus] = None) -> list[Booking]:
        """Get all bookings for a user, newest date first"""
        query = db.query(Booking).filter(Booking.user_id == user_id)
        if status:
            query = query.filter(Booking.status == status)
        return query.order_by(Booking.booking_date.desc(), Booking.start_time.desc()).all()

    @staticmethod
    def get_booking_for_user(db: Session, booking_id: str, user_id: str) -> Optional[Booking]:
        """Get a booking by ID, only if it belongs to the user"""
        return (
            db.query(Booking)
            .options(joinedload(Booking.court))
            .filter(Booking.id == booking_id, Booking.user_id == user_id)
            .first()
        )

    @staticmethod
    def find_slot_conflict(
        db: Session, court_id: str, booking_date: date, start_time: str, exclude_id: str
    ) -> Optional[Booking]:
        """Find another active booking holding the same court slot"""
        return (
            db.query(Booking)
            .filter(
                Booking.court_id == court_id,
                Booking.booking_date == booking_date,
                Booking.start_time == start_time,
                Booking.status.in_([BookingStatus.CONFIRMED, BookingStatus.PENDING]),
                Booking.id != exclude_id,
            )
            .first()
        )

    @staticmethod
    def update_booking(db: Session, booking: Booking, **updates) -> Booking:
        for key, value in updates.items():
            setattr(booking, key, value)
        try:
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"❌ Failed to update booking {booking.id}: {type(e).__name__}: {e}")
            raise DispatchFailure("update booking") from e
        db.refresh(booking)
        return booking

    @staticmethod
    def get_booking_stats(db: Session, user_id: str, today: date) -> dict:
        """Count bookings per status and sum spend over completed bookings"""
        base = db.query(func.count(Booking.id)).filter(Booking.user_id == user_id)

        total = base.scalar() or 0
        upcoming = (
            base.filter(Booking.status == BookingStatus.CONFIRMED, Booking.booking_date >= today).scalar()
            or 0
        )
        completed = base.filter(Booking.status == BookingStatus.COMPLETED).scalar() or 0
        cancelled = base.filter(Booking.status == BookingStatus.CANCELLED).scalar() or 0
        total_spent = (
            db.query(func.sum(Booking.final_amount))
            .filter(Booking.user_id == user_id, Booking.status == BookingStatus.COMPLETED)
            .scalar()
        )

        return {
            "total_bookings": total,
            "upcoming_bookings": upcoming,
            "completed_bookings": completed,
            "cancelled_bookings": cancelled,
            "total_spent": Decimal(str(total_spent or 0)),
        }
