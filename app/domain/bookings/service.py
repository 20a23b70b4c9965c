"""Booking service - Modification fees, statistics and lifecycle changes"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from ... import config
from ...models import Booking, BookingStatus, User
from ...shared.errors import BadRequest, NotFound
from ...shared.validators import parse_booking_date, parse_slot_time
from .repository import BookingRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModificationFee:
    fee: Decimal
    original_amount: Decimal
    new_total: Decimal


def compute_modification_fee(booking: Booking, new_date: str, new_time: str) -> ModificationFee:
    """
    Quote the charge for moving a booking.

    Time-only changes on the same day are free; any date change costs the flat
    MODIFICATION_FEE no matter how far the booking moves. The booking is not
    modified.
    """
    original_date = booking.booking_date.isoformat()
    original_time = booking.start_time

    if original_date == new_date and original_time != new_time:
        fee = Decimal(0)
    elif original_date != new_date:
        fee = Decimal(config.MODIFICATION_FEE)
    else:
        fee = Decimal(0)

    original_amount = Decimal(str(booking.final_amount))
    return ModificationFee(fee=fee, original_amount=original_amount, new_total=original_amount + fee)


def _slot_start(booking: Booking) -> datetime:
    hours, minutes = (int(part) for part in booking.start_time.split(":"))
    return datetime.combine(booking.booking_date, datetime.min.time()) + timedelta(
        hours=hours, minutes=minutes
    )


def _shift_end_time(start_time: str, end_time: str, new_start: str) -> str:
    """
    Keep the booking's duration when its start moves.

    Raises:
        BadRequest: If the moved slot would run past midnight
    """
    fmt = "%H:%M"
    duration = datetime.strptime(end_time, fmt) - datetime.strptime(start_time, fmt)
    if duration <= timedelta(0):
        duration = timedelta(hours=1)
    start = datetime.strptime(new_start, fmt)
    end = start + duration
    if end.date() != start.date():
        raise BadRequest("The booking must end before midnight; choose an earlier start time")
    return end.strftime(fmt)


class BookingService:
    """Service layer for booking business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = BookingRepository()

    def list_bookings(self, user: User, status: Optional[str] = None) -> list[Booking]:
        booking_status = None
        if status:
            try:
                booking_status = BookingStatus(status.upper())
            except ValueError as e:
                raise BadRequest(f"Unknown booking status: {status}") from e
        return self.repo.get_bookings(self.db, user.id, booking_status)

    def get_booking(self, booking_id: str, user: User) -> Booking:
        """Get a booking owned by the user; someone else's booking is reported as missing"""
        booking = self.repo.get_booking_for_user(self.db, booking_id, user.id)
        if not booking:
            raise NotFound("Booking not found")
        return booking

    def get_modification_fee(
        self, booking_id: str, user: User, new_date: Optional[str], new_time: Optional[str]
    ) -> ModificationFee:
        parsed_date = parse_booking_date(new_date)
        parsed_time = parse_slot_time(new_time)

        logger.info(
            f"💰 Calculating modification fee: user={user.id} booking={booking_id} "
            f"new_date={parsed_date} new_time={parsed_time}"
        )
        booking = self.get_booking(booking_id, user)
        return compute_modification_fee(booking, parsed_date.isoformat(), parsed_time)

    def get_booking_stats(self, user: User) -> dict:
        logger.info(f"📊 Fetching booking statistics for user {user.id}")
        stats = self.repo.get_booking_stats(self.db, user.id, date.today())
        logger.info(f"✅ Booking statistics for user {user.id}: {stats}")
        return stats

    def _ensure_changeable(self, booking: Booking, verb: str, past: str) -> None:
        if booking.status != BookingStatus.CONFIRMED:
            raise BadRequest(f"Only confirmed bookings can be {past}")

        hours_until_booking = (_slot_start(booking) - datetime.now()).total_seconds() / 3600
        if hours_until_booking < config.MODIFICATION_CUTOFF_HOURS:
            raise BadRequest(
                f"Cannot {verb} booking less than "
                f"{config.MODIFICATION_CUTOFF_HOURS} hours before start time"
            )

    def modify_booking(
        self, booking_id: str, user: User, new_date: Optional[str], new_time: Optional[str]
    ) -> tuple[Booking, Decimal]:
        """Move a confirmed booking to a new slot on the same court and charge the fee"""
        parsed_date = parse_booking_date(new_date)
        parsed_time = parse_slot_time(new_time)

        logger.info(
            f"📝 Attempting to modify booking {booking_id} for user {user.id} "
            f"to {parsed_date} {parsed_time}"
        )
        booking = self.get_booking(booking_id, user)
        self._ensure_changeable(booking, "modify", "modified")
        new_end_time = _shift_end_time(booking.start_time, booking.end_time, parsed_time)

        conflict = self.repo.find_slot_conflict(
            self.db, booking.court_id, parsed_date, parsed_time, exclude_id=booking.id
        )
        if conflict:
            raise BadRequest("The selected time slot is not available")

        quote = compute_modification_fee(booking, parsed_date.isoformat(), parsed_time)
        updated = self.repo.update_booking(
            self.db,
            booking,
            booking_date=parsed_date,
            start_time=parsed_time,
            end_time=new_end_time,
            final_amount=quote.new_total,
        )

        logger.info(f"✅ Booking {booking_id} modified, fee charged: {quote.fee}")
        return updated, quote.fee

    def cancel_booking(self, booking_id: str, user: User) -> Booking:
        logger.info(f"🗑️ Attempting to cancel booking {booking_id} for user {user.id}")
        booking = self.get_booking(booking_id, user)
        self._ensure_changeable(booking, "cancel", "cancelled")

        updated = self.repo.update_booking(
            self.db, booking, status=BookingStatus.CANCELLED, cancelled_at=datetime.now()
        )
        logger.info(f"✅ Booking {booking_id} cancelled")
        return updated
