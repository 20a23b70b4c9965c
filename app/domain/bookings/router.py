"""Booking router - FastAPI endpoints for booking operations"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import require_capability
from ...database import get_db
from ...models import Booking, User
from .schemas import (
    BookingResponse,
    BookingStatsResponse,
    CancelledBookingResponse,
    ModificationFeeResponse,
    ModificationRequest,
    ModifiedBookingResponse,
)
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def to_response(booking: Booking) -> BookingResponse:
    price = booking.price_per_hour
    return BookingResponse(
        id=booking.id,
        courtId=booking.court_id,
        facilityId=booking.facility_id,
        status=booking.status.value,
        bookingDate=booking.booking_date,
        startTime=booking.start_time,
        endTime=booking.end_time,
        pricePerHour=float(price) if price is not None else None,
        finalAmount=float(booking.final_amount),
        cancelledAt=booking.cancelled_at,
    )


@router.get("", response_model=list[BookingResponse])
async def list_bookings(
    status: Optional[str] = Query(None),
    current_user: User = Depends(require_capability("booking:read")),
    service: BookingService = Depends(get_booking_service),
):
    """Get the current user's bookings, optionally filtered by status"""
    return [to_response(b) for b in service.list_bookings(current_user, status)]


@router.get("/stats", response_model=BookingStatsResponse)
async def get_booking_stats(
    current_user: User = Depends(require_capability("booking:read")),
    service: BookingService = Depends(get_booking_service),
):
    """Dashboard summary of the current user's bookings"""
    stats = service.get_booking_stats(current_user)
    return BookingStatsResponse(
        totalBookings=stats["total_bookings"],
        upcomingBookings=stats["upcoming_bookings"],
        completedBookings=stats["completed_bookings"],
        cancelledBookings=stats["cancelled_bookings"],
        totalSpent=float(stats["total_spent"]),
    )


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    current_user: User = Depends(require_capability("booking:read")),
    service: BookingService = Depends(get_booking_service),
):
    return to_response(service.get_booking(booking_id, current_user))


@router.post("/{booking_id}/modification-fee", response_model=ModificationFeeResponse)
async def get_modification_fee(
    booking_id: str,
    data: ModificationRequest,
    current_user: User = Depends(require_capability("booking:read")),
    service: BookingService = Depends(get_booking_service),
):
    """Quote the fee for moving a booking without changing it"""
    quote = service.get_modification_fee(booking_id, current_user, data.newDate, data.newTime)
    return ModificationFeeResponse(
        fee=float(quote.fee),
        originalAmount=float(quote.original_amount),
        newTotal=float(quote.new_total),
    )


@router.post("/{booking_id}/modify", response_model=ModifiedBookingResponse)
async def modify_booking(
    booking_id: str,
    data: ModificationRequest,
    current_user: User = Depends(require_capability("booking:modify")),
    service: BookingService = Depends(get_booking_service),
):
    booking, fee = service.modify_booking(booking_id, current_user, data.newDate, data.newTime)
    return ModifiedBookingResponse(
        message="Booking modified successfully",
        booking=to_response(booking),
        modificationFee=float(fee),
    )


@router.post("/{booking_id}/cancel", response_model=CancelledBookingResponse)
async def cancel_booking(
    booking_id: str,
    current_user: User = Depends(require_capability("booking:modify")),
    service: BookingService = Depends(get_booking_service),
):
    booking = service.cancel_booking(booking_id, current_user)
    return CancelledBookingResponse(message="Booking cancelled successfully", booking=to_response(booking))
