"""Booking domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class ModificationRequest(BaseModel):
    """Proposed new slot; validated by the service so a missing field is a 400"""

    newDate: Optional[str] = None
    newTime: Optional[str] = None


class ModificationFeeResponse(BaseModel):
    fee: float
    originalAmount: float
    newTotal: float


class BookingStatsResponse(BaseModel):
    totalBookings: int
    upcomingBookings: int
    completedBookings: int
    cancelledBookings: int
    totalSpent: float


class BookingResponse(BaseModel):
    id: str
    courtId: str
    facilityId: str
    status: str
    bookingDate: date
    startTime: str
    endTime: str
    pricePerHour: Optional[float] = None
    finalAmount: float
    cancelledAt: Optional[datetime] = None


class ModifiedBookingResponse(BaseModel):
    message: str
    booking: BookingResponse
    modificationFee: float


class CancelledBookingResponse(BaseModel):
    message: str
    booking: BookingResponse
