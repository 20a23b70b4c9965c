"""Bookings domain - Modification fees, statistics, modify and cancel"""

from .router import router

__all__ = ["router"]
