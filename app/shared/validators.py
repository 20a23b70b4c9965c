"""Shared validation utilities"""

import re
from datetime import date, datetime
from typing import Any, Optional

from .errors import BadRequest

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def parse_booking_date(value: Optional[str], field: str = "newDate") -> date:
    """
    Parse a calendar date in YYYY-MM-DD form.

    Raises:
        BadRequest: If the value is missing or not a valid date
    """
    if not value or not isinstance(value, str):
        raise BadRequest(f"{field} is required")
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise BadRequest(f"{field} must be a date in YYYY-MM-DD format") from e


def parse_slot_time(value: Optional[str], field: str = "newTime") -> str:
    """Validate a 24h HH:MM time-of-day string and return it normalized"""
    if not value or not isinstance(value, str):
        raise BadRequest(f"{field} is required")
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise BadRequest(f"{field} must be a time in HH:MM format")
    return value


def missing_fields(payload: dict[str, Any], required: tuple[str, ...]) -> list[str]:
    """Return the required keys that are absent, None, or blank strings"""
    missing = []
    for name in required:
        value = payload.get(name)
        if value is None:
            missing.append(name)
        elif isinstance(value, str) and not value.strip():
            missing.append(name)
        elif isinstance(value, list) and not value:
            missing.append(name)
    return missing
