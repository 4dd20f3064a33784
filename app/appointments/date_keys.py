# appointments/date_keys.py
"""
Helpers for the "day_month_year" date-keys used by the slot ledger and
appointments (e.g. "7_3_2026" is 7 March 2026).
"""
import calendar
import re
from datetime import date, timedelta
from typing import Tuple

from django.conf import settings


DATE_KEY_PATTERN = re.compile(r"^(\d{1,2})_(\d{1,2})_(\d{4})$", re.ASCII)


class InvalidDateKeyError(ValueError):
    """Raised when a date-key is malformed or names a non-existent day"""
    pass


def parse_date_key(key: str) -> date:
    """
    Parse "day_month_year" into a date. Zero padding is accepted.

    Raises:
        InvalidDateKeyError: wrong shape, non-numeric parts or impossible date
    """
    if not isinstance(key, str):
        raise InvalidDateKeyError(f"Date-key must be a string, got {type(key).__name__}")

    match = DATE_KEY_PATTERN.match(key.strip())
    if not match:
        raise InvalidDateKeyError(f"Malformed date-key '{key}', expected day_month_year")

    day, month, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        raise InvalidDateKeyError(f"Date-key '{key}' is not a real calendar date")


def format_date_key(value: date) -> str:
    """Unpadded date-key for a date: date(2026, 3, 7) -> "7_3_2026" """
    return f"{value.day}_{value.month}_{value.year}"


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic, clamping to the last day of the target month"""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def booking_window(requested_on: date) -> Tuple[date, date]:
    """
    Inclusive (earliest, latest) bookable dates for a request made on requested_on
    """
    config = settings.APPOINTMENT_BOOKING
    earliest = requested_on + timedelta(days=config['MIN_DAYS_AHEAD'])
    latest = add_months(requested_on, config['MAX_MONTHS_AHEAD'])
    return earliest, latest
