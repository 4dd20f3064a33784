# appointments/services/booking_policy.py
from datetime import date, datetime
from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from typing import Any, Dict, Optional, Union
import logging

from doctors.models import Doctor
from doctors.services import DoctorService
from ..date_keys import parse_date_key, format_date_key, booking_window, InvalidDateKeyError
from .exceptions import (
    AppointmentValidationError,
    OutsideBookingWindowError,
    DoctorUnavailableError,
    SlotTakenError,
)

logger = logging.getLogger(__name__)


def to_local_date(value: Optional[Union[date, datetime]] = None) -> date:
    """Calendar day in the clinic timezone for a date, datetime or now"""
    if value is None:
        return timezone.localdate()
    if isinstance(value, datetime):
        if timezone.is_aware(value):
            return timezone.localtime(value).date()
        return value.date()
    return value


class BookingPolicy:
    """
    Decides whether a booking request may proceed. Checks run in a fixed order
    and the first failure wins:

        1. the date-key (and time label) are well formed
        2. the date lies inside the booking window
        3. the doctor is available
        4. the time label is not already booked that day

    Decisions are plain dicts:
        {'allowed': True, 'slot_date': ..., 'slot_time': ..., 'appointment_date': ...}
        {'allowed': False, 'reason': ..., 'message': ...}
    Evaluating a request never changes anything.
    """

    REASON_INVALID_DATE_KEY = 'invalid_date_key'
    REASON_INVALID_TIME_LABEL = 'invalid_time_label'
    REASON_TOO_SOON = 'too_soon'
    REASON_TOO_FAR = 'too_far'
    REASON_DOCTOR_UNAVAILABLE = 'doctor_unavailable'
    REASON_SLOT_TAKEN = 'slot_taken'

    @staticmethod
    def _reject(reason: str, message) -> Dict[str, Any]:
        return {'allowed': False, 'reason': reason, 'message': str(message)}

    @staticmethod
    def validate_request(slot_date: str, slot_time: str,
                         requested_on: Optional[Union[date, datetime]] = None) -> Dict[str, Any]:
        """
        Steps 1 and 2: shape of the request and the booking window.
        The accepted date-key is returned in canonical (unpadded) form.
        """
        try:
            appointment_date = parse_date_key(slot_date)
        except InvalidDateKeyError as e:
            return BookingPolicy._reject(BookingPolicy.REASON_INVALID_DATE_KEY, e)

        slot_time = (slot_time or '').strip() if isinstance(slot_time, str) else ''
        max_length = settings.APPOINTMENT_BOOKING.get('MAX_TIME_LABEL_LENGTH', 20)
        if not slot_time or len(slot_time) > max_length:
            return BookingPolicy._reject(
                BookingPolicy.REASON_INVALID_TIME_LABEL,
                _("Please select a valid time slot")
            )

        earliest, latest = booking_window(to_local_date(requested_on))
        if appointment_date < earliest:
            return BookingPolicy._reject(
                BookingPolicy.REASON_TOO_SOON,
                _("Appointments must be booked at least %(days)s days in advance") % {
                    'days': settings.APPOINTMENT_BOOKING['MIN_DAYS_AHEAD']
                }
            )
        if appointment_date > latest:
            return BookingPolicy._reject(
                BookingPolicy.REASON_TOO_FAR,
                _("Appointments cannot be booked more than %(months)s month(s) in advance") % {
                    'months': settings.APPOINTMENT_BOOKING['MAX_MONTHS_AHEAD']
                }
            )

        return {
            'allowed': True,
            'slot_date': format_date_key(appointment_date),
            'slot_time': slot_time,
            'appointment_date': appointment_date,
        }

    @staticmethod
    def evaluate(doctor: Doctor, slot_date: str, slot_time: str,
                 requested_on: Optional[Union[date, datetime]] = None) -> Dict[str, Any]:
        """All four checks against an already loaded (ideally locked) doctor"""
        decision = BookingPolicy.validate_request(slot_date, slot_time, requested_on)
        if not decision['allowed']:
            return decision

        if not doctor.available:
            return BookingPolicy._reject(BookingPolicy.REASON_DOCTOR_UNAVAILABLE, _("Doctor Not Available"))

        if doctor.is_slot_booked(decision['slot_date'], decision['slot_time']):
            return BookingPolicy._reject(BookingPolicy.REASON_SLOT_TAKEN, _("Slot Not Available"))

        return decision

    @staticmethod
    def propose_booking(doctor_id, slot_date: str, slot_time: str,
                        requested_on: Optional[Union[date, datetime]] = None) -> Dict[str, Any]:
        """
        Dry-run a booking request without locking.

        Raises:
            DoctorNotFoundError: when the request is well formed but the doctor does not exist
        """
        decision = BookingPolicy.validate_request(slot_date, slot_time, requested_on)
        if not decision['allowed']:
            return decision

        doctor = DoctorService.get_doctor_by_id(doctor_id)
        return BookingPolicy.evaluate(doctor, slot_date, slot_time, requested_on)

    @staticmethod
    def raise_for_decision(decision: Dict[str, Any]) -> None:
        """Turn a rejection into the matching exception"""
        if decision['allowed']:
            return

        reason = decision['reason']
        message = decision['message']
        logger.info(f"Booking rejected ({reason}): {message}")

        if reason in (BookingPolicy.REASON_INVALID_DATE_KEY, BookingPolicy.REASON_INVALID_TIME_LABEL):
            raise AppointmentValidationError(message)
        if reason in (BookingPolicy.REASON_TOO_SOON, BookingPolicy.REASON_TOO_FAR):
            raise OutsideBookingWindowError(message)
        if reason == BookingPolicy.REASON_DOCTOR_UNAVAILABLE:
            raise DoctorUnavailableError(message)
        raise SlotTakenError(message)
