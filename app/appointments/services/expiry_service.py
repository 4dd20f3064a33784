# appointments/services/expiry_service.py
from django.conf import settings
from django.db import transaction, DatabaseError
from datetime import date, datetime
from typing import List, Optional, Union
import logging

from ..date_keys import parse_date_key, InvalidDateKeyError
from ..models import Appointment
from .booking_policy import to_local_date
from .services import AppointmentManagementService

logger = logging.getLogger(__name__)


class AppointmentExpiryService:
    """
    Cancels ACTIVE appointments whose day has passed.

    Runs before the admin appointment list and from the nightly Celery beat task.
    Approved appointments are left alone. A second run over the same data
    changes nothing and reports 0.
    """

    @staticmethod
    def find_expired(as_of_date: date) -> List[Appointment]:
        """ACTIVE appointments dated strictly before as_of_date"""
        expired = []
        candidates = Appointment.objects.filter(cancelled=False, is_completed=False).only(
            'id', 'slot_date', 'slot_time', 'doctor_id'
        )
        for appointment in candidates:
            try:
                appointment_date = parse_date_key(appointment.slot_date)
            except InvalidDateKeyError:
                logger.warning(
                    f"Skipping appointment {appointment.id} with malformed date-key '{appointment.slot_date}'"
                )
                continue
            if appointment_date < as_of_date:
                expired.append(appointment)
        return expired

    @staticmethod
    def sweep(as_of: Optional[Union[date, datetime]] = None) -> int:
        """
        Cancel every ACTIVE appointment dated before as_of (default: today in the
        clinic timezone) with cancelled_by='system' and release its slot.

        Returns:
            int: number of appointments cancelled by this run
        """
        as_of_date = to_local_date(as_of)
        reason = settings.APPOINTMENT_BOOKING['AUTO_CANCEL_REASON']
        cancelled_count = 0

        for candidate in AppointmentExpiryService.find_expired(as_of_date):
            try:
                with transaction.atomic():
                    appointment = Appointment.objects.select_for_update().get(id=candidate.id)
                    # Re-check under the lock; a patient or admin may have acted meanwhile
                    if appointment.cancelled or appointment.is_completed:
                        continue

                    AppointmentManagementService.apply_cancellation(
                        appointment, Appointment.CANCELLED_BY_SYSTEM, reason
                    )
                cancelled_count += 1
            except Appointment.DoesNotExist:
                continue
            except DatabaseError as e:
                logger.error(f"Auto-cancel of appointment {candidate.id} failed: {str(e)}")

        if cancelled_count:
            logger.info(f"Auto-cancelled {cancelled_count} past appointments (as of {as_of_date})")
        else:
            logger.debug(f"No past appointments to auto-cancel (as of {as_of_date})")
        return cancelled_count
