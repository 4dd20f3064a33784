# appointments/services/ledger_service.py
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction, OperationalError
from functools import wraps
from typing import List
import logging
import time

from doctors.models import Doctor
from doctors.services import DoctorNotFoundError
from .exceptions import SlotConflictError

logger = logging.getLogger(__name__)


def retry_on_lock_contention(func):
    """
    Re-run a ledger transaction when the database reports lock contention
    (lock timeout, deadlock, serialization failure).

    Only retries when called outside an enclosing transaction; a failed
    statement poisons any outer transaction, so there it fails fast.
    After the last attempt the contention surfaces as SlotConflictError.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        max_attempts = settings.APPOINTMENT_BOOKING.get('LEDGER_LOCK_MAX_ATTEMPTS', 3)
        for attempt in range(1, max_attempts + 1):
            try:
                return func(*args, **kwargs)
            except OperationalError as e:
                logger.warning(f"Ledger lock contention (attempt {attempt}/{max_attempts}): {str(e)}")
                if attempt == max_attempts or transaction.get_connection().in_atomic_block:
                    raise SlotConflictError(f"Could not lock the doctor's slot ledger: {str(e)}") from e
                time.sleep(0.05 * attempt)
    return wrapper


class SlotLedgerService:
    """
    Serialized access to a doctor's slots_booked ledger.

    All writes happen while holding the doctor's row lock (SELECT ... FOR UPDATE),
    so two bookings for the same doctor never interleave their read-modify-write.
    """

    @staticmethod
    def lock_doctor(doctor_id) -> Doctor:
        """
        Lock and return the doctor row. Must be called inside transaction.atomic().
        """
        try:
            return Doctor.objects.select_for_update().get(id=doctor_id)
        except (Doctor.DoesNotExist, ValidationError, ValueError):
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")

    @staticmethod
    def get_booked_times(doctor_id, slot_date: str) -> List[str]:
        try:
            doctor = Doctor.objects.only('slots_booked').get(id=doctor_id)
        except (Doctor.DoesNotExist, ValidationError, ValueError):
            raise DoctorNotFoundError(f"Doctor {doctor_id} not found")
        return doctor.booked_times(slot_date)

    @staticmethod
    def reserve_slot(doctor: Doctor, slot_date: str, slot_time: str) -> None:
        """
        Append slot_time under slot_date on a doctor obtained from lock_doctor().

        Raises:
            SlotConflictError: the label is already present
        """
        with transaction.atomic():
            try:
                doctor.add_booked_slot(slot_date, slot_time)
            except ValidationError:
                raise SlotConflictError(f"{slot_date} {slot_time} is already booked for doctor {doctor.id}")

        logger.info(f"Ledger: reserved {slot_date} {slot_time} for doctor {doctor.id}")

    @staticmethod
    def release_slot(doctor_id, slot_date: str, slot_time: str) -> bool:
        """
        Remove slot_time from slot_date. Idempotent: a missing doctor, date-key or
        label is a no-op returning False. Other labels and dates are untouched.
        """
        if doctor_id is None:
            return False

        with transaction.atomic():
            try:
                doctor = SlotLedgerService.lock_doctor(doctor_id)
            except DoctorNotFoundError:
                logger.warning(f"Ledger: doctor {doctor_id} no longer exists, nothing to release")
                return False

            released = doctor.remove_booked_slot(slot_date, slot_time)

        if released:
            logger.info(f"Ledger: released {slot_date} {slot_time} for doctor {doctor_id}")
        else:
            logger.info(f"Ledger: {slot_date} {slot_time} was not booked for doctor {doctor_id}")
        return released
