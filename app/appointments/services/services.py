# appointments/services/services.py
from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import transaction, DatabaseError, IntegrityError
from django.utils import timezone
from django.utils.translation import gettext_lazy as _
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Union
import logging

from core.notifications import (
    NotificationGateway,
    get_notification_gateway,
    DOCTOR_NEW_APPOINTMENT,
    APPOINTMENT_CANCELLED,
)
from doctors.models import Doctor
from users.models import User
from ..models import Appointment
from .booking_policy import BookingPolicy
from .ledger_service import SlotLedgerService, retry_on_lock_contention
from .exceptions import (
    AppointmentNotFoundError,
    AppointmentAccessDeniedError,
    AppointmentStateError,
    AppointmentStorageError,
    AppointmentValidationError,
    SlotConflictError,
    SlotTakenError,
)

logger = logging.getLogger(__name__)


DEFAULT_CANCEL_REASONS = {
    Appointment.CANCELLED_BY_PATIENT: 'Cancelled by patient',
    Appointment.CANCELLED_BY_ADMIN: 'Cancelled by admin',
}


def _appointment_payload(appointment: Appointment) -> Dict[str, Any]:
    """Template context shared by appointment emails, built from the snapshots"""
    user_data = appointment.user_data or {}
    patient_name = ' '.join(
        part for part in (user_data.get('first_name'), user_data.get('last_name')) if part
    )
    return {
        'recipient': (appointment.doc_data or {}).get('email'),
        'doctor_name': (appointment.doc_data or {}).get('name', ''),
        'patient_name': patient_name,
        'patient_email': user_data.get('email', ''),
        'slot_date': appointment.slot_date,
        'slot_time': appointment.slot_time,
        'amount': str(appointment.amount),
    }


# ============================================================================
# BOOKING
# ============================================================================

class AppointmentBookingService:
    """
    Creates appointments. The ledger entry and the appointment row are written
    in one transaction under the doctor's row lock.
    """

    @staticmethod
    def book_appointment(user: User, doctor_id, slot_date: str, slot_time: str,
                         requested_on: Optional[Union[date, datetime]] = None,
                         notifier: Optional[NotificationGateway] = None) -> Appointment:
        """
        Book slot_time on slot_date with a doctor.

        Raises:
            AppointmentAccessDeniedError: user is not an approved patient
            AppointmentValidationError: malformed date-key or time label
            OutsideBookingWindowError: date too soon or too far ahead
            DoctorNotFoundError: no such doctor
            DoctorUnavailableError: doctor not accepting bookings
            SlotTakenError: time label already booked that day
            AppointmentStorageError: database failure
        """
        if not user.can_book_appointments:
            raise AppointmentAccessDeniedError("Only approved patients can book appointments")

        # Cheap checks before taking the doctor lock
        decision = BookingPolicy.validate_request(slot_date, slot_time, requested_on)
        BookingPolicy.raise_for_decision(decision)

        try:
            appointment = AppointmentBookingService._book_locked(
                user, doctor_id, decision['slot_date'], decision['slot_time'],
                requested_on, notifier
            )
        except SlotConflictError as e:
            logger.warning(f"Booking conflict for doctor {doctor_id}: {str(e)}")
            raise SlotTakenError(str(_("Slot Not Available")))
        except IntegrityError as e:
            logger.warning(f"Duplicate live appointment rejected for doctor {doctor_id}: {str(e)}")
            raise SlotTakenError(str(_("Slot Not Available")))
        except DatabaseError as e:
            logger.error(f"Booking failed for doctor {doctor_id}: {str(e)}")
            raise AppointmentStorageError(f"Could not book appointment: {str(e)}")

        logger.info(
            f"Appointment {appointment.id} booked by {user.email} with doctor {doctor_id} "
            f"on {appointment.slot_date} {appointment.slot_time}"
        )
        return appointment

    @staticmethod
    @retry_on_lock_contention
    def _book_locked(user: User, doctor_id, slot_date: str, slot_time: str,
                     requested_on, notifier: Optional[NotificationGateway]) -> Appointment:
        with transaction.atomic():
            doctor = SlotLedgerService.lock_doctor(doctor_id)

            decision = BookingPolicy.evaluate(doctor, slot_date, slot_time, requested_on)
            BookingPolicy.raise_for_decision(decision)

            SlotLedgerService.reserve_slot(doctor, slot_date, slot_time)

            appointment = Appointment.objects.create(
                user=user,
                doctor=doctor,
                user_data=user.to_snapshot(),
                doc_data=doctor.to_snapshot(),
                slot_date=slot_date,
                slot_time=slot_time,
                amount=doctor.fees,
                booked_at=timezone.now(),
            )

            payload = _appointment_payload(appointment)
            transaction.on_commit(
                lambda: (notifier or get_notification_gateway()).notify(DOCTOR_NEW_APPOINTMENT, payload)
            )

        return appointment


# ============================================================================
# LIFECYCLE MANAGEMENT
# ============================================================================

class AppointmentManagementService:
    """
    Cancel, approve and read appointments
    """

    @staticmethod
    def get_appointment_by_id(appointment_id, user: Optional[User] = None) -> Appointment:
        """
        Fetch an appointment. When user is a patient, it must be theirs.
        """
        try:
            appointment = Appointment.objects.select_related('doctor', 'user').get(id=appointment_id)
        except (Appointment.DoesNotExist, ValidationError, ValueError):
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

        if user is not None and not (user.is_admin or user.is_staff) and appointment.user_id != user.id:
            raise AppointmentAccessDeniedError("You can only access your own appointments")

        return appointment

    @staticmethod
    def get_user_appointments(user: User):
        return Appointment.objects.filter(user=user).select_related('doctor').order_by('-booked_at')

    @staticmethod
    def list_all_appointments(as_of: Optional[Union[date, datetime]] = None):
        """
        Admin listing. Past appointments are expired first so the list is current.
        """
        from .expiry_service import AppointmentExpiryService

        AppointmentExpiryService.sweep(as_of)
        return Appointment.objects.select_related('doctor', 'user').order_by('-booked_at')

    @staticmethod
    def apply_cancellation(appointment: Appointment, actor: str, reason: str) -> bool:
        """
        Cancel a locked, not yet cancelled appointment and free its slot.
        Must run inside transaction.atomic(). Returns whether a ledger entry was removed.
        """
        appointment.cancelled = True
        appointment.is_completed = False
        appointment.cancelled_by = actor
        appointment.cancellation_reason = reason[:255]
        appointment.cancelled_at = timezone.now()
        appointment.save(update_fields=[
            'cancelled', 'is_completed', 'cancelled_by', 'cancellation_reason',
            'cancelled_at', 'updated_at'
        ])

        return SlotLedgerService.release_slot(appointment.doctor_id, appointment.slot_date, appointment.slot_time)

    @staticmethod
    def cancel_appointment(appointment_id, actor: str, user: Optional[User] = None,
                           reason: Optional[str] = None,
                           notifier: Optional[NotificationGateway] = None) -> Dict[str, Any]:
        """
        Cancel an ACTIVE or APPROVED appointment and release its slot.

        Cancelling an already cancelled appointment is a no-op.

        Args:
            appointment_id: Appointment to cancel
            actor: 'patient', 'admin' or 'system'
            user: Calling patient; required when actor is 'patient'
            reason: Free text; a default per actor is used when blank

        Returns:
            dict: appointment, already_cancelled, slot_released

        Raises:
            AppointmentValidationError: unknown actor
            AppointmentNotFoundError: no such appointment
            AppointmentAccessDeniedError: patient does not own the appointment
            AppointmentStorageError: database failure
        """
        valid_actors = dict(Appointment.CANCELLED_BY_CHOICES)
        if actor not in valid_actors:
            raise AppointmentValidationError(f"Unknown cancellation actor '{actor}'")

        reason = (reason or '').strip() or DEFAULT_CANCEL_REASONS.get(
            actor, settings.APPOINTMENT_BOOKING['AUTO_CANCEL_REASON']
        )

        try:
            with transaction.atomic():
                try:
                    appointment = Appointment.objects.select_for_update().get(id=appointment_id)
                except (Appointment.DoesNotExist, ValidationError, ValueError):
                    raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

                if actor == Appointment.CANCELLED_BY_PATIENT:
                    if user is None or appointment.user_id != user.id:
                        raise AppointmentAccessDeniedError("You can only cancel your own appointments")

                if appointment.cancelled:
                    logger.info(f"Appointment {appointment.id} already cancelled, nothing to do")
                    return {
                        'appointment': appointment,
                        'already_cancelled': True,
                        'slot_released': False,
                    }

                slot_released = AppointmentManagementService.apply_cancellation(appointment, actor, reason)

                if actor != Appointment.CANCELLED_BY_SYSTEM:
                    payload = {
                        **_appointment_payload(appointment),
                        'cancelled_by': actor,
                        'reason': reason,
                    }
                    transaction.on_commit(
                        lambda: (notifier or get_notification_gateway()).notify(APPOINTMENT_CANCELLED, payload)
                    )
        except DatabaseError as e:
            logger.error(f"Cancelling appointment {appointment_id} failed: {str(e)}")
            raise AppointmentStorageError(f"Could not cancel appointment: {str(e)}")

        logger.info(f"Appointment {appointment.id} cancelled by {actor}: {reason}")
        return {
            'appointment': appointment,
            'already_cancelled': False,
            'slot_released': slot_released,
        }

    @staticmethod
    def approve_appointment(appointment_id) -> Dict[str, Any]:
        """
        Mark an ACTIVE appointment as approved. The ledger is untouched.

        Raises:
            AppointmentNotFoundError: no such appointment
            AppointmentStateError: appointment is cancelled
        """
        with transaction.atomic():
            try:
                appointment = Appointment.objects.select_for_update().get(id=appointment_id)
            except (Appointment.DoesNotExist, ValidationError, ValueError):
                raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

            if appointment.cancelled:
                raise AppointmentStateError("Cancelled appointments cannot be approved")

            if appointment.is_completed:
                return {'appointment': appointment, 'already_approved': True}

            appointment.is_completed = True
            appointment.approved_at = timezone.now()
            appointment.save(update_fields=['is_completed', 'approved_at', 'updated_at'])

        logger.info(f"Appointment {appointment.id} approved")
        return {'appointment': appointment, 'already_approved': False}

    @staticmethod
    def mark_appointment_read(appointment_id, user: User) -> Appointment:
        appointment = AppointmentManagementService.get_appointment_by_id(appointment_id, user=user)
        if not appointment.is_read:
            appointment.is_read = True
            appointment.save(update_fields=['is_read', 'updated_at'])
        return appointment


# ============================================================================
# STATISTICS
# ============================================================================

def compute_user_stats(appointments: Iterable[Appointment]) -> Dict[str, Dict[str, int]]:
    """
    Per-user counts keyed by user id: total, approved, pending, cancelled.
    pending + approved + cancelled always equals total.
    """
    stats: Dict[str, Dict[str, int]] = {}
    for appointment in appointments:
        if appointment.user_id is None:
            continue

        entry = stats.setdefault(
            str(appointment.user_id),
            {'total': 0, 'approved': 0, 'pending': 0, 'cancelled': 0}
        )
        entry['total'] += 1
        if appointment.cancelled:
            entry['cancelled'] += 1
        elif appointment.is_completed:
            entry['approved'] += 1
        else:
            entry['pending'] += 1
    return stats


class AppointmentAnalyticsService:
    """
    Read-only summaries for the admin dashboard
    """

    @staticmethod
    def compute_user_stats(appointments: Iterable[Appointment]) -> Dict[str, Dict[str, int]]:
        return compute_user_stats(appointments)

    @staticmethod
    def get_users_appointment_stats() -> Dict[str, Dict[str, int]]:
        appointments = Appointment.objects.only('user_id', 'cancelled', 'is_completed')
        return compute_user_stats(appointments)

    @staticmethod
    def get_dashboard_data(limit: Optional[int] = None) -> Dict[str, Any]:
        """Counts plus the most recently booked appointments"""
        if limit is None:
            limit = settings.APPOINTMENT_BOOKING.get('DASHBOARD_LATEST_LIMIT', 5)

        latest: List[Appointment] = list(
            Appointment.objects.select_related('doctor', 'user').order_by('-booked_at')[:limit]
        )
        return {
            'doctors': Doctor.objects.count(),
            'appointments': Appointment.objects.count(),
            'patients': User.objects.filter(user_type='Patient').count(),
            'latest_appointments': latest,
        }
