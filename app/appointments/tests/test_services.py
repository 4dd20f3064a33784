import uuid
from unittest.mock import patch, MagicMock

from django.test import TestCase

from appointments.models import Appointment
from appointments.services import (
    AppointmentBookingService,
    AppointmentManagementService,
    AppointmentAnalyticsService,
    compute_user_stats,
    AppointmentValidationError,
    OutsideBookingWindowError,
    DoctorUnavailableError,
    SlotTakenError,
    AppointmentNotFoundError,
    AppointmentAccessDeniedError,
    AppointmentStateError,
)
from core.notifications import DOCTOR_NEW_APPOINTMENT, APPOINTMENT_CANCELLED
from doctors.services import DoctorNotFoundError
from factories.appointments import AppointmentFactory, ApprovedAppointmentFactory, CancelledAppointmentFactory
from factories.base import date_key_in
from factories.doctors import DoctorFactory
from factories.users import PatientUserFactory, PendingPatientFactory, AdminUserFactory


class AppointmentBookingServiceTestCase(TestCase):
    """Test cases for booking appointments"""

    def setUp(self):
        self.patient = PatientUserFactory()
        self.doctor = DoctorFactory()
        self.notifier = MagicMock()
        self.slot_date = date_key_in(7)

    def book(self, user=None, doctor_id=None, slot_date=None, slot_time='10:00 AM'):
        return AppointmentBookingService.book_appointment(
            user or self.patient,
            doctor_id or self.doctor.id,
            slot_date or self.slot_date,
            slot_time,
            notifier=self.notifier,
        )

    def test_book_success(self):
        with self.captureOnCommitCallbacks(execute=True):
            appointment = self.book()

        self.assertEqual(appointment.status, Appointment.STATUS_ACTIVE)
        self.assertEqual(appointment.user, self.patient)
        self.assertEqual(appointment.doctor, self.doctor)
        self.assertEqual(appointment.amount, self.doctor.fees)
        self.assertEqual(appointment.user_data['email'], self.patient.email)
        self.assertEqual(appointment.doc_data['name'], self.doctor.name)
        self.assertNotIn('slots_booked', appointment.doc_data)

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked[self.slot_date], ['10:00 AM'])

    def test_book_notifies_doctor_after_commit(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.book()

        self.assertEqual(len(callbacks), 1)
        event, payload = self.notifier.notify.call_args[0]
        self.assertEqual(event, DOCTOR_NEW_APPOINTMENT)
        self.assertEqual(payload['recipient'], self.doctor.email)
        self.assertEqual(payload['slot_time'], '10:00 AM')

    def test_book_stores_canonical_date_key(self):
        day, month, year = self.slot_date.split('_')
        padded = f"{int(day):02d}_{int(month):02d}_{year}"

        appointment = self.book(slot_date=padded)

        self.assertEqual(appointment.slot_date, self.slot_date)
        self.doctor.refresh_from_db()
        self.assertIn(self.slot_date, self.doctor.slots_booked)

    def test_double_booking_rejected(self):
        self.book()
        other_patient = PatientUserFactory()

        with self.assertRaises(SlotTakenError):
            self.book(user=other_patient)

        self.assertEqual(Appointment.objects.count(), 1)
        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked[self.slot_date], ['10:00 AM'])

    def test_live_appointment_without_ledger_entry_still_blocks(self):
        AppointmentFactory(doctor=self.doctor, slot_date=self.slot_date, slot_time='10:00 AM', sync_ledger=False)

        with self.assertRaises(SlotTakenError):
            self.book()

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.booked_times(self.slot_date), [])
        self.assertEqual(Appointment.objects.count(), 1)

    def test_pending_patient_cannot_book(self):
        with self.assertRaises(AppointmentAccessDeniedError):
            self.book(user=PendingPatientFactory())
        self.assertFalse(Appointment.objects.exists())

    def test_admin_cannot_book(self):
        with self.assertRaises(AppointmentAccessDeniedError):
            self.book(user=AdminUserFactory())

    def test_unavailable_doctor_rejected_without_side_effects(self):
        self.doctor.available = False
        self.doctor.save()

        with self.assertRaises(DoctorUnavailableError):
            self.book()

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked, {})
        self.assertFalse(Appointment.objects.exists())
        self.notifier.notify.assert_not_called()

    def test_too_soon_rejected(self):
        with self.assertRaises(OutsideBookingWindowError):
            self.book(slot_date=date_key_in(1))

    def test_too_far_rejected(self):
        with self.assertRaises(OutsideBookingWindowError):
            self.book(slot_date=date_key_in(40))

    def test_malformed_date_key_rejected(self):
        with self.assertRaises(AppointmentValidationError):
            self.book(slot_date='tomorrow')

    def test_unknown_doctor(self):
        with self.assertRaises(DoctorNotFoundError):
            self.book(doctor_id=uuid.uuid4())


class AppointmentCancellationTestCase(TestCase):
    """Test cases for cancelling appointments"""

    def setUp(self):
        self.patient = PatientUserFactory()
        self.doctor = DoctorFactory()
        self.notifier = MagicMock()
        self.slot_date = date_key_in(7)
        self.appointment = AppointmentFactory(
            user=self.patient, doctor=self.doctor, slot_date=self.slot_date, slot_time='10:00 AM'
        )

    def cancel(self, actor, user=None, reason=None, appointment_id=None):
        return AppointmentManagementService.cancel_appointment(
            appointment_id or self.appointment.id, actor, user=user, reason=reason, notifier=self.notifier
        )

    def test_patient_cancels_own_appointment(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = self.cancel(Appointment.CANCELLED_BY_PATIENT, user=self.patient)

        self.assertFalse(result['already_cancelled'])
        self.assertTrue(result['slot_released'])

        self.appointment.refresh_from_db()
        self.assertTrue(self.appointment.cancelled)
        self.assertEqual(self.appointment.cancelled_by, Appointment.CANCELLED_BY_PATIENT)
        self.assertEqual(self.appointment.cancellation_reason, 'Cancelled by patient')
        self.assertIsNotNone(self.appointment.cancelled_at)

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.booked_times(self.slot_date), [])

        event, payload = self.notifier.notify.call_args[0]
        self.assertEqual(event, APPOINTMENT_CANCELLED)
        self.assertEqual(payload['cancelled_by'], Appointment.CANCELLED_BY_PATIENT)

    def test_patient_cannot_cancel_someone_elses(self):
        with self.assertRaises(AppointmentAccessDeniedError):
            self.cancel(Appointment.CANCELLED_BY_PATIENT, user=PatientUserFactory())

        self.appointment.refresh_from_db()
        self.assertFalse(self.appointment.cancelled)
        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.booked_times(self.slot_date), ['10:00 AM'])

    def test_patient_cancel_requires_user(self):
        with self.assertRaises(AppointmentAccessDeniedError):
            self.cancel(Appointment.CANCELLED_BY_PATIENT)

    def test_admin_cancel_with_reason(self):
        result = self.cancel(Appointment.CANCELLED_BY_ADMIN, reason='Doctor on leave')

        self.assertEqual(result['appointment'].cancellation_reason, 'Doctor on leave')
        self.assertEqual(result['appointment'].cancelled_by, Appointment.CANCELLED_BY_ADMIN)

    def test_admin_default_reason(self):
        result = self.cancel(Appointment.CANCELLED_BY_ADMIN, reason='  ')
        self.assertEqual(result['appointment'].cancellation_reason, 'Cancelled by admin')

    def test_cancel_twice_is_noop(self):
        self.cancel(Appointment.CANCELLED_BY_ADMIN, reason='First')
        self.notifier.reset_mock()

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            result = self.cancel(Appointment.CANCELLED_BY_PATIENT, user=self.patient, reason='Second')

        self.assertTrue(result['already_cancelled'])
        self.assertFalse(result['slot_released'])
        self.assertEqual(callbacks, [])
        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.cancellation_reason, 'First')
        self.assertEqual(self.appointment.cancelled_by, Appointment.CANCELLED_BY_ADMIN)

    def test_cancel_approved_appointment(self):
        AppointmentManagementService.approve_appointment(self.appointment.id)

        self.cancel(Appointment.CANCELLED_BY_ADMIN)

        self.appointment.refresh_from_db()
        self.assertTrue(self.appointment.cancelled)
        self.assertFalse(self.appointment.is_completed)
        self.assertEqual(self.appointment.status, Appointment.STATUS_CANCELLED)

    def test_cancelled_slot_can_be_booked_again(self):
        self.cancel(Appointment.CANCELLED_BY_PATIENT, user=self.patient)

        appointment = AppointmentBookingService.book_appointment(
            PatientUserFactory(), self.doctor.id, self.slot_date, '10:00 AM', notifier=self.notifier
        )

        self.assertEqual(appointment.status, Appointment.STATUS_ACTIVE)
        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.booked_times(self.slot_date), ['10:00 AM'])

    def test_system_cancel_does_not_notify(self):
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            self.cancel(Appointment.CANCELLED_BY_SYSTEM)

        self.assertEqual(callbacks, [])
        self.notifier.notify.assert_not_called()

    def test_unknown_actor(self):
        with self.assertRaises(AppointmentValidationError):
            self.cancel('doctor')

    def test_unknown_appointment(self):
        with self.assertRaises(AppointmentNotFoundError):
            self.cancel(Appointment.CANCELLED_BY_ADMIN, appointment_id=uuid.uuid4())

    def test_cancel_after_doctor_deleted_keeps_snapshot(self):
        self.doctor.delete()

        result = self.cancel(Appointment.CANCELLED_BY_ADMIN)

        self.assertFalse(result['slot_released'])
        self.appointment.refresh_from_db()
        self.assertTrue(self.appointment.cancelled)
        self.assertIsNone(self.appointment.doctor)
        self.assertTrue(self.appointment.doc_data['name'])


class AppointmentApprovalTestCase(TestCase):
    """Test cases for approving appointments"""

    def setUp(self):
        self.doctor = DoctorFactory()
        self.slot_date = date_key_in(7)
        self.appointment = AppointmentFactory(doctor=self.doctor, slot_date=self.slot_date, slot_time='10:00 AM')

    def test_approve_keeps_slot(self):
        result = AppointmentManagementService.approve_appointment(self.appointment.id)

        self.assertFalse(result['already_approved'])
        self.appointment.refresh_from_db()
        self.assertEqual(self.appointment.status, Appointment.STATUS_APPROVED)
        self.assertIsNotNone(self.appointment.approved_at)

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.booked_times(self.slot_date), ['10:00 AM'])

    def test_approve_twice_is_reported(self):
        AppointmentManagementService.approve_appointment(self.appointment.id)
        result = AppointmentManagementService.approve_appointment(self.appointment.id)
        self.assertTrue(result['already_approved'])

    def test_cannot_approve_cancelled(self):
        cancelled = CancelledAppointmentFactory(doctor=self.doctor)

        with self.assertRaises(AppointmentStateError):
            AppointmentManagementService.approve_appointment(cancelled.id)

        cancelled.refresh_from_db()
        self.assertFalse(cancelled.is_completed)

    def test_approve_unknown(self):
        with self.assertRaises(AppointmentNotFoundError):
            AppointmentManagementService.approve_appointment(uuid.uuid4())


class AppointmentQueryTestCase(TestCase):

    def setUp(self):
        self.patient = PatientUserFactory()
        self.mine = AppointmentFactory(user=self.patient)
        self.theirs = AppointmentFactory()

    def test_get_user_appointments_only_own(self):
        appointments = list(AppointmentManagementService.get_user_appointments(self.patient))
        self.assertEqual(appointments, [self.mine])

    def test_get_appointment_by_id_enforces_ownership(self):
        with self.assertRaises(AppointmentAccessDeniedError):
            AppointmentManagementService.get_appointment_by_id(self.theirs.id, user=self.patient)

        admin = AdminUserFactory()
        self.assertEqual(AppointmentManagementService.get_appointment_by_id(self.theirs.id, user=admin), self.theirs)

    def test_mark_read(self):
        appointment = AppointmentManagementService.mark_appointment_read(self.mine.id, self.patient)
        self.assertTrue(appointment.is_read)

    @patch('appointments.services.expiry_service.AppointmentExpiryService.sweep')
    def test_list_all_sweeps_first(self, mock_sweep):
        mock_sweep.return_value = 0

        appointments = AppointmentManagementService.list_all_appointments()

        mock_sweep.assert_called_once_with(None)
        self.assertEqual(appointments.count(), 2)


class AppointmentStatisticsTestCase(TestCase):
    """Test cases for per-user statistics and the dashboard"""

    def setUp(self):
        self.alice = PatientUserFactory()
        self.bob = PatientUserFactory()
        AppointmentFactory(user=self.alice)
        AppointmentFactory(user=self.alice)
        ApprovedAppointmentFactory(user=self.alice)
        CancelledAppointmentFactory(user=self.alice)
        CancelledAppointmentFactory(user=self.bob)

    def test_compute_user_stats(self):
        stats = compute_user_stats(Appointment.objects.all())

        self.assertEqual(stats[str(self.alice.id)], {'total': 4, 'approved': 1, 'pending': 2, 'cancelled': 1})
        self.assertEqual(stats[str(self.bob.id)], {'total': 1, 'approved': 0, 'pending': 0, 'cancelled': 1})

    def test_counts_add_up(self):
        for entry in AppointmentAnalyticsService.get_users_appointment_stats().values():
            self.assertEqual(entry['pending'] + entry['approved'] + entry['cancelled'], entry['total'])

    def test_appointments_without_user_are_skipped(self):
        self.bob.delete()

        stats = AppointmentAnalyticsService.get_users_appointment_stats()

        self.assertEqual(list(stats.keys()), [str(self.alice.id)])

    def test_empty(self):
        self.assertEqual(compute_user_stats([]), {})

    def test_dashboard(self):
        data = AppointmentAnalyticsService.get_dashboard_data(limit=3)

        self.assertEqual(data['appointments'], 5)
        self.assertEqual(data['doctors'], 5)
        self.assertEqual(data['patients'], 2)
        self.assertEqual(len(data['latest_appointments']), 3)
