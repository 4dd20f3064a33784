from datetime import date
from io import StringIO
from unittest.mock import patch

from celery.exceptions import Retry
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from appointments.models import Appointment
from appointments.services import AppointmentExpiryService
from appointments.tasks import auto_expire_past_appointments_task
from factories.appointments import AppointmentFactory, ApprovedAppointmentFactory, CancelledAppointmentFactory
from factories.doctors import DoctorFactory


AS_OF = date(2026, 1, 10)


class AppointmentExpiryServiceTestCase(TestCase):
    """Test cases for the past-appointment sweep"""

    def setUp(self):
        self.doctor = DoctorFactory()
        self.past = AppointmentFactory(doctor=self.doctor, slot_date='3_1_2026', slot_time='10:00 AM')
        self.yesterday = AppointmentFactory(doctor=self.doctor, slot_date='9_1_2026', slot_time='11:00 AM')
        self.today = AppointmentFactory(doctor=self.doctor, slot_date='10_1_2026', slot_time='10:00 AM')
        self.future = AppointmentFactory(doctor=self.doctor, slot_date='20_1_2026', slot_time='10:00 AM')

    def test_sweep_cancels_past_active_appointments(self):
        count = AppointmentExpiryService.sweep(AS_OF)

        self.assertEqual(count, 2)
        for appointment in (self.past, self.yesterday):
            appointment.refresh_from_db()
            self.assertTrue(appointment.cancelled)
            self.assertEqual(appointment.cancelled_by, Appointment.CANCELLED_BY_SYSTEM)
            self.assertEqual(appointment.cancellation_reason, 'Auto-cancelled: appointment date passed')

        for appointment in (self.today, self.future):
            appointment.refresh_from_db()
            self.assertFalse(appointment.cancelled)

    def test_sweep_releases_slots(self):
        AppointmentExpiryService.sweep(AS_OF)

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.booked_times('3_1_2026'), [])
        self.assertEqual(self.doctor.booked_times('9_1_2026'), [])
        self.assertEqual(self.doctor.booked_times('20_1_2026'), ['10:00 AM'])

    def test_second_sweep_changes_nothing(self):
        AppointmentExpiryService.sweep(AS_OF)
        self.past.refresh_from_db()
        cancelled_at = self.past.cancelled_at

        self.assertEqual(AppointmentExpiryService.sweep(AS_OF), 0)

        self.past.refresh_from_db()
        self.assertEqual(self.past.cancelled_at, cancelled_at)

    def test_approved_appointments_are_not_expired(self):
        approved = ApprovedAppointmentFactory(doctor=self.doctor, slot_date='2_1_2026', slot_time='10:00 AM')

        AppointmentExpiryService.sweep(AS_OF)

        approved.refresh_from_db()
        self.assertFalse(approved.cancelled)
        self.assertTrue(approved.is_completed)

    def test_already_cancelled_keep_their_actor(self):
        cancelled = CancelledAppointmentFactory(doctor=self.doctor, slot_date='2_1_2026', slot_time='10:00 AM')

        self.assertEqual(AppointmentExpiryService.sweep(AS_OF), 2)

        cancelled.refresh_from_db()
        self.assertEqual(cancelled.cancelled_by, Appointment.CANCELLED_BY_PATIENT)

    def test_malformed_date_keys_are_skipped(self):
        broken = AppointmentFactory(doctor=self.doctor, slot_date='someday', sync_ledger=False)

        self.assertEqual(AppointmentExpiryService.sweep(AS_OF), 2)

        broken.refresh_from_db()
        self.assertFalse(broken.cancelled)

    def test_find_expired(self):
        expired = AppointmentExpiryService.find_expired(AS_OF)
        self.assertCountEqual([a.id for a in expired], [self.past.id, self.yesterday.id])

    def test_nothing_expired_before_first_slot(self):
        self.assertEqual(AppointmentExpiryService.sweep(date(2026, 1, 1)), 0)


class ExpiryTaskTestCase(TestCase):

    @patch('appointments.tasks.AppointmentExpiryService.sweep')
    def test_task_reports_count(self, mock_sweep):
        mock_sweep.return_value = 4

        result = auto_expire_past_appointments_task()

        self.assertEqual(result, {'success': True, 'expired_count': 4})
        mock_sweep.assert_called_once_with()

    @patch('appointments.tasks.AppointmentExpiryService.sweep')
    def test_task_retries_on_error(self, mock_sweep):
        mock_sweep.side_effect = RuntimeError('database gone')

        with patch.object(auto_expire_past_appointments_task, 'retry', side_effect=Retry()) as mock_retry:
            with self.assertRaises(Retry):
                auto_expire_past_appointments_task()

        mock_retry.assert_called_once()


class ExpirePastAppointmentsCommandTestCase(TestCase):

    def test_command_with_as_of(self):
        AppointmentFactory(slot_date='3_1_2026')
        out = StringIO()

        call_command('expire_past_appointments', '--as-of', '2026-01-10', stdout=out)

        self.assertIn('Expired 1 past appointments', out.getvalue())
        self.assertTrue(Appointment.objects.get().cancelled)

    def test_command_rejects_bad_date(self):
        with self.assertRaises(CommandError):
            call_command('expire_past_appointments', '--as-of', '10/01/2026')
