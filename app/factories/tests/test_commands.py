from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from appointments.models import Appointment
from doctors.models import Doctor
from users.models import User


class GenerateSampleDataCommandTestCase(TestCase):
    """Test cases for the generate_sample_data command"""

    def test_generates_doctors_and_patients(self):
        out = StringIO()

        call_command(
            'generate_sample_data', '--doctors', '5', '--patients', '10',
            '--pending-ratio', '0.2', '--seed', '7', stdout=out
        )

        self.assertEqual(Doctor.objects.count(), 5)
        self.assertEqual(User.objects.filter(user_type='Patient').count(), 10)
        self.assertEqual(User.objects.filter(approval_status=User.APPROVAL_PENDING).count(), 2)
        self.assertTrue(User.objects.filter(email='admin@clinic.local', user_type='Admin').exists())
        self.assertIn('Sample data generation complete!', out.getvalue())

    def test_ledger_matches_live_appointments(self):
        call_command(
            'generate_sample_data', '--doctors', '3', '--patients', '6',
            '--appointments-per-patient', '2-3', '--seed', '11', stdout=StringIO()
        )

        for appointment in Appointment.objects.filter(cancelled=False).select_related('doctor'):
            self.assertIn(appointment.slot_time, appointment.doctor.booked_times(appointment.slot_date))

    def test_invalid_pending_ratio(self):
        with self.assertRaises(CommandError):
            call_command('generate_sample_data', '--pending-ratio', '2', stdout=StringIO())
