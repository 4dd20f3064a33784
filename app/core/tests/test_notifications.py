from io import StringIO
from unittest.mock import patch

from django.core import mail
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings

from core.notifications import (
    NotificationGateway,
    get_notification_gateway,
    reset_notification_gateway,
    ADMIN_NEW_REGISTRATION,
    DOCTOR_NEW_APPOINTMENT,
    APPOINTMENT_CANCELLED,
    REGISTRATION_APPROVED,
)


@override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
class NotificationGatewayTestCase(TestCase):
    """Test cases for best-effort email notifications"""

    def setUp(self):
        self.gateway = NotificationGateway(admin_email='admin@clinic.example.com', retry_delay=0)
        self.appointment_payload = {
            'recipient': 'doctor@clinic.example.com',
            'doctor_name': 'Dr. Rosa Reyes',
            'patient_name': 'Ana Cruz',
            'patient_email': 'ana@example.com',
            'slot_date': '20_1_2030',
            'slot_time': '10:00 AM',
            'amount': '45.00',
        }

    def test_new_appointment_email(self):
        sent = self.gateway.notify(DOCTOR_NEW_APPOINTMENT, self.appointment_payload)

        self.assertTrue(sent)
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.to, ['doctor@clinic.example.com'])
        self.assertEqual(message.subject, 'New appointment booked')
        self.assertIn('Ana Cruz', message.body)
        self.assertEqual(len(message.alternatives), 1)

    def test_cancelled_email(self):
        payload = {**self.appointment_payload, 'cancelled_by': 'patient', 'reason': 'Cancelled by patient'}

        self.assertTrue(self.gateway.notify(APPOINTMENT_CANCELLED, payload))
        self.assertEqual(mail.outbox[0].subject, 'Appointment cancelled')

    def test_admin_event_defaults_to_admin_address(self):
        self.gateway.notify(ADMIN_NEW_REGISTRATION, {
            'user_name': 'Ana Cruz', 'user_email': 'ana@example.com', 'registered_at': '2026-01-10 09:00',
        })

        self.assertEqual(mail.outbox[0].to, ['admin@clinic.example.com'])

    def test_missing_recipient_returns_false(self):
        payload = {k: v for k, v in self.appointment_payload.items() if k != 'recipient'}

        self.assertFalse(self.gateway.notify(DOCTOR_NEW_APPOINTMENT, payload))
        self.assertEqual(len(mail.outbox), 0)

    def test_unknown_event(self):
        self.assertFalse(self.gateway.notify('birthday_greeting', self.appointment_payload))

    def test_disabled_gateway_sends_nothing(self):
        gateway = NotificationGateway(enabled=False)

        self.assertFalse(gateway.notify(DOCTOR_NEW_APPOINTMENT, self.appointment_payload))
        self.assertEqual(len(mail.outbox), 0)

    @patch('core.notifications.EmailMultiAlternatives.send')
    def test_delivery_failure_is_retried_then_reported(self, mock_send):
        mock_send.side_effect = ConnectionError('SMTP down')

        sent = self.gateway.notify(DOCTOR_NEW_APPOINTMENT, self.appointment_payload)

        self.assertFalse(sent)
        self.assertEqual(mock_send.call_count, 3)

    @patch('core.notifications.EmailMultiAlternatives.send')
    def test_retry_recovers(self, mock_send):
        mock_send.side_effect = [ConnectionError('SMTP down'), 1]

        self.assertTrue(self.gateway.notify(DOCTOR_NEW_APPOINTMENT, self.appointment_payload))
        self.assertEqual(mock_send.call_count, 2)


class NotificationGatewayFactoryTestCase(TestCase):

    def setUp(self):
        reset_notification_gateway()
        self.addCleanup(reset_notification_gateway)

    @override_settings(NOTIFICATIONS={'ENABLED': False, 'ADMIN_EMAIL': 'ops@clinic.example.com'})
    def test_built_from_settings_once(self):
        gateway = get_notification_gateway()

        self.assertFalse(gateway.enabled)
        self.assertEqual(gateway.admin_email, 'ops@clinic.example.com')
        self.assertIs(get_notification_gateway(), gateway)


@override_settings(EMAIL_BACKEND='django.core.mail.backends.locmem.EmailBackend')
class SendTestNotificationCommandTestCase(TestCase):

    def test_sends_email(self):
        out = StringIO()

        call_command('send_test_notification', 'ops@clinic.example.com', stdout=out)

        self.assertIn('Test email sent', out.getvalue())
        self.assertEqual(mail.outbox[0].subject, 'Your registration has been approved')

    @patch('core.notifications.NotificationGateway.notify', return_value=False)
    def test_failure_raises(self, mock_notify):
        with self.assertRaises(CommandError):
            call_command('send_test_notification', 'ops@clinic.example.com')
        self.assertEqual(mock_notify.call_args[0][0], REGISTRATION_APPROVED)
