from datetime import date

from django.test import TestCase

from users.models import User
from factories.users import PatientUserFactory, PendingPatientFactory, AdminUserFactory


class UserModelTestCase(TestCase):
    """Test cases for User properties"""

    def test_approved_patient_can_book(self):
        self.assertTrue(PatientUserFactory().can_book_appointments)

    def test_gated_patients_cannot_book(self):
        for approval_status in (User.APPROVAL_PENDING, User.APPROVAL_DECLINED, User.APPROVAL_BLOCKED):
            with self.subTest(approval_status=approval_status):
                user = PendingPatientFactory(approval_status=approval_status)
                self.assertFalse(user.can_book_appointments)

    def test_inactive_patient_cannot_book(self):
        self.assertFalse(PatientUserFactory(is_active=False).can_book_appointments)

    def test_admin_cannot_book(self):
        self.assertFalse(AdminUserFactory().can_book_appointments)

    def test_full_name_skips_blank_parts(self):
        user = PatientUserFactory(first_name='Ana', middle_name='', last_name='Cruz')
        self.assertEqual(user.full_name, 'Ana Cruz')

    def test_snapshot(self):
        user = PatientUserFactory(dob=date(1990, 5, 17))

        snapshot = user.to_snapshot()

        self.assertEqual(snapshot['id'], str(user.id))
        self.assertEqual(snapshot['dob'], '1990-05-17')
        self.assertNotIn('password', snapshot)
        self.assertNotIn('approval_status', snapshot)
