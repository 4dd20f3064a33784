import uuid
from unittest.mock import patch, MagicMock

from django.db import OperationalError
from django.test import TestCase

from appointments.services import SlotLedgerService, SlotConflictError
from appointments.services.ledger_service import retry_on_lock_contention
from doctors.services import DoctorNotFoundError
from factories.doctors import DoctorFactory


class SlotLedgerServiceTestCase(TestCase):
    """Test cases for reserving and releasing ledger entries"""

    def setUp(self):
        self.doctor = DoctorFactory(slots_booked={'20_1_2026': ['10:00 AM', '11:00 AM']})

    def test_reserve_appends_label(self):
        SlotLedgerService.reserve_slot(self.doctor, '20_1_2026', '12:00 PM')

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked['20_1_2026'], ['10:00 AM', '11:00 AM', '12:00 PM'])

    def test_reserve_new_date(self):
        SlotLedgerService.reserve_slot(self.doctor, '21_1_2026', '10:00 AM')

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked['21_1_2026'], ['10:00 AM'])
        self.assertEqual(self.doctor.slots_booked['20_1_2026'], ['10:00 AM', '11:00 AM'])

    def test_reserve_taken_label_raises(self):
        with self.assertRaises(SlotConflictError):
            SlotLedgerService.reserve_slot(self.doctor, '20_1_2026', '10:00 AM')

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked['20_1_2026'], ['10:00 AM', '11:00 AM'])

    def test_release_removes_only_that_label(self):
        released = SlotLedgerService.release_slot(self.doctor.id, '20_1_2026', '10:00 AM')

        self.assertTrue(released)
        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked['20_1_2026'], ['11:00 AM'])

    def test_release_is_idempotent(self):
        SlotLedgerService.release_slot(self.doctor.id, '20_1_2026', '10:00 AM')
        released = SlotLedgerService.release_slot(self.doctor.id, '20_1_2026', '10:00 AM')

        self.assertFalse(released)
        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked['20_1_2026'], ['11:00 AM'])

    def test_release_emptied_date_stays_as_empty_list(self):
        SlotLedgerService.release_slot(self.doctor.id, '20_1_2026', '10:00 AM')
        SlotLedgerService.release_slot(self.doctor.id, '20_1_2026', '11:00 AM')

        self.doctor.refresh_from_db()
        self.assertEqual(self.doctor.slots_booked, {'20_1_2026': []})

    def test_release_missing_date_is_noop(self):
        self.assertFalse(SlotLedgerService.release_slot(self.doctor.id, '1_1_2026', '10:00 AM'))

    def test_release_without_doctor_is_noop(self):
        self.assertFalse(SlotLedgerService.release_slot(None, '20_1_2026', '10:00 AM'))

    def test_release_for_deleted_doctor_is_noop(self):
        self.assertFalse(SlotLedgerService.release_slot(uuid.uuid4(), '20_1_2026', '10:00 AM'))

    def test_lock_unknown_doctor(self):
        with self.assertRaises(DoctorNotFoundError):
            SlotLedgerService.lock_doctor(uuid.uuid4())

    def test_get_booked_times(self):
        self.assertEqual(SlotLedgerService.get_booked_times(self.doctor.id, '20_1_2026'), ['10:00 AM', '11:00 AM'])
        self.assertEqual(SlotLedgerService.get_booked_times(self.doctor.id, '21_1_2026'), [])


class RetryOnLockContentionTestCase(TestCase):
    """Test cases for retrying ledger transactions on lock contention"""

    def test_success_passes_through(self):
        func = MagicMock(return_value='ok')
        self.assertEqual(retry_on_lock_contention(func)(1, a=2), 'ok')
        func.assert_called_once_with(1, a=2)

    def test_inside_transaction_fails_fast(self):
        # TestCase wraps each test in a transaction
        func = MagicMock(side_effect=OperationalError('could not obtain lock'))

        with self.assertRaises(SlotConflictError):
            retry_on_lock_contention(func)()

        self.assertEqual(func.call_count, 1)

    @patch('appointments.services.ledger_service.time.sleep')
    @patch('appointments.services.ledger_service.transaction.get_connection')
    def test_retries_then_succeeds(self, mock_get_connection, mock_sleep):
        mock_get_connection.return_value = MagicMock(in_atomic_block=False)
        func = MagicMock(side_effect=[OperationalError('deadlock'), OperationalError('deadlock'), 'booked'])

        self.assertEqual(retry_on_lock_contention(func)(), 'booked')
        self.assertEqual(func.call_count, 3)
        self.assertEqual(mock_sleep.call_count, 2)

    @patch('appointments.services.ledger_service.time.sleep')
    @patch('appointments.services.ledger_service.transaction.get_connection')
    def test_gives_up_after_max_attempts(self, mock_get_connection, mock_sleep):
        mock_get_connection.return_value = MagicMock(in_atomic_block=False)
        func = MagicMock(side_effect=OperationalError('lock timeout'))

        with self.assertRaises(SlotConflictError):
            retry_on_lock_contention(func)()

        self.assertEqual(func.call_count, 3)
