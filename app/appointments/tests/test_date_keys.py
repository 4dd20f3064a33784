from datetime import date

from django.test import SimpleTestCase, override_settings

from appointments.date_keys import (
    parse_date_key,
    format_date_key,
    add_months,
    booking_window,
    InvalidDateKeyError,
)


class ParseDateKeyTestCase(SimpleTestCase):
    """Test cases for date-key parsing"""

    def test_parse_unpadded(self):
        self.assertEqual(parse_date_key('7_3_2026'), date(2026, 3, 7))

    def test_parse_zero_padded(self):
        self.assertEqual(parse_date_key('07_03_2026'), date(2026, 3, 7))

    def test_parse_strips_whitespace(self):
        self.assertEqual(parse_date_key(' 15_8_2026 '), date(2026, 8, 15))

    def test_leap_day(self):
        self.assertEqual(parse_date_key('29_2_2028'), date(2028, 2, 29))

    def test_malformed_keys_rejected(self):
        for key in ['', '7-3-2026', '7_3', '7_3_2026_1', 'a_b_cccc', '7_3_26', '2026_3_7', '7 _3_2026']:
            with self.subTest(key=key):
                with self.assertRaises(InvalidDateKeyError):
                    parse_date_key(key)

    def test_impossible_dates_rejected(self):
        for key in ['31_2_2026', '29_2_2027', '0_1_2026', '1_13_2026', '32_1_2026']:
            with self.subTest(key=key):
                with self.assertRaises(InvalidDateKeyError):
                    parse_date_key(key)

    def test_non_string_rejected(self):
        with self.assertRaises(InvalidDateKeyError):
            parse_date_key(None)

    def test_invalid_date_key_is_value_error(self):
        with self.assertRaises(ValueError):
            parse_date_key('nope')


class FormatDateKeyTestCase(SimpleTestCase):

    def test_format_is_unpadded(self):
        self.assertEqual(format_date_key(date(2026, 3, 7)), '7_3_2026')

    def test_format_parses_back(self):
        value = date(2026, 12, 31)
        self.assertEqual(parse_date_key(format_date_key(value)), value)


class AddMonthsTestCase(SimpleTestCase):

    def test_simple(self):
        self.assertEqual(add_months(date(2026, 3, 10), 1), date(2026, 4, 10))

    def test_year_rollover(self):
        self.assertEqual(add_months(date(2026, 12, 15), 1), date(2027, 1, 15))

    def test_clamps_to_month_end(self):
        self.assertEqual(add_months(date(2026, 1, 31), 1), date(2026, 2, 28))
        self.assertEqual(add_months(date(2028, 1, 31), 1), date(2028, 2, 29))
        self.assertEqual(add_months(date(2026, 3, 31), 1), date(2026, 4, 30))


class BookingWindowTestCase(SimpleTestCase):

    def test_default_window(self):
        earliest, latest = booking_window(date(2026, 1, 10))
        self.assertEqual(earliest, date(2026, 1, 15))
        self.assertEqual(latest, date(2026, 2, 10))

    def test_window_at_end_of_month(self):
        earliest, latest = booking_window(date(2026, 1, 31))
        self.assertEqual(earliest, date(2026, 2, 5))
        self.assertEqual(latest, date(2026, 2, 28))

    @override_settings(APPOINTMENT_BOOKING={
        'MIN_DAYS_AHEAD': 2,
        'MAX_MONTHS_AHEAD': 3,
        'MAX_TIME_LABEL_LENGTH': 20,
        'LEDGER_LOCK_MAX_ATTEMPTS': 3,
        'AUTO_CANCEL_REASON': 'Auto-cancelled: appointment date passed',
        'DASHBOARD_LATEST_LIMIT': 5,
    })
    def test_window_follows_settings(self):
        earliest, latest = booking_window(date(2026, 1, 10))
        self.assertEqual(earliest, date(2026, 1, 12))
        self.assertEqual(latest, date(2026, 4, 10))
