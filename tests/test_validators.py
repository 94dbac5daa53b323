import unittest

from dtprotection.validators import (
    format_phone_number,
    is_valid_booking_id,
    is_valid_email,
    is_valid_time,
    is_valid_us_phone,
)


class EmailValidatorTest(unittest.TestCase):
    def test_accepts_short_domain(self):
        self.assertTrue(is_valid_email("a@b.co"))

    def test_rejects_missing_tld(self):
        self.assertFalse(is_valid_email("a@b"))

    def test_rejects_whitespace_and_empty(self):
        self.assertFalse(is_valid_email("a b@c.com"))
        self.assertFalse(is_valid_email(""))


class BookingIdValidatorTest(unittest.TestCase):
    def test_accepts(self):
        self.assertTrue(is_valid_booking_id("abc12345"))
        self.assertTrue(is_valid_booking_id("a1b2-c3_d4"))

    def test_rejects_too_short(self):
        self.assertFalse(is_valid_booking_id("ab"))

    def test_rejects_invalid_character(self):
        self.assertFalse(is_valid_booking_id("abc*123"))
        self.assertFalse(is_valid_booking_id("abc*12345"))


class PhoneTest(unittest.TestCase):
    def test_us_formats(self):
        for phone in ("(555) 123-4567", "555-123-4567", "+1 555 123 4567", "5551234567"):
            self.assertTrue(is_valid_us_phone(phone), phone)

    def test_rejects_short_numbers(self):
        self.assertFalse(is_valid_us_phone("12345"))

    def test_e164(self):
        self.assertEqual(format_phone_number("(555) 123-4567"), "+15551234567")
        self.assertEqual(format_phone_number("1-555-123-4567"), "+15551234567")

    def test_unknown_length_unchanged(self):
        self.assertEqual(format_phone_number("+44 20 7946 0958"), "+44 20 7946 0958")


class TimeTest(unittest.TestCase):
    def test_valid(self):
        self.assertTrue(is_valid_time("00:00"))
        self.assertTrue(is_valid_time("23:59"))

    def test_invalid(self):
        self.assertFalse(is_valid_time("24:00"))
        self.assertFalse(is_valid_time("9:00"))
        self.assertFalse(is_valid_time("12:60"))
