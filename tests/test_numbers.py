import unittest

from simpligest.core.numbers import (
    format_currency,
    format_number_input,
    parse_localized_number,
    parse_number_input,
)


class NumberFormatTest(unittest.TestCase):
    def test_format_number_input_groups_thousands(self):
        self.assertEqual(format_number_input("1234567"), "1.234.567")
        self.assertEqual(format_number_input("$ 00120"), "120")

    def test_format_number_input_blank_for_zero(self):
        self.assertEqual(format_number_input(""), "")
        self.assertEqual(format_number_input("0"), "")
        self.assertEqual(format_number_input(None), "")

    def test_parse_number_input(self):
        self.assertEqual(parse_number_input("1.234.567"), 1234567)
        self.assertEqual(parse_number_input(""), 0)

    def test_parse_localized_number(self):
        self.assertEqual(parse_localized_number("$ 1.234,5"), 1234.5)
        self.assertEqual(parse_localized_number("CLP 990"), 990.0)
        self.assertEqual(parse_localized_number("n/a"), 0.0)

    def test_format_currency(self):
        self.assertEqual(format_currency(1234567), "$1.234.567")
        self.assertEqual(format_currency(999.5), "$1.000")
        self.assertEqual(format_currency(-1500), "-$1.500")
        self.assertEqual(format_currency(20, "USD"), "US$20")


if __name__ == "__main__":
    unittest.main()
