"""Unit tests for the keyset cursor codec (namebank/cursor.py)."""
from __future__ import annotations

import base64
import unittest

from namebank.cursor import decode_cursor, encode_cursor


def _b64(text: str) -> str:
    return base64.urlsafe_b64encode(text.encode("utf-8")).decode("ascii")


class TestEncodeDecode(unittest.TestCase):
    def test_roundtrip(self):
        for n in (1, 2, 9, 10, 63, 64, 999, 123456789, 2**53 + 1):
            self.assertEqual(decode_cursor(encode_cursor(n)), n)

    def test_token_is_opaque_text(self):
        token = encode_cursor(42)
        self.assertIsInstance(token, str)
        self.assertNotEqual(token, "42")

    def test_encode_rejects_non_positive(self):
        for bad in (0, -1, True, 1.5, "3"):
            with self.assertRaises(ValueError):
                encode_cursor(bad)  # type: ignore[arg-type]


class TestDecodeDegradesToNoCursor(unittest.TestCase):
    def test_missing(self):
        self.assertIsNone(decode_cursor(None))
        self.assertIsNone(decode_cursor(""))
        self.assertIsNone(decode_cursor("   "))

    def test_not_base64(self):
        self.assertIsNone(decode_cursor("!!!"))
        self.assertIsNone(decode_cursor("abc"))
        self.assertIsNone(decode_cursor("மரியா"))

    def test_non_decimal_payload(self):
        self.assertIsNone(decode_cursor(_b64("x")))
        self.assertIsNone(decode_cursor(_b64("1.5")))
        self.assertIsNone(decode_cursor(_b64("1e3")))
        self.assertIsNone(decode_cursor(_b64(" 7")))

    def test_non_positive_payload(self):
        self.assertIsNone(decode_cursor(_b64("0")))
        self.assertIsNone(decode_cursor(_b64("-5")))

    def test_leading_zeros_still_decode(self):
        self.assertEqual(decode_cursor(_b64("007")), 7)


if __name__ == "__main__":
    unittest.main()
