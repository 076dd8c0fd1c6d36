import logging
import unittest

from formguard.observability import REDACTED, TokenRedactingFilter


class TokenRedactingFilterTests(unittest.TestCase):
    def setUp(self) -> None:
        self.filter = TokenRedactingFilter("csrf_token", "FORMGUARD_CSRF")

    def _record(self, msg, *args) -> logging.LogRecord:
        return logging.LogRecord("formguard", logging.INFO, __file__, 1, msg, args, None)

    def test_masks_field_and_cookie_assignments(self) -> None:
        record = self._record("body csrf_token=%s&q=1 cookie FORMGUARD_CSRF=%s", "secret", "abc_def")
        self.assertTrue(self.filter.filter(record))
        message = record.getMessage()
        self.assertNotIn("secret", message)
        self.assertNotIn("abc_def", message)
        self.assertIn(f"csrf_token={REDACTED}", message)
        self.assertIn("q=1", message)

    def test_masks_bare_hex_tokens(self) -> None:
        token = "0f" * 32
        record = self._record("issued %s", token)
        self.filter.filter(record)
        self.assertEqual(record.getMessage(), f"issued {REDACTED}")

    def test_leaves_other_messages_alone(self) -> None:
        record = self._record("Possible CSRF attack from IP address %s", "203.0.113.7")
        self.filter.filter(record)
        self.assertEqual(record.args, ("203.0.113.7",))
