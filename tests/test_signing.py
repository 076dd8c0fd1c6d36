import base64
import hashlib
import hmac
import json
import unittest

from formguard.csrf.errors import ConfigurationError, DecodeFailure
from formguard.csrf.signing import CookieSigner, resolve_algorithm, sign, verify

TOKEN = "a" * 64


class SignTests(unittest.TestCase):
    def test_sign_is_an_hmac_of_the_payload(self) -> None:
        expected = hmac.new(b"k", b'{"csrf_token":"x"}', hashlib.sha256).hexdigest()
        self.assertEqual(sign(b'{"csrf_token":"x"}', "k", "sha256"), expected)

    def test_sign_is_deterministic(self) -> None:
        self.assertEqual(sign(b"payload", b"k", "sha512"), sign(b"payload", b"k", "sha512"))

    def test_verify_accepts_matching_hash_only(self) -> None:
        digest = sign(b"payload", "k", "sha256")
        self.assertTrue(verify(b"payload", "k", "sha256", digest))
        self.assertFalse(verify(b"payload!", "k", "sha256", digest))
        self.assertFalse(verify(b"payload", "other", "sha256", digest))
        self.assertFalse(verify(b"payload", "k", "sha256", None))

    def test_unknown_algorithm_is_a_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            resolve_algorithm("no-such-hash")
        with self.assertRaises(ConfigurationError):
            CookieSigner("k", algorithm="no-such-hash")

    def test_empty_secret_is_a_configuration_error(self) -> None:
        with self.assertRaises(ConfigurationError):
            CookieSigner("", algorithm="sha256")


class SignedCookieTests(unittest.TestCase):
    def setUp(self) -> None:
        self.signer = CookieSigner("k", algorithm="sha256")

    def test_round_trip(self) -> None:
        result = self.signer.decode(self.signer.encode(TOKEN))
        self.assertTrue(result.ok)
        self.assertEqual(result.token, TOKEN)

    def test_wire_format_is_hash_underscore_base64(self) -> None:
        value = self.signer.encode(TOKEN)
        digest, _, encoded = value.partition("_")
        payload = base64.urlsafe_b64decode(encoded + "=" * (-len(encoded) % 4))
        self.assertEqual(json.loads(payload), {"csrf_token": TOKEN})
        self.assertEqual(digest, hmac.new(b"k", payload, hashlib.sha256).hexdigest())

    def test_every_single_character_change_is_rejected(self) -> None:
        value = self.signer.encode(TOKEN)
        for index, char in enumerate(value):
            replacement = "0" if char != "0" else "1"
            tampered = value[:index] + replacement + value[index + 1 :]
            with self.subTest(index=index):
                self.assertFalse(self.signer.decode(tampered).ok)

    def test_payload_changed_without_new_hash_is_rejected(self) -> None:
        digest = self.signer.encode(TOKEN).partition("_")[0]
        forged = base64.urlsafe_b64encode(json.dumps({"csrf_token": "b" * 64}).encode()).decode().rstrip("=")
        result = self.signer.decode(f"{digest}_{forged}")
        self.assertEqual(result.failure, DecodeFailure.BAD_SIGNATURE)

    def test_other_secret_is_rejected(self) -> None:
        other = CookieSigner("not-k", algorithm="sha256")
        self.assertEqual(other.decode(self.signer.encode(TOKEN)).failure, DecodeFailure.BAD_SIGNATURE)

    def test_failures_are_reported_not_raised(self) -> None:
        cases = {
            None: DecodeFailure.MISSING,
            "": DecodeFailure.MISSING,
            "no-separator-here": DecodeFailure.MALFORMED,
            "_eyJ9": DecodeFailure.MALFORMED,
            "abcdef_": DecodeFailure.MALFORMED,
            "abcdef_!!!not-base64!!!": DecodeFailure.BAD_ENCODING,
            "abcdef_été": DecodeFailure.BAD_ENCODING,
            "abcdef_a": DecodeFailure.BAD_ENCODING,
        }
        for value, failure in cases.items():
            with self.subTest(value=value):
                result = self.signer.decode(value)
                self.assertFalse(result.ok)
                self.assertIsNone(result.token)
                self.assertEqual(result.failure, failure)

    def test_signed_payload_without_token_is_rejected(self) -> None:
        for raw in (b"[1, 2]", b'{"other": "x"}', b'{"csrf_token": 5}', b"not json"):
            encoded = base64.urlsafe_b64encode(raw).decode().rstrip("=")
            value = f"{self.signer.sign(raw)}_{encoded}"
            with self.subTest(raw=raw):
                self.assertEqual(self.signer.decode(value).failure, DecodeFailure.BAD_PAYLOAD)

    def test_padded_standard_base64_cookie_is_rejected(self) -> None:
        payload = json.dumps({"csrf_token": TOKEN}).encode()
        encoded = base64.b64encode(payload).decode()
        self.assertTrue(encoded.endswith("="))
        value = f"{self.signer.sign(payload)}_{encoded}"
        self.assertEqual(self.signer.decode(value).failure, DecodeFailure.BAD_ENCODING)
