"""Keyed-hash signing for the no-session CSRF cookie.

A signed cookie has the form ``<hex hmac>_<base64 json>``, using the
URL-safe alphabet without padding so the value needs no cookie quoting.
The hmac covers the serialized JSON bytes exactly as they were encoded,
so verification recomputes it over the decoded bytes before anything is
parsed. Only the canonical encoding of those bytes is accepted.

This is not the padded standard-alphabet base64 of older deployments:
cookies in that format fail to decode and count as no stored token, so
the first post after an upgrade is rejected and the page must be reloaded.
"""

import base64
import hmac
import json
import logging
from typing import Mapping, Union

from formguard.csrf.compare import tokens_equal
from formguard.csrf.errors import ConfigurationError, CookieReadResult, DecodeFailure

logger = logging.getLogger(__name__)

SEPARATOR = "_"

Secret = Union[str, bytes]


def _key(secret: Secret) -> bytes:
    if isinstance(secret, str):
        return secret.encode("utf-8")
    return secret


def resolve_algorithm(algorithm: str) -> str:
    """Return ``algorithm`` if it can key an hmac here, else fail loudly."""
    try:
        hmac.new(b"probe", b"", algorithm).hexdigest()
    except (ValueError, TypeError) as exc:
        raise ConfigurationError(
            f"Hash algorithm {algorithm!r} is not available; "
            "the CSRF cookie fallback cannot be integrity protected."
        ) from exc
    return algorithm


def sign(payload: bytes, secret: Secret, algorithm: str) -> str:
    return hmac.new(_key(secret), payload, algorithm).hexdigest()


def verify(payload: bytes, secret: Secret, algorithm: str, candidate: str | None) -> bool:
    return tokens_equal(sign(payload, secret, algorithm), candidate)


def serialize(payload: Mapping[str, str]) -> bytes:
    return json.dumps(dict(payload), separators=(",", ":"), sort_keys=True).encode("utf-8")


class CookieSigner:
    def __init__(self, secret: Secret, algorithm: str = "sha256", field_name: str = "csrf_token") -> None:
        if not secret:
            raise ConfigurationError("A secret is required to sign the CSRF cookie.")
        self.secret = secret
        self.algorithm = resolve_algorithm(algorithm)
        self.field_name = field_name

    def sign(self, payload: bytes) -> str:
        return sign(payload, self.secret, self.algorithm)

    def verify(self, payload: bytes, candidate: str | None) -> bool:
        return verify(payload, self.secret, self.algorithm, candidate)

    def encode(self, token: str) -> str:
        payload = serialize({self.field_name: token})
        encoded = base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=")
        return f"{self.sign(payload)}{SEPARATOR}{encoded}"

    def decode(self, value: str | None) -> CookieReadResult:
        """Recover the token from a signed cookie value.

        Never raises for bad input; every problem is reported as a
        ``DecodeFailure`` on the result.
        """
        if not value:
            return CookieReadResult.failed(DecodeFailure.MISSING)

        candidate, separator, encoded = value.partition(SEPARATOR)
        if not separator or not candidate or not encoded:
            return self._reject(DecodeFailure.MALFORMED)

        try:
            padded = encoded + "=" * (-len(encoded) % 4)
            payload = base64.b64decode(padded.encode("ascii"), altchars=b"-_", validate=True)
        except ValueError:
            return self._reject(DecodeFailure.BAD_ENCODING)
        if base64.urlsafe_b64encode(payload).decode("ascii").rstrip("=") != encoded:
            return self._reject(DecodeFailure.BAD_ENCODING)

        if not self.verify(payload, candidate):
            return self._reject(DecodeFailure.BAD_SIGNATURE)

        try:
            data = json.loads(payload.decode("utf-8"))
        except ValueError:
            return self._reject(DecodeFailure.BAD_PAYLOAD)

        token = data.get(self.field_name) if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            return self._reject(DecodeFailure.BAD_PAYLOAD)
        return CookieReadResult.success(token)

    def _reject(self, failure: DecodeFailure) -> CookieReadResult:
        logger.debug("CSRF cookie rejected reason=%s", failure.value)
        return CookieReadResult.failed(failure)
