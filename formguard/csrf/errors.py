"""Error kinds raised or reported by the CSRF protection code."""

import enum
from dataclasses import dataclass


class ConfigurationError(RuntimeError):
    """The runtime cannot provide a primitive the CSRF protection depends on."""


class TokenMismatch(Exception):
    """Raised to halt a request whose CSRF token is absent or wrong.

    ``message`` is the localized text shown to the user. It never contains
    the stored or the presented token.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class DecodeFailure(enum.Enum):
    MISSING = "missing"
    MALFORMED = "malformed"
    BAD_ENCODING = "bad_encoding"
    BAD_SIGNATURE = "bad_signature"
    BAD_PAYLOAD = "bad_payload"


@dataclass(frozen=True)
class CookieReadResult:
    """Outcome of reading the signed fallback cookie."""

    token: str | None = None
    failure: DecodeFailure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.token is not None

    @classmethod
    def success(cls, token: str) -> "CookieReadResult":
        return cls(token=token)

    @classmethod
    def failed(cls, failure: DecodeFailure) -> "CookieReadResult":
        return cls(failure=failure)
