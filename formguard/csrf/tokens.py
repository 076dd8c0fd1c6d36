import logging
import os
import secrets

from formguard.csrf.errors import ConfigurationError

logger = logging.getLogger(__name__)

TOKEN_BYTES = 32


def ensure_strong_random() -> None:
    """Fail startup when the OS cannot supply cryptographic randomness."""
    try:
        os.urandom(1)
    except NotImplementedError as exc:
        raise ConfigurationError(
            "No cryptographically secure random source is available; "
            "CSRF tokens cannot be issued."
        ) from exc
    logger.debug("Using OS random source for CSRF tokens")


def generate_token() -> str:
    """Return 32 random bytes as 64 lowercase hex characters."""
    return secrets.token_hex(TOKEN_BYTES)
