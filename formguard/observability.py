import logging
import re
import time
import uuid
from typing import Callable

from fastapi import Request

from formguard.settings import get_settings

REDACTED = "[redacted]"


class TokenRedactingFilter(logging.Filter):
    """Masks CSRF token values that end up in a log message."""

    def __init__(self, field_name: str, cookie_name: str) -> None:
        super().__init__()
        names = "|".join(re.escape(name) for name in (field_name, cookie_name))
        self._assignment = re.compile(rf"((?:{names})=)[^\s&;,]+")
        self._hex_token = re.compile(r"\b[0-9a-f]{64}\b")

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        scrubbed = self._hex_token.sub(REDACTED, self._assignment.sub(rf"\1{REDACTED}", message))
        if scrubbed != message:
            record.msg = scrubbed
            record.args = None
        return True


def configure_logging() -> logging.Logger:
    settings = get_settings()
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    redactor = TokenRedactingFilter(settings.csrf_field_name, settings.csrf_cookie_name)
    for handler in logging.getLogger().handlers:
        if not any(isinstance(existing, TokenRedactingFilter) for existing in handler.filters):
            handler.addFilter(redactor)
    return logging.getLogger("formguard")


def request_logging_middleware(logger: logging.Logger) -> Callable:
    settings = get_settings()
    request_id_header = settings.request_id_header

    async def middleware(request: Request, call_next):
        request_id = request.headers.get(request_id_header) or str(uuid.uuid4())
        request.state.request_id = request_id
        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - started) * 1000
        response.headers[request_id_header] = request_id
        guard = getattr(request.state, "csrf_guard", None)
        logger.info(
            "request_id=%s method=%s path=%s status=%s csrf_backend=%s duration_ms=%.2f",
            request_id,
            request.method,
            request.url.path,
            response.status_code,
            guard.store.backend.value if guard is not None else "-",
            duration_ms,
        )
        return response

    return middleware
