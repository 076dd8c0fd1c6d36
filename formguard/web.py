"""FastAPI/Starlette side of the CSRF guard.

Builds one ``CsrfGuard`` per request out of the request's session, cookies
and form body, and flushes the fallback cookie onto the outgoing response.
"""

import logging
import uuid
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, List, Mapping, NoReturn

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError

from formguard.audit import log_event
from formguard.csrf.errors import TokenMismatch
from formguard.csrf.guard import STATE_CHANGING_METHODS, CsrfGuard
from formguard.csrf.signing import CookieSigner
from formguard.csrf.store import TokenStore
from formguard.database import SessionLocal
from formguard.settings import get_settings
from formguard.vocab import get_vocab, preferred_language

logger = logging.getLogger("formguard.csrf.web")

SESSION_ID_KEY = "session_id"


def client_ip(request: Request) -> str:
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def request_language(request: Request) -> str:
    return preferred_language(request.headers.get("accept-language"), get_settings().default_language)


class StarletteSession:
    """Server-side session slot; active only once the app has started it."""

    def __init__(self, request: Request) -> None:
        self.request = request

    def is_active(self) -> bool:
        return bool(self.request.session.get(SESSION_ID_KEY))

    def get(self, key: str) -> Any:
        return self.request.session.get(key)

    def set(self, key: str, value: Any) -> None:
        self.request.session[key] = value

    def start(self, **values: Any) -> None:
        if not self.is_active():
            self.request.session[SESSION_ID_KEY] = uuid.uuid4().hex
        self.request.session.update(values)

    def clear(self) -> None:
        self.request.session.clear()


@dataclass(frozen=True)
class PendingCookie:
    name: str
    value: str
    path: str


class ResponseCookies:
    def __init__(self, request: Request) -> None:
        self.request = request

    def read_incoming(self, name: str) -> str | None:
        return self.request.cookies.get(name)

    def write_outgoing(self, name: str, value: str, path: str, session_scoped: bool = True) -> None:
        if not session_scoped:
            raise ValueError("The CSRF cookie must expire with the browser session.")
        pending: List[PendingCookie] = getattr(self.request.state, "csrf_cookies", [])
        pending.append(PendingCookie(name=name, value=value, path=path))
        self.request.state.csrf_cookies = pending


class PostedForm:
    """Reads the presented token from a parsed form body and nowhere else."""

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        self.fields = fields or {}

    def read_post_field(self, name: str) -> str | None:
        value = self.fields.get(name)
        return value if isinstance(value, str) else None


class SecurityEvents:
    def __init__(self, request: Request, session: StarletteSession, db_factory: Callable = SessionLocal) -> None:
        self.request = request
        self.session = session
        self.db_factory = db_factory

    def warn(self, message: str) -> None:
        logger.warning("%s path=%s", message, self.request.url.path)
        try:
            with self.db_factory() as db:
                log_event(db, "CSRF_SUSPECTED", ip_address=client_ip(self.request), details=message)
        except SQLAlchemyError:
            logger.exception("Could not record CSRF audit event")

    def terminate_session(self) -> None:
        self.session.clear()


def halt(message: str) -> NoReturn:
    raise TokenMismatch(message)


@lru_cache
def get_cookie_signer() -> CookieSigner:
    settings = get_settings()
    return CookieSigner(
        settings.csrf_cookie_secret,
        algorithm=settings.csrf_hash_algorithm,
        field_name=settings.csrf_field_name,
    )


async def get_csrf_guard(request: Request) -> CsrfGuard:
    guard = getattr(request.state, "csrf_guard", None)
    if guard is not None:
        return guard

    settings = get_settings()
    fields = None
    if request.method.upper() in STATE_CHANGING_METHODS:
        fields = await request.form()

    session = StarletteSession(request)
    store = TokenStore(
        session,
        ResponseCookies(request),
        get_cookie_signer(),
        cookie_name=settings.csrf_cookie_name,
        cookie_path=settings.csrf_cookie_path,
        field_name=settings.csrf_field_name,
    )
    language = request_language(request)
    guard = CsrfGuard(
        store,
        request.method,
        PostedForm(fields),
        SecurityEvents(request, session),
        halt,
        remote_addr=client_ip(request),
        session_expired_message=lambda: get_vocab("session_expired", language),
    )
    request.state.csrf_guard = guard
    return guard


async def csrf_cookie_middleware(request: Request, call_next):
    response = await call_next(request)
    settings = get_settings()
    for cookie in getattr(request.state, "csrf_cookies", []):
        # No max_age or expires: the cookie dies with the browser session.
        response.set_cookie(
            cookie.name,
            cookie.value,
            path=cookie.path,
            secure=settings.session_https_only,
            httponly=True,
            samesite="lax",
        )
    return response
