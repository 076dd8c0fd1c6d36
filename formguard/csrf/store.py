import enum
from typing import Callable

from formguard.csrf.compare import tokens_equal
from formguard.csrf.ports import CookieTransport, SessionContext
from formguard.csrf.signing import CookieSigner
from formguard.csrf.tokens import generate_token


class Backend(enum.Enum):
    UNRESOLVED = "unresolved"
    SESSION = "session"
    COOKIE = "cookie"


class TokenStore:
    """Request-scoped home of the CSRF token.

    While a server-side session is active the token lives in the session
    and the fallback cookie is neither read nor written. Otherwise a fresh
    token is issued for the request and handed to the client in a signed
    cookie, written at most once per response.

    The backend is re-examined on every call: once a session shows up it
    wins for the rest of the request, and a token already issued under the
    cookie backend is carried into the session so forms rendered earlier
    in the response stay valid.
    """

    def __init__(
        self,
        session: SessionContext,
        cookies: CookieTransport,
        signer: CookieSigner,
        cookie_name: str,
        cookie_path: str = "/",
        field_name: str = "csrf_token",
        token_factory: Callable[[], str] = generate_token,
    ) -> None:
        self.session = session
        self.cookies = cookies
        self.signer = signer
        self.cookie_name = cookie_name
        self.cookie_path = cookie_path
        self.field_name = field_name
        self.token_factory = token_factory
        self.backend = Backend.UNRESOLVED
        self._cookie_token: str | None = None
        self._cookie_scheduled = False

    def _resolve(self) -> Backend:
        if self.backend is Backend.SESSION:
            return self.backend

        if self.session.is_active():
            if self._cookie_token is not None:
                self.session.set(self.field_name, self._cookie_token)
            self.backend = Backend.SESSION
        else:
            self.backend = Backend.COOKIE
        return self.backend

    def get_or_create(self) -> str:
        if self._resolve() is Backend.SESSION:
            token = self.session.get(self.field_name)
            if not token:
                token = self.token_factory()
                self.session.set(self.field_name, token)
            return token

        if self._cookie_token is None:
            self._cookie_token = self.token_factory()
        if not self._cookie_scheduled:
            self.cookies.write_outgoing(
                self.cookie_name,
                self.signer.encode(self._cookie_token),
                path=self.cookie_path,
                session_scoped=True,
            )
            self._cookie_scheduled = True
        return self._cookie_token

    def stored_token(self) -> str | None:
        if self._resolve() is Backend.SESSION:
            return self.session.get(self.field_name)

        result = self.signer.decode(self.cookies.read_incoming(self.cookie_name))
        return result.token if result.ok else None

    def validate_against(self, presented: str | None) -> bool:
        return tokens_equal(presented, self.stored_token())
