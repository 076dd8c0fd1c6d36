from typing import Callable

from formguard.csrf.ports import HaltSignal, PostFieldReader, SecurityEventSink
from formguard.csrf.store import TokenStore

STATE_CHANGING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


class CsrfGuard:
    """Issues the CSRF token for one request and checks submitted forms.

    One guard exists per inbound request. The presented token is only ever
    read from the form body of a state-changing request.
    """

    def __init__(
        self,
        store: TokenStore,
        method: str,
        form: PostFieldReader,
        events: SecurityEventSink,
        halt: HaltSignal,
        remote_addr: str = "unknown",
        session_expired_message: Callable[[], str] = lambda: "Session expired",
    ) -> None:
        self.store = store
        self.method = method.upper()
        self.form = form
        self.events = events
        self.halt = halt
        self.remote_addr = remote_addr
        self.session_expired_message = session_expired_message
        self._token: str | None = None

    @property
    def field_name(self) -> str:
        return self.store.field_name

    def embed_value(self) -> str:
        if self._token is None:
            self._token = self.store.get_or_create()
        return self._token

    def is_state_changing(self) -> bool:
        return self.method in STATE_CHANGING_METHODS

    def check(self, post_only: bool = False) -> None:
        """Halt the request unless it presents the stored token.

        With ``post_only`` set, requests that cannot change state pass
        untouched. Pages reachable by both GET and POST use that mode.
        """
        if post_only and not self.is_state_changing():
            return

        presented = self.form.read_post_field(self.field_name) if self.is_state_changing() else None
        if self.store.validate_against(presented):
            return

        self.events.warn(f"Possible CSRF attack from IP address {self.remote_addr}")
        self.events.terminate_session()
        self.halt(self.session_expired_message())
