"""Collaborators the CSRF guard needs from the surrounding web framework."""

from typing import Any, NoReturn, Protocol


class SessionContext(Protocol):
    def is_active(self) -> bool: ...

    def get(self, key: str) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...


class CookieTransport(Protocol):
    def read_incoming(self, name: str) -> str | None: ...

    def write_outgoing(self, name: str, value: str, path: str, session_scoped: bool = True) -> None: ...


class PostFieldReader(Protocol):
    def read_post_field(self, name: str) -> str | None: ...


class SecurityEventSink(Protocol):
    def warn(self, message: str) -> None: ...

    def terminate_session(self) -> None: ...


class HaltSignal(Protocol):
    def __call__(self, message: str) -> NoReturn: ...
