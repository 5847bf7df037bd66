from __future__ import annotations

from collections.abc import Callable
from enum import Enum

from .logging_conf import get_logger
from .session_store import Session

__all__ = ["AuthEventKind", "AuthListener", "Subscription", "AuthEventBus"]

logger = get_logger("auth_events")


class AuthEventKind(str, Enum):
    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"
    PASSWORD_RECOVERY = "PASSWORD_RECOVERY"


AuthListener = Callable[[AuthEventKind, Session | None], None]


class Subscription:
    """Handle returned by AuthEventBus.subscribe; unsubscribe() is idempotent."""

    def __init__(self, bus: AuthEventBus, listener: AuthListener) -> None:
        self._bus = bus
        self._listener = listener
        self.active = True

    def unsubscribe(self) -> None:
        if not self.active:
            return
        self.active = False
        self._bus._remove(self._listener)


class AuthEventBus:
    """Deliver (event kind, session) pairs to subscribers in subscription order."""

    def __init__(self) -> None:
        self._listeners: list[AuthListener] = []

    def subscribe(self, listener: AuthListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self, listener)

    def _remove(self, listener: AuthListener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def publish(self, kind: AuthEventKind, session: Session | None) -> None:
        for listener in list(self._listeners):
            try:
                listener(kind, session)
            except Exception:
                logger.exception(
                    "auth_events.listener_error",
                    extra={"event": "auth_listener_error", "kind": kind.value},
                )
