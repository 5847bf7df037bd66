"""Root layout: decides whether page content is wrapped in navigation chrome.

A controller is created per client. It starts INITIALIZING, where it renders
bare content no matter who is signed in, so a server render and the first
client render always agree. ``mount()`` moves it to READY exactly once; from
then on the header follows the session and the path.
"""
from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ..auth_events import AuthEventBus, AuthEventKind, Subscription
from ..domain.chrome import header_visible
from ..logging_conf import get_logger
from ..session_store import Session

__all__ = [
    "LayoutPhase",
    "HeaderButtons",
    "NO_HEADER_BUTTONS",
    "PageContent",
    "RenderedLayout",
    "LayoutController",
]

logger = get_logger("layout")


class LayoutPhase(str, Enum):
    INITIALIZING = "initializing"
    READY = "ready"


class HeaderButtons(Protocol):
    """Capability handed to page content for filling the header's right side."""

    def set_right_buttons(self, content: str | None) -> None: ...


class _NoHeaderButtons:
    def set_right_buttons(self, content: str | None) -> None:
        return None


NO_HEADER_BUTTONS: HeaderButtons = _NoHeaderButtons()

# Page content is rendered with the header capability it may use.
PageContent = Callable[[HeaderButtons], str]


@dataclass(frozen=True)
class RenderedLayout:
    phase: LayoutPhase
    show_header: bool
    content: str
    right_buttons: str | None = None


class _RightButtonsSlot:
    def __init__(self, controller: LayoutController) -> None:
        self._controller = controller

    def set_right_buttons(self, content: str | None) -> None:
        self._controller._right_buttons = content


class LayoutController:
    def __init__(
        self,
        *,
        path: str,
        session: Session | None,
        events: AuthEventBus | None = None,
        check_badges: Callable[[], Awaitable[None]] | None = None,
        badge_delay_s: float = 1.0,
    ) -> None:
        self._path = path
        self._session = session
        self._events = events
        self._check_badges = check_badges
        self._badge_delay_s = badge_delay_s
        self._right_buttons: str | None = None
        self._phase = LayoutPhase.INITIALIZING
        self._subscription: Subscription | None = None
        self._pending: set[asyncio.Task[None]] = set()
        self._slot = _RightButtonsSlot(self)
        self._closed = False

    @property
    def phase(self) -> LayoutPhase:
        return self._phase

    @property
    def path(self) -> str:
        return self._path

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def right_buttons(self) -> str | None:
        return self._right_buttons

    @property
    def pending_badge_checks(self) -> int:
        return len(self._pending)

    @property
    def show_header(self) -> bool:
        if self._phase is not LayoutPhase.READY:
            return False
        return header_visible(has_session=self._session is not None, path=self._path)

    # ------------------------
    # Lifecycle
    # ------------------------
    def mount(self) -> None:
        """First client attachment: subscribe to auth changes and go READY."""
        if self._phase is LayoutPhase.READY or self._closed:
            return
        if self._events is not None:
            self._subscription = self._events.subscribe(self._on_auth_event)
        self._phase = LayoutPhase.READY
        logger.debug("layout.mounted", extra={"event": "layout_mounted", "path": self._path})

    def teardown(self) -> None:
        """Unsubscribe and cancel any badge check that has not fired yet."""
        self._closed = True
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()

    # ------------------------
    # Inputs
    # ------------------------
    def navigate(self, path: str) -> None:
        if path == self._path:
            return
        self._path = path
        self._right_buttons = None

    def _on_auth_event(self, kind: AuthEventKind, session: Session | None) -> None:
        self._session = session
        if session is not None and kind is AuthEventKind.SIGNED_IN:
            self._schedule_badge_check()

    def _schedule_badge_check(self) -> None:
        if self._check_badges is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("layout.badge_check_no_loop", extra={"event": "badge_check_no_loop"})
            return
        task = loop.create_task(self._delayed_badge_check(self._check_badges))
        self._pending.add(task)
        task.add_done_callback(self._badge_check_done)

    async def _delayed_badge_check(self, check_badges: Callable[[], Awaitable[None]]) -> None:
        await asyncio.sleep(self._badge_delay_s)
        await check_badges()

    def _badge_check_done(self, task: asyncio.Task[None]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "layout.badge_check_error",
                exc_info=exc,
                extra={"event": "badge_check_error", "path": self._path},
            )

    # ------------------------
    # Output
    # ------------------------
    def header_buttons(self) -> HeaderButtons:
        """The right-buttons setter, or a no-op when no header is shown."""
        return self._slot if self.show_header else NO_HEADER_BUTTONS

    def render(self, content: PageContent) -> RenderedLayout:
        if not self.show_header:
            return RenderedLayout(self._phase, False, content(NO_HEADER_BUTTONS))
        body = content(self._slot)
        return RenderedLayout(self._phase, True, body, self._right_buttons)
