from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlencode

from .paths import DASHBOARD_PATH, SIGNIN_PATH, is_auth_page, is_protected

__all__ = ["GateOutcome", "GateDecision", "decide", "signin_location"]


class GateOutcome(str, Enum):
    allow = "allow"
    redirect_to_signin = "redirect_to_signin"
    redirect_to_dashboard = "redirect_to_dashboard"


@dataclass(frozen=True)
class GateDecision:
    """Result of the gate policy for one request.

    ``location`` is the path+query to redirect to, or None when allowed.
    """

    outcome: GateOutcome
    location: str | None = None

    @property
    def is_redirect(self) -> bool:
        return self.outcome is not GateOutcome.allow


ALLOW = GateDecision(GateOutcome.allow)


def signin_location(original_path: str) -> str:
    """Sign-in URL carrying the page to come back to, e.g. ``/auth/signin?redirect=%2Frankings``."""
    return f"{SIGNIN_PATH}?{urlencode({'redirect': original_path})}"


def decide(path: str, *, has_session: bool) -> GateDecision:
    """Pick exactly one outcome for a request.

    1. protected path without a session -> sign in, remembering the path
    2. sign-in/sign-up page with a session -> dashboard
    3. anything else -> allow
    """
    if is_protected(path) and not has_session:
        return GateDecision(GateOutcome.redirect_to_signin, signin_location(path))
    if has_session and is_auth_page(path):
        return GateDecision(GateOutcome.redirect_to_dashboard, DASHBOARD_PATH)
    return ALLOW
