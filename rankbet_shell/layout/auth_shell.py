from __future__ import annotations

from html import escape

from .controller import LayoutPhase

__all__ = ["FEATURE_HIGHLIGHTS", "AuthShell"]

FEATURE_HIGHLIGHTS: tuple[tuple[str, str], ...] = (
    ("Start Ranking Today", "Create your first fantasy football rankings and see how you stack up"),
    ("Join the Community", "Connect with thousands of fantasy football enthusiasts"),
    ("Prove Your Skills", "Climb the leaderboards and become a verified expert"),
)

_BRAND = "RankBet"


class AuthShell:
    """Two-pane frame for the sign-in/sign-up pages.

    The marketing panel and the mobile logo are decorative and only drawn
    after mount; before that they are same-sized placeholders.
    """

    def __init__(self) -> None:
        self.phase = LayoutPhase.INITIALIZING

    def mount(self) -> None:
        self.phase = LayoutPhase.READY

    def _feature_panel(self) -> str:
        if self.phase is LayoutPhase.INITIALIZING:
            return '<div class="auth-features placeholder"></div>'
        cards = "".join(
            f'<div class="feature"><h3>{escape(title)}</h3><p>{escape(body)}</p></div>'
            for title, body in FEATURE_HIGHLIGHTS
        )
        return (
            '<div class="auth-features">'
            f'<a href="/" class="logo"><img src="/static/logo.svg" alt="{_BRAND}" width="120" height="120"></a>'
            f"{cards}</div>"
        )

    def _mobile_logo(self) -> str:
        if self.phase is LayoutPhase.INITIALIZING:
            return '<div class="auth-mobile-logo placeholder"></div>'
        return (
            '<div class="auth-mobile-logo">'
            f'<a href="/"><img src="/static/logo.svg" alt="{_BRAND}" width="80" height="80"></a>'
            "</div>"
        )

    def render(self, content: str) -> str:
        return (
            '<div class="auth-layout">'
            f"{self._feature_panel()}"
            '<div class="auth-pane"><div class="auth-pane-inner">'
            f"{self._mobile_logo()}{content}"
            "</div></div></div>"
        )
