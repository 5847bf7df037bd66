from __future__ import annotations

from html import escape

from .controller import RenderedLayout

__all__ = ["render_document", "render_root_layout"]


def render_root_layout(layout: RenderedLayout) -> str:
    """HTML for the root layout: bare content, or header + main."""
    if not layout.show_header:
        return layout.content
    right = layout.right_buttons or ""
    return (
        '<header class="nav-header">'
        '<a href="/dashboard" class="brand">RankBet</a>'
        '<nav><a href="/rankings">Rankings</a><a href="/leaderboard">Leaderboard</a>'
        '<a href="/find-friends">Friends</a><a href="/profile">Profile</a></nav>'
        f'<div class="right-buttons">{right}</div>'
        "</header>"
        f'<main class="page">{layout.content}</main>'
    )


def render_document(title: str, body: str) -> str:
    return (
        "<!doctype html>"
        '<html lang="en"><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title>"
        '<link rel="icon" href="/favicon.ico">'
        "</head>"
        f'<body><div id="shell" data-ws="/ws/shell">{body}</div></body></html>'
    )
