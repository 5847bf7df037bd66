from __future__ import annotations

from .paths import PathCategory, classify_path

__all__ = ["CHROMELESS_CATEGORIES", "header_visible"]

# Pages that always render bare, even for a signed-in user.
CHROMELESS_CATEGORIES = frozenset(
    {PathCategory.auth, PathCategory.home, PathCategory.demo, PathCategory.legal}
)


def header_visible(*, has_session: bool, path: str) -> bool:
    """Whether the navigation header wraps the page at ``path``.

    Only signed-in users get the header, and never on auth, home, demo or
    legal pages.
    """
    if not has_session:
        return False
    return classify_path(path) not in CHROMELESS_CATEGORIES
