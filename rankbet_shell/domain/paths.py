from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum

__all__ = [
    "PathCategory",
    "PROTECTED_PREFIXES",
    "AUTH_PAGE_PREFIXES",
    "AUTH_SECTION_PREFIX",
    "HOME_PATH",
    "DEMO_PATH",
    "LEGAL_PATHS",
    "SIGNIN_PATH",
    "DASHBOARD_PATH",
    "is_protected",
    "is_auth_page",
    "classify_path",
    "compile_exclusions",
]

# Prefix matches are plain startswith, so "/settings-old" is protected too.
PROTECTED_PREFIXES: tuple[str, ...] = (
    "/dashboard",
    "/rankings",
    "/profile",
    "/find-friends",
    "/find-groups",
    "/settings",
    "/leaderboard",
)
AUTH_PAGE_PREFIXES: tuple[str, ...] = ("/auth/signin", "/auth/signup")
AUTH_SECTION_PREFIX = "/auth"

HOME_PATH = "/"
DEMO_PATH = "/demo"
LEGAL_PATHS: frozenset[str] = frozenset({"/terms", "/privacy", "/support"})

SIGNIN_PATH = "/auth/signin"
DASHBOARD_PATH = "/dashboard"

_IMAGE_EXT_RE = r".*\.(?:svg|png|jpg|jpeg|gif|webp)$"


class PathCategory(str, Enum):
    protected = "protected"
    auth = "auth"
    home = "home"
    demo = "demo"
    legal = "legal"
    other = "other"


def is_protected(path: str) -> bool:
    return path.startswith(PROTECTED_PREFIXES)


def is_auth_page(path: str) -> bool:
    """True for the sign-in/sign-up pages a signed-in user is bounced from."""
    return path.startswith(AUTH_PAGE_PREFIXES)


def classify_path(path: str) -> PathCategory:
    """Place a request path in exactly one category.

    Order matters only for overlaps that cannot occur with the fixed sets
    above; protected is checked first to match the gate.
    """
    if is_protected(path):
        return PathCategory.protected
    if path.startswith(AUTH_SECTION_PREFIX):
        return PathCategory.auth
    if path == HOME_PATH:
        return PathCategory.home
    if path == DEMO_PATH:
        return PathCategory.demo
    if path in LEGAL_PATHS:
        return PathCategory.legal
    return PathCategory.other


def compile_exclusions(prefixes: Iterable[str]) -> re.Pattern[str]:
    """Compile the set of paths the session gate never looks at.

    Static asset and image-optimization prefixes, the favicon, and any path
    ending in a common image extension.
    """
    alternatives = [re.escape(p) for p in prefixes if p]
    alternatives.append(_IMAGE_EXT_RE)
    return re.compile("^(?:" + "|".join(alternatives) + ")")
