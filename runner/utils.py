from __future__ import annotations

from urllib.parse import urlsplit

from rankbet_shell.domain.gate import signin_location
from rankbet_shell.domain.paths import (
    AUTH_PAGE_PREFIXES,
    DASHBOARD_PATH,
    DEMO_PATH,
    HOME_PATH,
    LEGAL_PATHS,
    PROTECTED_PREFIXES,
)
from runner.types import Check, CheckResult


def location_matches(location: str | None, expected: str) -> bool:
    """Compare a Location header's path+query with an expected path+query.

    The gate answers with absolute URLs, so scheme and host are ignored.
    """
    if not location:
        return False
    parts = urlsplit(location)
    got = parts.path + (f"?{parts.query}" if parts.query else "")
    return got == expected


def build_checks(*, signed_in: bool) -> list[Check]:
    """The gate's expected behaviour, as probes.

    Without a session: every protected prefix bounces to sign-in and the
    public pages render. With one: the auth pages bounce to the dashboard and
    protected pages render.
    """
    checks = [
        Check(f"anon {p} -> signin", p, 302, signin_location(p)) for p in PROTECTED_PREFIXES
    ]
    public = [HOME_PATH, DEMO_PATH, *sorted(LEGAL_PATHS), *AUTH_PAGE_PREFIXES]
    checks += [Check(f"anon {p} passes", p, 200) for p in public]

    if signed_in:
        checks += [
            Check(f"session {p} -> dashboard", p, 302, DASHBOARD_PATH, signed_in=True)
            for p in AUTH_PAGE_PREFIXES
        ]
        checks += [
            Check(f"session {p} passes", p, 200, signed_in=True) for p in PROTECTED_PREFIXES
        ]
    return checks


def summarize(results: list[CheckResult]) -> tuple[dict, int]:
    """Compute summary dict and an exit code (0 only if every check passed)."""
    failures = [
        {
            "name": r.check.name,
            "path": r.check.path,
            "expected_status": r.check.status,
            "expected_location": r.check.location,
            "status": r.status,
            "location": r.location,
            "error": r.error,
        }
        for r in results
        if not r.ok
    ]
    summary = {
        "component": "runner",
        "event": "summary",
        "checks": len(results),
        "passed": len(results) - len(failures),
        "failed": len(failures),
        "failures": failures,
    }
    exit_code = 0 if results and not failures else 1
    return summary, exit_code
