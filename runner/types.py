from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Check:
    """One expected gate behaviour: GET `path`, expect `status` (and `location`)."""

    name: str
    path: str
    status: int
    location: str | None = None
    signed_in: bool = False


@dataclass
class CheckResult:
    check: Check
    status: int | None
    location: str | None
    ok: bool
    error: str | None = None


class SmokeError(RuntimeError):
    """Raised when the smoke flow cannot proceed (e.g., health never ready)."""


class ProbeError(SmokeError):
    """Raised when a single probe request fails after retries."""
