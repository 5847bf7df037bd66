from __future__ import annotations

import asyncio
import time
from collections.abc import Iterable

import httpx

from rankbet_shell.logging_conf import get_logger
from runner.types import Check, CheckResult, ProbeError, SmokeError
from runner.utils import location_matches

logger = get_logger("runner.client")


async def wait_for_health(
    base_url: str, timeout_s: float = 20.0, *, transport: httpx.AsyncBaseTransport | None = None
) -> None:
    """Ping /health until it returns ok or raise after a timeout."""
    deadline = time.monotonic() + timeout_s
    async with httpx.AsyncClient(base_url=base_url, timeout=5.0, transport=transport) as client:
        while time.monotonic() < deadline:
            try:
                r = await client.get("/health")
                if r.status_code == 200 and r.json().get("ok") is True:
                    logger.info("health.ok", extra={"event": "health_ok"})
                    return
            except httpx.HTTPError:
                pass
            await asyncio.sleep(0.25)
    raise SmokeError("Health check did not pass within timeout")


async def probe(
    client: httpx.AsyncClient, path: str, *, cookies: dict[str, str] | None = None, retries: int = 2
) -> httpx.Response:
    """GET ``path`` without following redirects, retrying transport errors."""
    headers = {"Cookie": "; ".join(f"{k}={v}" for k, v in cookies.items())} if cookies else None
    last_err: Exception | None = None
    for attempt in range(retries):
        try:
            return await client.get(path, headers=headers)
        except httpx.HTTPError as e:  # pragma: no cover - network flakiness
            last_err = e
            logger.warning(
                "probe.retry",
                extra={"event": "probe_retry", "path": path, "attempt": attempt + 1, "error": str(e)},
            )
    raise ProbeError(f"probe failed for {path}: {last_err}")


async def run_checks(
    base_url: str,
    checks: Iterable[Check],
    *,
    session_cookies: dict[str, str] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[CheckResult]:
    """Run every check concurrently; a failed probe becomes a failed result."""
    async with httpx.AsyncClient(
        base_url=base_url, timeout=10.0, follow_redirects=False, transport=transport
    ) as client:

        async def one(check: Check) -> CheckResult:
            cookies = session_cookies if check.signed_in else None
            try:
                r = await probe(client, check.path, cookies=cookies)
            except ProbeError as e:
                return CheckResult(check, None, None, False, str(e))
            location = r.headers.get("location")
            ok = r.status_code == check.status and (
                check.location is None or location_matches(location, check.location)
            )
            return CheckResult(check, r.status_code, location, ok)

        results = await asyncio.gather(*(one(c) for c in checks))

    logger.info(
        "checks.done",
        extra={
            "event": "checks_done",
            "total": len(results),
            "failed": sum(1 for r in results if not r.ok),
        },
    )
    return list(results)
