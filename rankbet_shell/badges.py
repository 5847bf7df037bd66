from __future__ import annotations

import httpx

from .logging_conf import get_logger

__all__ = ["BadgeChecker"]

logger = get_logger("badges")


class BadgeChecker:
    """Ask the badge service to award anything the user has become eligible for.

    ``check_badges()`` never raises: a failed check is logged and dropped,
    the next sign-in will try again.
    """

    def __init__(
        self,
        url: str | None,
        *,
        access_token: str | None = None,
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.access_token = access_token
        self._timeout_s = timeout_s
        self._transport = transport

    async def check_badges(self) -> None:
        if not self.url:
            logger.info("badges.skipped", extra={"event": "badge_check_skipped"})
            return

        headers = {}
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        try:
            async with httpx.AsyncClient(timeout=self._timeout_s, transport=self._transport) as client:
                r = await client.post(self.url, headers=headers)
                r.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(
                "badges.check_failed",
                extra={"event": "badge_check_failed", "error": str(e)},
            )
            return
        logger.info(
            "badges.checked",
            extra={"event": "badge_check", "status_code": r.status_code},
        )
