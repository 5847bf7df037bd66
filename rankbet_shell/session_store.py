"""Cookie-backed session resolution against a Supabase-compatible auth API.

The session lives in the browser as a JSON cookie (optionally base64url
encoded, optionally split into numbered chunks). Resolving it may refresh
the access token; any cookie writes are recorded on a CookieJar so the caller
can mirror them onto its response.
"""
from __future__ import annotations

import base64
import json
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from .config import Settings
from .errors import ShellError
from .logging_conf import get_logger

__all__ = [
    "Session",
    "CookieMutation",
    "CookieJar",
    "SessionStoreError",
    "MalformedSessionCookieError",
    "SessionStoreClient",
    "encode_session_cookie",
    "decode_session_cookie",
    "EXPIRY_MARGIN_S",
    "MAX_CHUNK_SIZE",
]

logger = get_logger("session")

EXPIRY_MARGIN_S = 10
MAX_CHUNK_SIZE = 3180
COOKIE_MAX_AGE_S = 400 * 24 * 60 * 60
_BASE64_PREFIX = "base64-"
_DEAD_REFRESH_STATUSES = {400, 401, 403}


# ------------------------
# Errors
# ------------------------
class SessionStoreError(ShellError):
    """The session store could not be consulted (network, 5xx, bad payload)."""

    code = "session_store_unavailable"


class MalformedSessionCookieError(SessionStoreError):
    code = "session_cookie_malformed"


# ------------------------
# Schema
# ------------------------
class Session(BaseModel):
    """An authenticated identity as issued by the auth API.

    The gate only cares whether one exists; the fields are kept so the
    session can be refreshed and written back.
    """

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str | None = None
    expires_at: int | None = None  # epoch seconds
    expires_in: int | None = None
    token_type: str = "bearer"
    user: dict[str, Any] | None = None

    def expires_soon(self, now_s: float, margin_s: int = EXPIRY_MARGIN_S) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= now_s + margin_s


@dataclass(frozen=True)
class CookieMutation:
    """One Set-Cookie the session lookup asked for. A removal has value ''."""

    name: str
    value: str
    options: dict[str, Any] = field(default_factory=dict)


class CookieJar:
    """Read incoming cookies, record outgoing writes.

    Reads see earlier writes made through the same jar, so a refresh followed
    by a second lookup observes the refreshed value.
    """

    def __init__(self, incoming: Mapping[str, str] | None = None) -> None:
        self._incoming = dict(incoming or {})
        self.mutations: list[CookieMutation] = []

    def _current(self) -> dict[str, str]:
        values = dict(self._incoming)
        for m in self.mutations:
            if m.value == "" and m.options.get("max_age") == 0:
                values.pop(m.name, None)
            else:
                values[m.name] = m.value
        return values

    def get(self, name: str) -> str | None:
        return self._current().get(name)

    def names(self) -> list[str]:
        return list(self._current())

    def set(self, name: str, value: str, **options: Any) -> None:
        self.mutations.append(CookieMutation(name, value, options))

    def remove(self, name: str, **options: Any) -> None:
        self.mutations.append(CookieMutation(name, "", {**options, "max_age": 0}))


# ------------------------
# Cookie codec
# ------------------------
def encode_session_cookie(session: Session) -> str:
    raw = json.dumps(session.model_dump(exclude_none=True), separators=(",", ":"))
    encoded = base64.urlsafe_b64encode(raw.encode("utf-8")).decode("ascii").rstrip("=")
    return _BASE64_PREFIX + encoded


def decode_session_cookie(value: str) -> Session:
    """Parse a raw or ``base64-``-prefixed cookie value into a Session.

    Raises MalformedSessionCookieError when it cannot be parsed.
    """
    text = value
    if text.startswith(_BASE64_PREFIX):
        body = text[len(_BASE64_PREFIX):]
        body += "=" * (-len(body) % 4)
        try:
            text = base64.urlsafe_b64decode(body.encode("ascii")).decode("utf-8")
        except (ValueError, UnicodeError) as e:
            raise MalformedSessionCookieError("Session cookie is not valid base64url") from e

    try:
        data = json.loads(text)
    except ValueError as e:
        raise MalformedSessionCookieError("Session cookie JSON is malformed") from e

    if not isinstance(data, dict):
        raise MalformedSessionCookieError("Session cookie is not a JSON object")
    try:
        return Session(**data)
    except ValidationError as e:
        raise MalformedSessionCookieError(f"Session cookie schema invalid: {e}") from e


def _chunk_names(jar: CookieJar, name: str) -> list[str]:
    prefix = f"{name}."
    chunks = [n for n in jar.names() if n.startswith(prefix) and n[len(prefix):].isdigit()]
    return sorted(chunks, key=lambda n: int(n[len(prefix):]))


def _read_cookie(jar: CookieJar, name: str) -> str | None:
    whole = jar.get(name)
    if whole:
        return whole
    parts = []
    for i in range(len(_chunk_names(jar, name))):
        part = jar.get(f"{name}.{i}")
        if part is None:  # gap in the numbering; ignore the tail
            break
        parts.append(part)
    return "".join(parts) or None


# ------------------------
# Client
# ------------------------
class SessionStoreClient:
    """Resolve the caller's session from cookies, refreshing when needed."""

    def __init__(
        self,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._clock = clock

    @property
    def cookie_name(self) -> str:
        return self._settings.cookie_name

    def cookie_options(self) -> dict[str, Any]:
        return {
            "path": "/",
            "samesite": "lax",
            "httponly": False,
            "secure": self._settings.session_cookie_secure,
            "max_age": COOKIE_MAX_AGE_S,
        }

    async def get_session(self, jar: CookieJar) -> Session | None:
        """Return the current session, or None when signed out.

        Raises SessionStoreError if a needed refresh cannot reach the store.
        """
        raw = _read_cookie(jar, self.cookie_name)
        if raw is None:
            return None

        try:
            session = decode_session_cookie(raw)
        except MalformedSessionCookieError as e:
            logger.warning(
                "session.cookie_malformed",
                extra={"event": "session_cookie_malformed", "error_code": e.code},
            )
            self.clear(jar)
            return None

        if not session.expires_soon(self._clock()):
            return session
        if not session.refresh_token:
            self.clear(jar)
            return None

        refreshed = await self._refresh(session.refresh_token)
        if refreshed is None:
            self.clear(jar)
            return None
        self.write(jar, refreshed)
        return refreshed

    async def _refresh(self, refresh_token: str) -> Session | None:
        s = self._settings
        headers = {"apikey": s.supabase_anon_key, "Authorization": f"Bearer {s.supabase_anon_key}"}
        try:
            async with httpx.AsyncClient(
                base_url=s.supabase_url,
                timeout=s.http_timeout_s,
                transport=self._transport,
            ) as client:
                r = await client.post(
                    "/auth/v1/token",
                    params={"grant_type": "refresh_token"},
                    json={"refresh_token": refresh_token},
                    headers=headers,
                )
        except httpx.HTTPError as e:
            raise SessionStoreError(f"token refresh failed: {e}") from e

        if r.status_code in _DEAD_REFRESH_STATUSES:
            logger.info(
                "session.refresh_rejected",
                extra={"event": "session_refresh_rejected", "status_code": r.status_code},
            )
            return None
        if r.is_error:
            raise SessionStoreError(f"token refresh returned {r.status_code}")

        try:
            data = r.json()
            session = Session(**data)
        except (ValueError, TypeError, ValidationError) as e:
            raise SessionStoreError("token refresh returned an unusable payload") from e

        if session.expires_at is None and session.expires_in is not None:
            session = session.model_copy(
                update={"expires_at": int(self._clock()) + session.expires_in}
            )
        logger.info("session.refresh", extra={"event": "session_refresh"})
        return session

    def write(self, jar: CookieJar, session: Session) -> None:
        """Store ``session`` in the jar, chunking if it is too large for one cookie."""
        name = self.cookie_name
        opts = self.cookie_options()
        value = encode_session_cookie(session)
        stale = set(_chunk_names(jar, name))
        if jar.get(name) is not None:
            stale.add(name)

        if len(value) <= MAX_CHUNK_SIZE:
            jar.set(name, value, **opts)
            stale.discard(name)
        else:
            for i in range(0, len(value), MAX_CHUNK_SIZE):
                chunk = f"{name}.{i // MAX_CHUNK_SIZE}"
                jar.set(chunk, value[i:i + MAX_CHUNK_SIZE], **opts)
                stale.discard(chunk)

        for n in sorted(stale):
            jar.remove(n, path="/")

    def clear(self, jar: CookieJar) -> None:
        name = self.cookie_name
        targets = _chunk_names(jar, name)
        if jar.get(name) is not None:
            targets.insert(0, name)
        for n in targets:
            jar.remove(n, path="/")
