"""Environment-driven settings."""
from __future__ import annotations

import os
from functools import lru_cache
from urllib.parse import urlsplit

from pydantic import BaseModel, Field, field_validator

__all__ = ["Settings", "get_settings", "load_settings"]

_DEFAULT_EXCLUDES = ("/static", "/_image", "/favicon.ico")


class Settings(BaseModel):
    """Runtime configuration for the shell.

    ``fail_open`` keeps requests flowing when the session store cannot be
    reached. That favours availability over strict gating; turn it off if a
    protected page must never render without a confirmed session.
    """

    app_version: str = "0.1.0"
    supabase_url: str = "http://localhost:54321"
    supabase_anon_key: str = ""
    session_cookie_name: str | None = None
    session_cookie_secure: bool = False
    badge_check_url: str | None = None
    badge_check_delay_s: float = Field(default=1.0, ge=0.0)
    fail_open: bool = True
    http_timeout_s: float = Field(default=5.0, gt=0.0)
    gate_exclude_prefixes: tuple[str, ...] = _DEFAULT_EXCLUDES

    @field_validator("supabase_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @field_validator("gate_exclude_prefixes", mode="before")
    @classmethod
    def _split_prefixes(cls, v: object) -> object:
        if isinstance(v, str):
            return tuple(p.strip() for p in v.split(",") if p.strip())
        return v

    @property
    def cookie_name(self) -> str:
        """Auth cookie name, ``sb-<project-ref>-auth-token`` unless overridden."""
        if self.session_cookie_name:
            return self.session_cookie_name
        host = urlsplit(self.supabase_url).hostname or "localhost"
        ref = host.split(".")[0]
        return f"sb-{ref}-auth-token"


_ENV_KEYS = {
    "APP_VERSION": "app_version",
    "SUPABASE_URL": "supabase_url",
    "SUPABASE_ANON_KEY": "supabase_anon_key",
    "SESSION_COOKIE_NAME": "session_cookie_name",
    "SESSION_COOKIE_SECURE": "session_cookie_secure",
    "BADGE_CHECK_URL": "badge_check_url",
    "BADGE_CHECK_DELAY_S": "badge_check_delay_s",
    "FAIL_OPEN": "fail_open",
    "HTTP_TIMEOUT_S": "http_timeout_s",
    "GATE_EXCLUDE_PREFIXES": "gate_exclude_prefixes",
}


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from an environment mapping (``os.environ`` by default).

    Unset or empty variables fall back to the model defaults. Raises
    ``pydantic.ValidationError`` on malformed values.
    """
    env = os.environ if environ is None else environ
    values = {field: env[key] for key, field in _ENV_KEYS.items() if env.get(key)}
    return Settings(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
