#!/usr/bin/env python3
"""Print a NAME=VALUE auth cookie for the smoke runner's signed-in checks.

The access token is not verified by the gate, so any non-empty token works
against a local shell as long as it has not expired.
"""
from __future__ import annotations

import argparse
import time

from rankbet_shell.config import load_settings
from rankbet_shell.session_store import Session, encode_session_cookie


def build_cookie(access_token: str, *, refresh_token: str | None, expires_in: int) -> str:
    settings = load_settings()
    session = Session(
        access_token=access_token,
        refresh_token=refresh_token,
        expires_in=expires_in,
        expires_at=int(time.time()) + expires_in,
    )
    return f"{settings.cookie_name}={encode_session_cookie(session)}"


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--access-token", default="smoke-access-token")
    parser.add_argument("--refresh-token", default=None)
    parser.add_argument("--expires-in", type=int, default=3600)
    args = parser.parse_args()
    print(build_cookie(args.access_token, refresh_token=args.refresh_token, expires_in=args.expires_in))


if __name__ == "__main__":
    main()
