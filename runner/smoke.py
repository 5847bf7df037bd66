#!/usr/bin/env python3
"""Smoke-check a running shell against the sign-in redirect policy.

Steps:
- wait for server health
- probe every protected prefix and public page without a session
- with --session-cookie, probe the auth pages and protected pages signed in
- emit a compact summary and exit code
"""
from __future__ import annotations

import asyncio
import sys

import httpx

from rankbet_shell.logging_conf import get_logger, setup_logging
from runner.cli import parse_args, split_cookie
from runner.client import run_checks, wait_for_health
from runner.utils import build_checks, summarize

setup_logging()
logger = get_logger("runner")


async def run_smoke(
    *,
    base_url: str,
    session_cookies: dict[str, str] | None = None,
    timeout_s: float = 20.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    await wait_for_health(base_url, timeout_s, transport=transport)
    checks = build_checks(signed_in=bool(session_cookies))
    results = await run_checks(
        base_url, checks, session_cookies=session_cookies, transport=transport
    )
    summary, exit_code = summarize(results)
    logger.info("runner.summary", extra=summary)
    return exit_code


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    code = asyncio.run(
        run_smoke(
            base_url=args.base_url,
            session_cookies=split_cookie(args.session_cookie),
            timeout_s=args.timeout,
        )
    )
    raise SystemExit(code)


if __name__ == "__main__":
    main()
