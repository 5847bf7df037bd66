from __future__ import annotations

import argparse
import os


def parse_args(argv: list[str]) -> argparse.Namespace:
    """Parse CLI arguments for the gate smoke runner."""
    parser = argparse.ArgumentParser(description="RankBet shell gate smoke runner")
    parser.add_argument("--base-url", default=os.getenv("BASE_URL", "http://127.0.0.1:3000"))
    parser.add_argument(
        "--session-cookie",
        default=os.getenv("SMOKE_SESSION_COOKIE"),
        help="NAME=VALUE of a signed-in auth cookie; enables the signed-in checks",
    )
    parser.add_argument("--timeout", type=float, default=20.0, help="seconds to wait for /health")
    return parser.parse_args(argv)


def split_cookie(raw: str | None) -> dict[str, str]:
    """Turn ``NAME=VALUE`` into a cookie mapping; empty input gives {}."""
    if not raw:
        return {}
    name, sep, value = raw.partition("=")
    if not sep or not name.strip():
        raise ValueError("--session-cookie must look like NAME=VALUE")
    return {name.strip(): value}
