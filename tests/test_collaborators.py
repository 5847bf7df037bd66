from __future__ import annotations

import asyncio

import httpx

from conftest import make_session
from rankbet_shell.auth_events import AuthEventBus, AuthEventKind
from rankbet_shell.badges import BadgeChecker
from rankbet_shell.config import load_settings


def test_bus_delivers_in_order_and_survives_bad_listener():
    bus = AuthEventBus()
    seen: list[tuple[str, str]] = []

    def broken(kind, session):
        raise RuntimeError("listener bug")

    bus.subscribe(lambda kind, session: seen.append(("first", kind.value)))
    bus.subscribe(broken)
    bus.subscribe(lambda kind, session: seen.append(("last", kind.value)))

    bus.publish(AuthEventKind.SIGNED_IN, make_session())
    assert seen == [("first", "SIGNED_IN"), ("last", "SIGNED_IN")]


def test_unsubscribe_is_idempotent():
    bus = AuthEventBus()
    sub = bus.subscribe(lambda kind, session: None)
    sub.unsubscribe()
    sub.unsubscribe()
    assert bus.listener_count == 0
    assert sub.active is False


def test_badge_check_posts_with_token():
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"awarded": []})

    checker = BadgeChecker(
        "https://api.example.test/badges/check",
        access_token="access-1",
        transport=httpx.MockTransport(handler),
    )
    asyncio.run(checker.check_badges())

    (request,) = seen
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer access-1"


def test_badge_check_swallows_http_errors():
    checker = BadgeChecker(
        "https://api.example.test/badges/check",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    asyncio.run(checker.check_badges())


def test_badge_check_without_url_is_skipped():
    asyncio.run(BadgeChecker(None).check_badges())


def test_load_settings_reads_environment():
    settings = load_settings(
        {
            "SUPABASE_URL": "https://xyz.supabase.co/",
            "FAIL_OPEN": "false",
            "BADGE_CHECK_DELAY_S": "2.5",
            "GATE_EXCLUDE_PREFIXES": "/assets, /img",
            "SESSION_COOKIE_NAME": "",
        }
    )
    assert settings.supabase_url == "https://xyz.supabase.co"
    assert settings.cookie_name == "sb-xyz-auth-token"
    assert settings.fail_open is False
    assert settings.badge_check_delay_s == 2.5
    assert settings.gate_exclude_prefixes == ("/assets", "/img")


def test_explicit_cookie_name_wins():
    assert load_settings({"SESSION_COOKIE_NAME": "session"}).cookie_name == "session"
