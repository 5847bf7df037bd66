from __future__ import annotations

import json
import threading

import httpx
from fastapi.testclient import TestClient

from conftest import COOKIE_NAME, make_session, session_cookie
from rankbet_shell.main import create_app


def send(ws, **message) -> dict:
    ws.send_text(json.dumps(message))
    return ws.receive_json()


def test_shell_session_follows_attach_navigation_and_auth(client):
    with client.websocket_connect("/ws/shell") as ws:
        state = send(ws, type="right_buttons", content="<button>early</button>")
        assert state["phase"] == "initializing"
        assert state["right_buttons"] is None

        state = send(ws, type="attach", path="/dashboard")
        assert state == {
            "type": "layout",
            "path": "/dashboard",
            "category": "protected",
            "signed_in": False,
            "show_header": False,
            "phase": "ready",
            "right_buttons": None,
        }

        session = make_session().model_dump()
        state = send(ws, type="auth", event="SIGNED_IN", session=session)
        assert state["signed_in"] is True
        assert state["show_header"] is True

        state = send(ws, type="right_buttons", content="<button>New ranking</button>")
        assert state["right_buttons"] == "<button>New ranking</button>"

        state = send(ws, type="navigate", path="/rankings")
        assert state["path"] == "/rankings"
        assert state["right_buttons"] is None

        state = send(ws, type="navigate", path="/")
        assert state["show_header"] is False
        state = send(ws, type="right_buttons", content="<button>ignored</button>")
        assert state["right_buttons"] is None

        state = send(ws, type="auth", event="SIGNED_OUT")
        assert state["signed_in"] is False


def test_shell_starts_from_cookie_session(client):
    client.cookies.set(COOKIE_NAME, session_cookie())
    with client.websocket_connect("/ws/shell") as ws:
        state = send(ws, type="attach", path="/leaderboard")
        assert state["signed_in"] is True
        assert state["show_header"] is True


def test_shell_refresh_cookie_rides_on_handshake(client, refresh_api):
    client.cookies.set(COOKIE_NAME, session_cookie(make_session(expires_in=-60)))
    with client.websocket_connect("/ws/shell") as ws:
        state = send(ws, type="attach", path="/profile")
        assert state["signed_in"] is True
    assert len(refresh_api.requests) == 1


def test_shell_reports_bad_messages(client):
    with client.websocket_connect("/ws/shell") as ws:
        assert send(ws, type="explode")["error_code"] == "malformed_message"
        assert send(ws, type="navigate")["error_code"] == "missing_path"
        assert send(ws, type="auth")["error_code"] == "missing_event"

        ws.send_text("{not json")
        assert ws.receive_json()["type"] == "error"

        # the connection is still usable
        assert send(ws, type="attach", path="/")["phase"] == "ready"


class BadgeEndpoint:
    """MockTransport handler for the badge service; signals each call."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.called = threading.Event()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.called.set()
        return httpx.Response(200, json={"awarded": []})


def badge_client(settings, store, endpoint: BadgeEndpoint) -> TestClient:
    wired = settings.model_copy(update={"badge_check_url": "https://api.example.test/badges/check"})
    app = create_app(wired, session_store=store, badge_transport=httpx.MockTransport(endpoint))
    return TestClient(app)


def test_sign_in_triggers_badge_check_with_cookie_token(settings, store):
    endpoint = BadgeEndpoint()
    client = badge_client(settings, store, endpoint)
    client.cookies.set(COOKIE_NAME, session_cookie())

    with client.websocket_connect("/ws/shell") as ws:
        send(ws, type="attach", path="/dashboard")
        forged = make_session().model_copy(update={"access_token": "client-made"}).model_dump()
        send(ws, type="auth", event="SIGNED_IN", session=forged)
        assert endpoint.called.wait(timeout=5)

    (request,) = endpoint.requests
    assert request.method == "POST"
    assert request.headers["Authorization"] == "Bearer access-1"


def test_socket_session_token_is_never_forwarded(settings, store):
    endpoint = BadgeEndpoint()
    client = badge_client(settings, store, endpoint)

    with client.websocket_connect("/ws/shell") as ws:
        send(ws, type="attach", path="/dashboard")
        forged = make_session().model_copy(update={"access_token": "client-made"}).model_dump()
        state = send(ws, type="auth", event="SIGNED_IN", session=forged)
        assert state["show_header"] is True
        assert endpoint.called.wait(timeout=5)

    (request,) = endpoint.requests
    assert "Authorization" not in request.headers
