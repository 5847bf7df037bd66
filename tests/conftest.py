from __future__ import annotations

import time

import httpx
import pytest
from fastapi.testclient import TestClient

from rankbet_shell.config import Settings
from rankbet_shell.main import create_app
from rankbet_shell.session_store import Session, SessionStoreClient, encode_session_cookie

COOKIE_NAME = "sb-abcd-auth-token"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://abcd.supabase.co",
        supabase_anon_key="anon-key",
        badge_check_delay_s=0.0,
    )


def make_session(*, expires_in: int = 3600, refresh_token: str | None = "refresh-1") -> Session:
    return Session(
        access_token="access-1",
        refresh_token=refresh_token,
        expires_at=int(time.time()) + expires_in,
        user={"id": "user-1"},
    )


def session_cookie(session: Session | None = None) -> str:
    return encode_session_cookie(session or make_session())


class RefreshRecorder:
    """MockTransport handler standing in for the auth API's token endpoint."""

    def __init__(self, status_code: int = 200, payload: dict | None = None) -> None:
        self.status_code = status_code
        self.payload = payload if payload is not None else {
            "access_token": "access-2",
            "refresh_token": "refresh-2",
            "expires_in": 3600,
            "token_type": "bearer",
            "user": {"id": "user-1"},
        }
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)


@pytest.fixture
def refresh_api() -> RefreshRecorder:
    return RefreshRecorder()


@pytest.fixture
def store(settings: Settings, refresh_api: RefreshRecorder) -> SessionStoreClient:
    return SessionStoreClient(settings, transport=httpx.MockTransport(refresh_api))


@pytest.fixture
def client(settings: Settings, store: SessionStoreClient) -> TestClient:
    return TestClient(create_app(settings, session_store=store))
