"""FastAPI app factory: request logging, the session gate, and the shell routes."""
from __future__ import annotations

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

import httpx
from fastapi import FastAPI, Request, Response

from .api import router as api_router
from .config import Settings, get_settings
from .domain.paths import compile_exclusions
from .logging_conf import get_logger, setup_logging
from .middleware import make_session_gate
from .session_store import SessionStoreClient

# Configure logging before anything else.
setup_logging()
logger = get_logger("app")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings: Settings = app.state.settings
    logger.info(
        "startup",
        extra={
            "event": "startup",
            "cookie_name": settings.cookie_name,
            "fail_open": settings.fail_open,
        },
    )
    if settings.fail_open:
        logger.warning(
            "gate.fail_open_enabled",
            extra={"event": "fail_open_enabled"},
        )
    yield
    logger.info("shutdown", extra={"event": "shutdown"})


def create_app(
    settings: Settings | None = None,
    *,
    session_store: SessionStoreClient | None = None,
    badge_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    session_store = session_store or SessionStoreClient(settings)

    app = FastAPI(title="RankBet Shell", version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.session_store = session_store
    app.state.badge_transport = badge_transport
    app.state.gate_exclusions = compile_exclusions(settings.gate_exclude_prefixes)

    # Registered first so the request logger below wraps it.
    app.middleware("http")(make_session_gate(session_store, settings))

    @app.middleware("http")
    async def request_logger(request: Request, call_next: Callable[[Request], Awaitable[Response]]):
        """JSON request logging with a correlation id.

        - Reuses an incoming X-Request-ID or mints one
        - Logs start/end with method, path, status and elapsed_ms
        - Echoes X-Request-ID on the response
        """
        request_id = request.headers.get("X-Request-ID", str(uuid4()))
        request.state.request_id = request_id

        start = time.perf_counter()
        logger.info(
            "request.start",
            extra={
                "event": "request_start",
                "method": request.method,
                "path": request.url.path,
                "request_id": request_id,
            },
        )
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.error",
                extra={
                    "event": "request_error",
                    "path": request.url.path,
                    "method": request.method,
                    "request_id": request_id,
                },
            )
            raise
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000.0

        response.headers["X-Request-ID"] = request_id
        logger.info(
            "request.end",
            extra={
                "event": "request_end",
                "status_code": response.status_code,
                "elapsed_ms": round(elapsed_ms, 2),
                "request_id": request_id,
            },
        )
        return response

    app.include_router(api_router)
    return app


# ASGI entrypoint for uvicorn: `uvicorn rankbet_shell.main:app --port 3000`
app = create_app()
