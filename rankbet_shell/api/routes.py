from __future__ import annotations

from html import escape

from fastapi import APIRouter, HTTPException, Query, Request, Response, WebSocket, WebSocketDisconnect, status
from fastapi.responses import HTMLResponse
from pydantic import ValidationError

from ..auth_events import AuthEventBus
from ..badges import BadgeChecker
from ..domain.chrome import header_visible
from ..domain.paths import AUTH_SECTION_PREFIX, classify_path
from ..layout import NO_HEADER_BUTTONS, AuthShell, HeaderButtons, LayoutController
from ..layout.html import render_document, render_root_layout
from ..logging_conf import get_logger
from ..middleware import apply_cookie_mutations
from ..session_store import CookieJar, Session
from .models import HealthResponse, LayoutState, ShellErrorMessage, ShellMessage, ShellState

router = APIRouter()
logger = get_logger("api")


def _request_session(request: Request) -> Session | None:
    return getattr(request.state, "session", None)


def _page_title(path: str) -> str:
    last = path.rstrip("/").rsplit("/", 1)[-1]
    return last.replace("-", " ").title() if last else "Home"


def _page_content(path: str):
    """Placeholder page body; real pages are rendered by the front-end."""
    def content(buttons: HeaderButtons) -> str:
        return (
            f'<section data-path="{escape(path)}">'
            f"<h1>{escape(_page_title(path))}</h1></section>"
        )
    return content


@router.get("/health", response_model=HealthResponse, summary="Liveness/readiness check")
async def health() -> HealthResponse:
    return HealthResponse()


@router.get("/api/layout", response_model=LayoutState, summary="Header visibility for a path")
async def layout_state(
    request: Request,
    path: str = Query("/", description="Page path to evaluate, e.g. /dashboard"),
) -> LayoutState:
    """Evaluate the chrome rules for ``path`` with the session the gate resolved."""
    if not path.startswith("/"):
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error_code": "malformed_request", "error_message": "path must start with /"},
        )
    has_session = _request_session(request) is not None
    return LayoutState(
        path=path,
        category=classify_path(path),
        signed_in=has_session,
        show_header=header_visible(has_session=has_session, path=path),
    )


def _shell_state(controller: LayoutController) -> dict:
    state = ShellState(
        path=controller.path,
        category=classify_path(controller.path),
        signed_in=controller.session is not None,
        show_header=controller.show_header,
        phase=controller.phase,
        right_buttons=controller.right_buttons,
    )
    return state.model_dump(mode="json")


def _shell_error(code: str, message: str) -> dict:
    return ShellErrorMessage(error_code=code, error_message=message).model_dump()


@router.websocket("/ws/shell")
async def shell_socket(websocket: WebSocket) -> None:
    """Drive one layout controller for an attached client.

    The client sends ``attach`` once its first render is on screen, then
    ``navigate``/``auth``/``right_buttons`` as things change; every message
    is answered with the resulting layout state.
    """
    app_state = websocket.app.state
    settings = app_state.settings

    jar = CookieJar(websocket.cookies)
    try:
        session = await app_state.session_store.get_session(jar)
    except Exception:
        logger.exception("shell.session_error", extra={"event": "shell_session_error"})
        session = None

    # Refreshed cookies can only ride on the handshake response.
    carrier = Response()
    apply_cookie_mutations(carrier, jar.mutations)
    cookie_headers = [(k, v) for k, v in carrier.raw_headers if k == b"set-cookie"]
    await websocket.accept(headers=cookie_headers or None)

    # Only a token the session store vouched for is forwarded; sessions sent
    # over the socket drive the layout but are never relayed upstream.
    badges = BadgeChecker(
        settings.badge_check_url,
        access_token=session.access_token if session else None,
        timeout_s=settings.http_timeout_s,
        transport=app_state.badge_transport,
    )
    events = AuthEventBus()

    controller = LayoutController(
        path="/",
        session=session,
        events=events,
        check_badges=badges.check_badges,
        badge_delay_s=settings.badge_check_delay_s,
    )
    logger.info("shell.connect", extra={"event": "shell_connect", "signed_in": session is not None})

    try:
        while True:
            text = await websocket.receive_text()
            try:
                msg = ShellMessage.model_validate_json(text)
            except ValidationError as e:
                await websocket.send_json(_shell_error("malformed_message", str(e)))
                continue

            if msg.type == "attach":
                if msg.path:
                    controller.navigate(msg.path)
                controller.mount()
            elif msg.type == "navigate":
                if not msg.path:
                    await websocket.send_json(_shell_error("missing_path", "navigate requires a path"))
                    continue
                controller.navigate(msg.path)
            elif msg.type == "auth":
                if msg.event is None:
                    await websocket.send_json(_shell_error("missing_event", "auth requires an event"))
                    continue
                events.publish(msg.event, msg.session)
            else:
                controller.header_buttons().set_right_buttons(msg.content)

            await websocket.send_json(_shell_state(controller))
    except WebSocketDisconnect:
        logger.info("shell.disconnect", extra={"event": "shell_disconnect"})
    finally:
        controller.teardown()


@router.get("/{page_path:path}", response_class=HTMLResponse, include_in_schema=False)
async def page(page_path: str, request: Request) -> HTMLResponse:
    """Server render of a page: always the pre-mount structure."""
    path = request.url.path
    if request.app.state.gate_exclusions.match(path):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)

    render = _page_content(path)
    if path.startswith(AUTH_SECTION_PREFIX):
        body = AuthShell().render(render(NO_HEADER_BUTTONS))
    else:
        controller = LayoutController(path=path, session=_request_session(request))
        body = render_root_layout(controller.render(render))
    return HTMLResponse(render_document(f"RankBet | {_page_title(path)}", body))
