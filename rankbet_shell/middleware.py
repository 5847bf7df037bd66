"""Session gate: the per-request auth redirect middleware."""
from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable

from fastapi import Request, Response
from fastapi.responses import RedirectResponse

from .config import Settings
from .domain.gate import ALLOW, GateDecision, GateOutcome, decide, signin_location
from .domain.paths import compile_exclusions, is_protected
from .logging_conf import get_logger
from .session_store import CookieJar, CookieMutation, SessionStoreClient

__all__ = ["make_session_gate", "apply_cookie_mutations", "absolute_url"]

logger = get_logger("gate")

CallNext = Callable[[Request], Awaitable[Response]]
_COOKIE_KWARGS = {"max_age", "expires", "path", "domain", "secure", "httponly", "samesite"}


def apply_cookie_mutations(response: Response, mutations: Iterable[CookieMutation]) -> None:
    """Replay cookie writes recorded during session lookup onto ``response``."""
    for m in mutations:
        kwargs = {k: v for k, v in m.options.items() if k in _COOKIE_KWARGS}
        response.set_cookie(key=m.name, value=m.value, **kwargs)


def absolute_url(request: Request, location: str) -> str:
    """Resolve a path+query against the request's origin."""
    path, _, query = location.partition("?")
    return str(request.url.replace(path=path, query=query, fragment=""))


def make_session_gate(
    store: SessionStoreClient, settings: Settings
) -> Callable[[Request, CallNext], Awaitable[Response]]:
    """Build the HTTP middleware that enforces the sign-in redirects.

    Register with ``app.middleware("http")(make_session_gate(store, settings))``.
    Session lookup failures never reach the client: with ``fail_open`` the
    request passes through as if nothing happened.
    """
    excluded = compile_exclusions(settings.gate_exclude_prefixes)

    async def session_gate(request: Request, call_next: CallNext) -> Response:
        path = request.url.path
        if excluded.match(path):
            return await call_next(request)

        jar = CookieJar(request.cookies)
        request.state.session = None
        decision: GateDecision
        try:
            session = await store.get_session(jar)
            request.state.session = session
            decision = decide(path, has_session=session is not None)
        except Exception as exc:
            logger.exception(
                "gate.session_error",
                extra={
                    "event": "gate_session_error",
                    "path": path,
                    "error_code": getattr(exc, "code", type(exc).__name__),
                },
            )
            if settings.fail_open or not is_protected(path):
                decision = ALLOW
            else:
                decision = GateDecision(GateOutcome.redirect_to_signin, signin_location(path))

        if decision.location is not None:
            logger.info(
                "gate.redirect",
                extra={
                    "event": "gate_redirect",
                    "path": path,
                    "outcome": decision.outcome.value,
                    "location": decision.location,
                },
            )
            response: Response = RedirectResponse(
                url=absolute_url(request, decision.location), status_code=302
            )
        else:
            response = await call_next(request)

        apply_cookie_mutations(response, jar.mutations)
        return response

    return session_gate
