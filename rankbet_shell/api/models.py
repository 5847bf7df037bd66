from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from ..auth_events import AuthEventKind
from ..domain.paths import PathCategory
from ..layout.controller import LayoutPhase
from ..session_store import Session


class HealthResponse(BaseModel):
    ok: bool = True


class LayoutState(BaseModel):
    """Header visibility for one path and the caller's session."""
    path: str
    category: PathCategory
    signed_in: bool
    show_header: bool


class ShellState(LayoutState):
    """Pushed over the shell socket after every client message."""
    type: Literal["layout"] = "layout"
    phase: LayoutPhase
    right_buttons: Optional[str] = None


class ShellMessage(BaseModel):
    """A message from an attached client.

    ``attach`` and ``navigate`` carry ``path``; ``auth`` carries ``event`` and
    optionally ``session``; ``right_buttons`` carries ``content``.
    """
    type: Literal["attach", "navigate", "auth", "right_buttons"]
    path: Optional[str] = None
    event: Optional[AuthEventKind] = None
    session: Optional[Session] = None
    content: Optional[str] = None


class ShellErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    error_code: str
    error_message: str
