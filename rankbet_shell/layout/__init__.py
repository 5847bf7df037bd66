"""Layout components: the root chrome controller and the auth page frame."""
from .auth_shell import AuthShell
from .controller import (
    NO_HEADER_BUTTONS,
    HeaderButtons,
    LayoutController,
    LayoutPhase,
    PageContent,
    RenderedLayout,
)

__all__ = [
    "AuthShell",
    "HeaderButtons",
    "LayoutController",
    "LayoutPhase",
    "NO_HEADER_BUTTONS",
    "PageContent",
    "RenderedLayout",
]
