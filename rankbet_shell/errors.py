from __future__ import annotations

__all__ = ["ShellError"]


class ShellError(RuntimeError):
    """Base class for errors raised by the shell.

    The `code` attribute is a stable machine-readable identifier for logs.
    """

    code: str = "shell_error"
