"""RankBet front-end shell: session gate middleware and layout chrome.

Exposes the installed distribution version as ``__version__``.
"""
from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("rankbet-shell")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
