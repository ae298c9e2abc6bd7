"""Static host for a single-page application build.

Exposes the installed distribution version as `__version__`; the app factory
lives in `spa_server.main`.
"""
from importlib.metadata import PackageNotFoundError, version

try:  # Resolves once the project is installed; source checkouts fall back.
    __version__ = version("spa-static-host")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"
