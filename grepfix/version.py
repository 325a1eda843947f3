"""Version information for grepfix."""

from importlib.metadata import PackageNotFoundError, version

_VERSION: str | None = None


def get_version() -> str:
    """Installed distribution version, or "unknown" when not installed."""
    global _VERSION
    if _VERSION is None:
        try:
            _VERSION = version("grepfix")
        except PackageNotFoundError:
            _VERSION = "unknown"
    return _VERSION
