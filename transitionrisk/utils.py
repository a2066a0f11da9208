"""
Shared helpers.
"""
import logging

from transitionrisk.config import settings

_PACKAGE_LOGGER = "transitionrisk"
_configured = False


def _configure_root() -> None:
    global _configured
    root = logging.getLogger(_PACKAGE_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        ))
        root.addHandler(handler)
    root.setLevel(logging.DEBUG if settings.debug else settings.log_level.upper())
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger under the package root, configuring it on first use."""
    if not _configured:
        _configure_root()
    return logging.getLogger(name)
