"""Logging helpers shared by the API, the webhook handler and the batch tools."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .config import CONFIG

_LOGGER = logging.getLogger("neighbors_admin")

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _coerce(parts: tuple[object, ...]) -> str:
    rendered = " ".join(str(part) for part in parts if part is not None)
    return rendered.strip()


def configure_logging(level: Optional[str] = None) -> None:
    """Install a basic handler at ``LOG_LEVEL`` unless logging is already configured."""

    resolved = (level or getattr(CONFIG, "log_level", "INFO") or "INFO").upper()
    logging.basicConfig(level=resolved, format=_FORMAT)
    _LOGGER.setLevel(resolved)


def log(*parts: object, **metadata: Any) -> None:
    """
    Emit an info-level log message.

    Keyword arguments are appended to the message as a metadata mapping so
    batch summaries (``linked=3 updated=1``) stay greppable in plain logs.
    """

    message = _coerce(parts)
    if metadata:
        message = f"{message} | {metadata}"

    if not _LOGGER.handlers and not logging.getLogger().handlers:
        configure_logging()

    _LOGGER.info(message)


__all__ = ["configure_logging", "log"]
