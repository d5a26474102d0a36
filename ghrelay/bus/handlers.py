"""In-process subscribers registered by the runtime."""

from __future__ import annotations

from ghrelay.logging import get_logger, log_info

from .protocol import EventPayload

logger = get_logger(__name__)


def log_package_published(event_name: str, payload: EventPayload) -> None:
    """Log a validated package publication."""
    if payload is None:
        log_info(logger, "%s received without payload", event_name)
        return
    log_info(
        logger,
        "%s repository=%s branch=%s sha256=%s",
        event_name,
        payload.get("repository"),
        payload.get("branch"),
        payload.get("sha256"),
    )
