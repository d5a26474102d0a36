"""Structured log events for webhook dispatch.

Every webhook ends in exactly one of these events, so operators can see
unrecognised provider behaviour and suppressed package notifications without
the provider ever receiving an error.
"""

from __future__ import annotations

import enum
import typing as typ

from ghrelay.logging import get_logger, log_info, log_warning

if typ.TYPE_CHECKING:
    from ghrelay.logging import _SupportsLog

    from .errors import PayloadShapeError


class WebhookEventType(enum.StrEnum):
    """Structured log event types for webhook dispatch."""

    PUBLISHED = "webhook.published"
    UNHANDLED = "webhook.unhandled"
    SHAPE_MISMATCH = "webhook.shape_mismatch"
    SUPPRESSED = "webhook.suppressed"
    MALFORMED = "webhook.malformed"


class WebhookEventLogger:
    """Emit dispatch outcomes as ``[<event type>] key=value`` log lines.

    Successful publications and the informational outcomes (unhandled, shape
    mismatch, suppressed) log at INFO; malformed bodies log at WARNING.
    """

    def __init__(self, logger: _SupportsLog | None = None) -> None:
        """Use ``logger`` when given, otherwise this module's femtologger."""
        self._logger = logger if logger is not None else get_logger(__name__)

    def log_published(self, event_name: str) -> None:
        """Log a canonical event handed to the bus."""
        log_info(self._logger, "[%s] event=%s", WebhookEventType.PUBLISHED, event_name)

    def log_unhandled(self, event_name: str, event_key: str | None) -> None:
        """Log a webhook no reducer recognises."""
        log_info(
            self._logger,
            "[%s] event=%s event_key=%s reason=no_reducer",
            WebhookEventType.UNHANDLED,
            event_name,
            event_key,
        )

    def log_shape_mismatch(self, event_name: str, error: PayloadShapeError) -> None:
        """Log a recognised webhook missing a field its reducer needs."""
        log_info(
            self._logger,
            "[%s] event=%s field=%s detail=%s",
            WebhookEventType.SHAPE_MISMATCH,
            event_name,
            error.path,
            str(error),
        )

    def log_suppressed(
        self, event_name: str, *, expected_url: str, supplied_url: str
    ) -> None:
        """Log a package event withheld because its URL failed validation."""
        log_info(
            self._logger,
            "[%s] event=%s expected_url=%s supplied_url=%s",
            WebhookEventType.SUPPRESSED,
            event_name,
            expected_url,
            supplied_url,
        )

    def log_malformed(self, event_name: str, payload_type: str) -> None:
        """Log a body that did not decode to a mapping."""
        log_warning(
            self._logger,
            "[%s] event=%s payload_type=%s",
            WebhookEventType.MALFORMED,
            event_name,
            payload_type,
        )
