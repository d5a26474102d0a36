"""Composition root turning one webhook body into at most one bus event.

The dispatcher runs the fixed pipeline: classify, reduce, and for package
events validate, then publishes. Every webhook is accounted for by exactly
one ``DispatchOutcome`` and one log line; none of the outcomes raise, so a
single odd provider payload never disturbs the requests that follow it.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import typing as typ

import msgspec

from .classification import UNKNOWN_ACTION, classify
from .errors import PayloadShapeError
from .models import CanonicalEvent, PackageDescriptor
from .observability import WebhookEventLogger
from .reducers import DEFAULT_REDUCTION_OPTIONS, ReductionOptions, resolve_reducer
from .validation import PackagePublishValidator

if typ.TYPE_CHECKING:
    from ghrelay.bus.protocol import EventBus
    from ghrelay.config import RelayConfig

    from .models import CanonicalPayload

PACKAGE_EVENT_KEY = "package"


class DispatchOutcome(enum.StrEnum):
    """What happened to a webhook."""

    PUBLISHED = "published"
    UNHANDLED = "unhandled"
    SHAPE_MISMATCH = "shape_mismatch"
    SUPPRESSED = "suppressed"
    MALFORMED = "malformed"


@dc.dataclass(frozen=True, slots=True)
class DispatchResult:
    """Canonical event, its rendered name, and what happened to it."""

    event: CanonicalEvent
    event_name: str
    outcome: DispatchOutcome

    @property
    def published(self) -> bool:
        """Return True when the canonical payload reached the bus."""
        return self.outcome is DispatchOutcome.PUBLISHED


class WebhookDispatcher:
    """Classify, reduce, validate and publish provider webhooks.

    Parameters
    ----------
    bus
        Receives ``(event_name, payload)`` for every published event.
    provider
        First segment of event names.
    options
        Reducer options (blob stripping).
    emit_unhandled
        Also publish a payload-less event when reduction yields nothing.
    validator
        Package URL validator.
    event_logger
        Structured logger for dispatch outcomes.

    """

    def __init__(  # noqa: PLR0913
        self,
        bus: EventBus,
        *,
        provider: str = "github",
        options: ReductionOptions = DEFAULT_REDUCTION_OPTIONS,
        emit_unhandled: bool = False,
        validator: PackagePublishValidator | None = None,
        event_logger: WebhookEventLogger | None = None,
    ) -> None:
        """Store collaborators; the dispatcher holds no per-request state."""
        self._bus = bus
        self.provider = provider
        self._options = options
        self._emit_unhandled = emit_unhandled
        self._validator = validator or PackagePublishValidator()
        self._events = event_logger or WebhookEventLogger()

    @classmethod
    def from_config(
        cls,
        bus: EventBus,
        config: RelayConfig,
        *,
        event_logger: WebhookEventLogger | None = None,
    ) -> WebhookDispatcher:
        """Build a dispatcher from relay configuration."""
        return cls(
            bus,
            provider=config.provider,
            options=config.reduction_options,
            emit_unhandled=config.emit_unhandled,
            event_logger=event_logger,
        )

    def process(self, payload: object) -> DispatchResult:
        """Dispatch one decoded webhook body.

        Parameters
        ----------
        payload
            Decoded body; anything but a mapping is treated as malformed.

        Returns
        -------
        DispatchResult
            The canonical event and the outcome. Only ``EventBusError`` from
            the bus itself can escape.

        """
        if not isinstance(payload, cabc.Mapping):
            event = CanonicalEvent(action_name=UNKNOWN_ACTION, event_key=None)
            result = self._result(event, DispatchOutcome.MALFORMED)
            self._events.log_malformed(result.event_name, type(payload).__name__)
            return result

        action_name, event_key = classify(payload)
        reduced, shape_error = self._reduce(event_key, payload)
        event = CanonicalEvent(
            action_name=action_name, event_key=event_key, payload=reduced
        )
        if reduced is None:
            return self._dispatch_unreduced(event, shape_error)

        if event_key == PACKAGE_EVENT_KEY and isinstance(reduced, PackageDescriptor):
            rejected = self._check_package(event, reduced)
            if rejected is not None:
                return rejected

        result = self._result(event, DispatchOutcome.PUBLISHED)
        self._bus.publish(result.event_name, msgspec.to_builtins(reduced))
        self._events.log_published(result.event_name)
        return result

    def _result(
        self, event: CanonicalEvent, outcome: DispatchOutcome
    ) -> DispatchResult:
        return DispatchResult(
            event=event, event_name=event.event_name(self.provider), outcome=outcome
        )

    def _reduce(
        self, event_key: str | None, payload: cabc.Mapping[str, typ.Any]
    ) -> tuple[CanonicalPayload | None, PayloadShapeError | None]:
        reducer = resolve_reducer(event_key, payload)
        if reducer is None:
            return None, None
        try:
            return reducer(payload, self._options), None
        except PayloadShapeError as exc:
            return None, exc

    def _dispatch_unreduced(
        self, event: CanonicalEvent, shape_error: PayloadShapeError | None
    ) -> DispatchResult:
        if shape_error is not None:
            result = self._result(event, DispatchOutcome.SHAPE_MISMATCH)
            self._events.log_shape_mismatch(result.event_name, shape_error)
        else:
            result = self._result(event, DispatchOutcome.UNHANDLED)
            self._events.log_unhandled(result.event_name, event.event_key)
        if self._emit_unhandled:
            self._bus.publish(result.event_name, None)
        return result

    def _check_package(
        self, event: CanonicalEvent, descriptor: PackageDescriptor
    ) -> DispatchResult | None:
        if self._validator.validate(descriptor):
            return None
        result = self._result(event, DispatchOutcome.SUPPRESSED)
        self._events.log_suppressed(
            result.event_name,
            expected_url=self._validator.expected_url(descriptor),
            supplied_url=descriptor.url,
        )
        return result
