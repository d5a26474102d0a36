"""Configuration for webhook dispatch and event publication.

Usage
-----
Create a configuration with defaults:

>>> config = RelayConfig()
>>> config.provider
'github'
>>> config.strip_markers
('_url',)

Or load from environment variables:

>>> import os
>>> os.environ["GHRELAY_STRIP_MARKERS"] = "_url,avatar"
>>> RelayConfig.from_env().strip_markers
('_url', 'avatar')

"""

from __future__ import annotations

import dataclasses as dc
import enum
import os

from ghrelay.common.flatten import DEFAULT_DELIMITER
from ghrelay.webhooks.reducers import DEFAULT_STRIP_MARKERS, ReductionOptions

_TRUTHY = frozenset({"1", "true", "yes"})
_FALSY = frozenset({"0", "false", "no"})


class EventBusBackend(enum.StrEnum):
    """Where canonical events are published."""

    MEMORY = "memory"
    DRAMATIQ = "dramatiq"


@dc.dataclass(frozen=True, slots=True)
class RelayConfig:
    """Configuration for the webhook relay.

    Attributes
    ----------
    provider
        First segment of every event name, and of the webhook route
        (``/v1/{provider}/webhook``). Default ``github``.
    strip_markers
        Substrings removed from the paths of opaque payload blobs before
        publication. Default ``("_url",)``.
    delimiter
        Path separator used while stripping. Default ``.``.
    emit_unhandled
        Publish a payload-less event for webhooks that reduce to nothing,
        in addition to logging them. Default ``False``.
    event_bus
        Publication backend. Default ``memory``.
    dramatiq_queue
        Queue receiving canonical events when ``event_bus`` is ``dramatiq``.
    dramatiq_actor
        Downstream actor name those messages are addressed to.

    """

    provider: str = "github"
    strip_markers: tuple[str, ...] = DEFAULT_STRIP_MARKERS
    delimiter: str = DEFAULT_DELIMITER
    emit_unhandled: bool = False
    event_bus: EventBusBackend = EventBusBackend.MEMORY
    dramatiq_queue: str = "ghrelay-events"
    dramatiq_actor: str = "handle_canonical_event"

    def __post_init__(self) -> None:
        """Reject values that would make event names or paths ambiguous."""
        if not self.provider.strip():
            msg = "provider must be non-empty"
            raise ValueError(msg)
        if not self.delimiter:
            msg = "delimiter must be non-empty"
            raise ValueError(msg)
        if any(not marker for marker in self.strip_markers):
            msg = "strip markers must be non-empty strings"
            raise ValueError(msg)

    @property
    def reduction_options(self) -> ReductionOptions:
        """Return the reducer options implied by this configuration."""
        return ReductionOptions(
            strip_markers=self.strip_markers, delimiter=self.delimiter
        )

    @staticmethod
    def _parse_bool(env_var: str, *, default: bool) -> bool:
        raw = os.environ.get(env_var, "").strip().lower()
        if not raw:
            return default
        if raw in _TRUTHY:
            return True
        if raw in _FALSY:
            return False
        msg = f"{env_var} must be a boolean flag, got: {raw!r}"
        raise ValueError(msg)

    @staticmethod
    def _parse_markers(env_var: str) -> tuple[str, ...]:
        raw = os.environ.get(env_var)
        if raw is None:
            return DEFAULT_STRIP_MARKERS
        markers = (part.strip() for part in raw.split(","))
        return tuple(dict.fromkeys(marker for marker in markers if marker))

    @staticmethod
    def _parse_backend(env_var: str) -> EventBusBackend:
        raw = os.environ.get(env_var, "").strip().lower()
        if not raw:
            return EventBusBackend.MEMORY
        try:
            return EventBusBackend(raw)
        except ValueError as exc:
            choices = ", ".join(backend.value for backend in EventBusBackend)
            msg = f"{env_var} must be one of {choices}, got: {raw!r}"
            raise ValueError(msg) from exc

    @classmethod
    def from_env(cls) -> RelayConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``GHRELAY_PROVIDER``: Event name prefix.
        - ``GHRELAY_STRIP_MARKERS``: Comma-separated markers; set it empty to
          disable stripping.
        - ``GHRELAY_FLATTEN_DELIMITER``: Path separator for stripping.
        - ``GHRELAY_EMIT_UNHANDLED``: ``1``/``true``/``yes`` to publish
          payload-less events.
        - ``GHRELAY_EVENT_BUS``: ``memory`` or ``dramatiq``.
        - ``GHRELAY_DRAMATIQ_QUEUE`` and ``GHRELAY_DRAMATIQ_ACTOR``.

        Raises
        ------
        ValueError
            If a variable holds an unusable value.

        """
        defaults = cls()
        return cls(
            provider=os.environ.get("GHRELAY_PROVIDER", "").strip().lower()
            or defaults.provider,
            strip_markers=cls._parse_markers("GHRELAY_STRIP_MARKERS"),
            delimiter=os.environ.get("GHRELAY_FLATTEN_DELIMITER") or defaults.delimiter,
            emit_unhandled=cls._parse_bool("GHRELAY_EMIT_UNHANDLED", default=False),
            event_bus=cls._parse_backend("GHRELAY_EVENT_BUS"),
            dramatiq_queue=os.environ.get("GHRELAY_DRAMATIQ_QUEUE", "").strip()
            or defaults.dramatiq_queue,
            dramatiq_actor=os.environ.get("GHRELAY_DRAMATIQ_ACTOR", "").strip()
            or defaults.dramatiq_actor,
        )


__all__ = ["EventBusBackend", "RelayConfig"]
