"""In-process event bus with pattern subscriptions.

Used by the runtime when no broker is configured and by tests. Handlers are
called synchronously, in subscription order, for every event whose name
matches their ``fnmatch`` pattern. Only the most recent events are kept in
the history; the runtime keeps none.
"""

from __future__ import annotations

import collections
import collections.abc as cabc
import dataclasses as dc
import fnmatch
import threading
import typing as typ

from .errors import EventBusError
from .protocol import EventPayload

EventHandler: typ.TypeAlias = cabc.Callable[[str, EventPayload], None]

DEFAULT_HISTORY_LIMIT = 1024


@dc.dataclass(frozen=True, slots=True)
class PublishedEvent:
    """A canonical event recorded by ``InMemoryEventBus``."""

    event_name: str
    payload: EventPayload


class InMemoryEventBus:
    """Record published events and fan them out to matching subscribers."""

    def __init__(self, *, history_limit: int = DEFAULT_HISTORY_LIMIT) -> None:
        """Start with no subscribers and an empty history.

        Parameters
        ----------
        history_limit
            Number of recent events kept in ``published``. Older events are
            evicted; ``0`` disables recording.

        Raises
        ------
        ValueError
            If ``history_limit`` is negative.

        """
        if history_limit < 0:
            msg = f"history_limit must not be negative, got: {history_limit}"
            raise ValueError(msg)
        self._subscriptions: list[tuple[str, EventHandler]] = []
        self._published: collections.deque[PublishedEvent] = collections.deque(
            maxlen=history_limit
        )
        self._lock = threading.Lock()

    @property
    def history_limit(self) -> int:
        """Return the number of events the history retains."""
        return self._published.maxlen or 0

    @property
    def published(self) -> tuple[PublishedEvent, ...]:
        """Return the retained events, oldest first."""
        with self._lock:
            return tuple(self._published)

    def subscribe(self, pattern: str, handler: EventHandler) -> None:
        """Call ``handler`` for events whose name matches ``pattern``.

        Patterns use shell-style wildcards, e.g. ``github.package.*``.
        """
        with self._lock:
            self._subscriptions.append((pattern, handler))

    def publish(self, event_name: str, payload: EventPayload) -> None:
        """Record the event and invoke matching handlers.

        Raises
        ------
        EventBusError
            If a handler raises.

        """
        with self._lock:
            self._published.append(PublishedEvent(event_name, payload))
            handlers = [
                handler
                for pattern, handler in self._subscriptions
                if fnmatch.fnmatchcase(event_name, pattern)
            ]
        for handler in handlers:
            try:
                handler(event_name, payload)
            except Exception as exc:
                raise EventBusError.publish_failed(event_name, exc) from exc

    def clear(self) -> None:
        """Forget recorded events; subscriptions are kept."""
        with self._lock:
            self._published.clear()
