"""Publish canonical events as Dramatiq messages.

The relay does not define the consuming actor; deployment workers declare it
under ``actor_name`` on ``queue_name``. Messages carry
``(event_name, payload)`` as positional arguments.

Usage
-----
>>> from dramatiq.brokers.stub import StubBroker
>>> bus = DramatiqEventBus(broker=StubBroker())
>>> bus.publish("github.commit.pushed", {"name": "svc", "branch": "main"})

"""

from __future__ import annotations

import dramatiq
from dramatiq.errors import DramatiqError

from ._broker import ensure_broker_configured
from .errors import EventBusError
from .protocol import EventPayload

DEFAULT_QUEUE_NAME = "ghrelay-events"
DEFAULT_ACTOR_NAME = "handle_canonical_event"


class DramatiqEventBus:
    """Enqueue canonical events for a downstream Dramatiq actor."""

    def __init__(
        self,
        *,
        queue_name: str = DEFAULT_QUEUE_NAME,
        actor_name: str = DEFAULT_ACTOR_NAME,
        broker: dramatiq.Broker | None = None,
    ) -> None:
        """Bind to ``broker`` (or the global one) and declare the queue."""
        self._broker = broker if broker is not None else ensure_broker_configured()
        self.queue_name = queue_name
        self.actor_name = actor_name
        self._broker.declare_queue(queue_name)

    def publish(self, event_name: str, payload: EventPayload) -> None:
        """Enqueue one message; broker failures become ``EventBusError``."""
        message = dramatiq.Message(
            queue_name=self.queue_name,
            actor_name=self.actor_name,
            args=(event_name, payload),
            kwargs={},
            options={},
        )
        try:
            self._broker.enqueue(message)
        except DramatiqError as exc:
            raise EventBusError.publish_failed(event_name, exc) from exc
