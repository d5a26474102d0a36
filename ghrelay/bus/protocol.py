"""Protocol for event bus implementations."""

from __future__ import annotations

import typing as typ

EventPayload: typ.TypeAlias = dict[str, typ.Any] | None


@typ.runtime_checkable
class EventBus(typ.Protocol):
    """Publication seam between the dispatcher and downstream consumers.

    Implementations receive the event name and the canonical payload already
    converted to builtins. ``payload`` is ``None`` only for unhandled events
    published on request. Backend failures surface as ``EventBusError``.
    """

    def publish(self, event_name: str, payload: EventPayload) -> None:
        """Hand one canonical event to the bus."""
        ...
