"""Event bus implementations receiving canonical events."""

from __future__ import annotations

from .dramatiq_bus import DramatiqEventBus
from .errors import EventBusError
from .memory import InMemoryEventBus, PublishedEvent
from .protocol import EventBus, EventPayload

__all__ = [
    "DramatiqEventBus",
    "EventBus",
    "EventBusError",
    "EventPayload",
    "InMemoryEventBus",
    "PublishedEvent",
]
