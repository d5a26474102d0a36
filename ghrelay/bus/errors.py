"""Event bus error types."""

from __future__ import annotations


class EventBusError(RuntimeError):
    """Raised when a canonical event cannot be handed to the bus."""

    def __init__(self, message: str, *, event_name: str | None = None) -> None:
        """Record the event that failed to publish, when known."""
        self.event_name = event_name
        super().__init__(message)

    @classmethod
    def publish_failed(cls, event_name: str, exc: BaseException) -> EventBusError:
        """Return an error wrapping a backend failure for ``event_name``."""
        return cls(f"failed to publish {event_name}: {exc}", event_name=event_name)

    @classmethod
    def not_configured(cls) -> EventBusError:
        """Return an error for a missing Dramatiq broker."""
        return cls(
            "No Dramatiq broker configured. Set GHRELAY_ALLOW_STUB_BROKER=1 for "
            "local/test runs or configure a real broker."
        )
