"""ghrelay runtime entrypoint for Kubernetes deployments.

This module provides the ASGI application factory used by Granian. It
builds the event bus and webhook dispatcher from ``RelayConfig`` and
delegates to :func:`ghrelay.api.app.create_app` for application
construction while keeping the ``ghrelay.runtime:create_app`` entrypoint
stable.

Configuration is driven by environment variables:

- ``GHRELAY_HOST``: Bind address (default ``0.0.0.0``)
- ``GHRELAY_PORT``: Listen port (default ``8080``)
- ``GHRELAY_LOG_LEVEL``: Log level (default ``INFO``)
- ``GHRELAY_*`` relay settings read by :meth:`RelayConfig.from_env`

Run the service directly with ``python -m ghrelay.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from ghrelay.bus import DramatiqEventBus, InMemoryEventBus
from ghrelay.bus.handlers import log_package_published
from ghrelay.config import EventBusBackend, RelayConfig
from ghrelay.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

    from ghrelay.bus import EventBus

__all__ = ["build_event_bus", "create_app", "main"]

logger = get_logger(__name__)

# TCP port number range limits
_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If port_str is not a valid integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid GHRELAY_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def build_event_bus(config: RelayConfig) -> EventBus:
    """Return the event bus selected by ``config.event_bus``.

    The in-memory bus keeps no history and logs every validated package
    publication.
    """
    if config.event_bus is EventBusBackend.DRAMATIQ:
        return DramatiqEventBus(
            queue_name=config.dramatiq_queue, actor_name=config.dramatiq_actor
        )
    bus = InMemoryEventBus(history_limit=0)
    bus.subscribe(f"{config.provider}.package.published", log_package_published)
    return bus


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application with the webhook endpoint.

    Returns
    -------
    falcon.asgi.App
        Application serving ``/health``, ``/ready`` and
        ``POST /v1/{provider}/webhook``.

    """
    from ghrelay.api.app import AppDependencies
    from ghrelay.api.app import create_app as _create_api_app
    from ghrelay.webhooks.dispatcher import WebhookDispatcher

    config = RelayConfig.from_env()
    dispatcher = WebhookDispatcher.from_config(build_event_bus(config), config)
    return _create_api_app(AppDependencies(dispatcher=dispatcher))


def main() -> None:
    """Start the ghrelay runtime server using Granian.

    Reads ``GHRELAY_HOST``, ``GHRELAY_PORT``, and ``GHRELAY_LOG_LEVEL`` from
    the environment and starts the ASGI server.
    """
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("GHRELAY_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port_str = os.environ.get("GHRELAY_PORT", "8080")
    port = _parse_port(port_str)
    log_level_str = os.environ.get("GHRELAY_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid GHRELAY_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting ghrelay runtime on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "ghrelay.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
