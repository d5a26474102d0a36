"""Application factory for the ghrelay Falcon ASGI application.

This module provides ``create_app()`` which builds the Falcon ASGI
application with health endpoints and, when a dispatcher is supplied, the
provider webhook endpoint.

Usage
-----
Create a health-only app::

    app = create_app()

Create an app that relays webhooks::

    from ghrelay.api.app import AppDependencies, create_app
    from ghrelay.bus import InMemoryEventBus
    from ghrelay.webhooks import WebhookDispatcher

    deps = AppDependencies(dispatcher=WebhookDispatcher(InMemoryEventBus()))
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from ghrelay.api.errors import handle_event_bus_error
from ghrelay.api.health.resources import HealthResource, ReadyResource
from ghrelay.bus.errors import EventBusError

if typ.TYPE_CHECKING:
    from ghrelay.webhooks.dispatcher import WebhookDispatcher

__all__ = ["AppDependencies", "create_app", "webhook_route"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Dependencies for the Falcon ASGI application.

    Attributes
    ----------
    dispatcher
        Webhook dispatcher. When ``None`` only health endpoints are
        registered.

    """

    dispatcher: WebhookDispatcher | None = None


def webhook_route(provider: str) -> str:
    """Return the webhook path for ``provider``, e.g. ``/v1/github/webhook``."""
    return f"/v1/{provider}/webhook"


def create_app(
    dependencies: AppDependencies | None = None,
) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Parameters
    ----------
    dependencies
        Optional application dependencies. When ``None``, or when no
        dispatcher is set, only ``/health`` and ``/ready`` are available.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    app = falcon.asgi.App()

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource())

    if dependencies is not None and dependencies.dispatcher is not None:
        from ghrelay.api.webhooks.resources import WebhookResource

        dispatcher = dependencies.dispatcher
        app.add_route(webhook_route(dispatcher.provider), WebhookResource(dispatcher))

    app.add_error_handler(EventBusError, handle_event_bus_error)

    return app
