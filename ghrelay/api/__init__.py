"""ghrelay HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application that receives provider webhooks and serves the
Kubernetes probes.

Usage
-----
Create the application::

    from ghrelay.api import create_app

    app = create_app()              # probes only
    app = create_app(dependencies)  # probes and the webhook endpoint

"""

from ghrelay.api.app import AppDependencies, create_app, webhook_route

__all__ = ["AppDependencies", "create_app", "webhook_route"]
