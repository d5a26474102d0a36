"""Falcon error handlers for the API layer.

Usage
-----
Register error handlers on the Falcon app::

    from ghrelay.api.errors import handle_event_bus_error
    from ghrelay.bus import EventBusError

    app.add_error_handler(EventBusError, handle_event_bus_error)

"""

from __future__ import annotations

import typing as typ

import falcon

from ghrelay.logging import get_logger, log_exception

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from ghrelay.bus.errors import EventBusError

__all__ = ["handle_event_bus_error"]

logger = get_logger(__name__)


async def handle_event_bus_error(
    _req: Request,
    resp: Response,
    ex: EventBusError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``EventBusError`` to an HTTP 503 JSON response.

    The provider retries deliveries that are not acknowledged, so a bus
    outage is reported as temporary rather than swallowed.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The bus failure, naming the event that could not be published.
    _params
        URI template parameters (unused).

    """
    log_exception(logger, "Event bus rejected a canonical event", ex)
    resp.status = falcon.HTTP_503
    resp.media = {
        "title": "Event bus unavailable",
        "description": str(ex),
    }
