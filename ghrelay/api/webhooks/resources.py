"""Webhook receiver resource.

``POST /v1/{provider}/webhook`` hands the decoded body to the dispatcher
and acknowledges it. Dispatch runs in a worker thread because publishing
may block on a broker. Payloads the relay cannot use are still acknowledged
with 200 so the provider does not redeliver them; only an event bus
failure produces an error status (see ``ghrelay.api.errors``).

Usage
-----
Register the resource on the Falcon app::

    app.add_route("/v1/github/webhook", WebhookResource(dispatcher))

"""

from __future__ import annotations

import asyncio
import typing as typ

import falcon
import msgspec

from ghrelay.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from ghrelay.webhooks.dispatcher import WebhookDispatcher

__all__ = ["WebhookResource"]

logger = get_logger(__name__)


def _decode_body(body: bytes) -> object:
    """Decode a JSON body, returning None when it is not valid JSON."""
    if not body:
        return None
    try:
        return msgspec.json.decode(body)
    except msgspec.DecodeError:
        log_debug(logger, "Webhook body is not valid JSON (%d bytes)", len(body))
        return None


class WebhookResource:
    """Receive provider webhooks and feed them to a dispatcher."""

    def __init__(self, dispatcher: WebhookDispatcher) -> None:
        """Configure the resource with the dispatcher it feeds."""
        self._dispatcher = dispatcher

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST webhook deliveries.

        Parameters
        ----------
        req
            Falcon request carrying the provider's JSON body.
        resp
            Falcon response set to ``{"status": "processed"}``.

        Raises
        ------
        EventBusError
            Propagated from the dispatcher; mapped to 503 by the app.

        """
        body = await req.stream.read()
        await asyncio.to_thread(self._dispatcher.process, _decode_body(body))
        resp.status = falcon.HTTP_200
        resp.media = {"status": "processed"}
