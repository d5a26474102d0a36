"""Webhook receiver resources.

Usage
-----
Import the receiver for route registration::

    from ghrelay.api.webhooks.resources import WebhookResource
"""
