"""Webhook classification, reduction, validation and dispatch."""

from __future__ import annotations

from .classification import Classification, action_name_for, classify, event_key_for
from .dispatcher import DispatchOutcome, DispatchResult, WebhookDispatcher
from .errors import PayloadShapeError
from .models import CanonicalEvent, PackageDescriptor
from .observability import WebhookEventLogger, WebhookEventType
from .reducers import ReductionOptions, get_reducer, reduce_payload, resolve_reducer
from .validation import PackagePublishValidator, expected_package_url

__all__ = [
    "CanonicalEvent",
    "Classification",
    "DispatchOutcome",
    "DispatchResult",
    "PackageDescriptor",
    "PackagePublishValidator",
    "PayloadShapeError",
    "ReductionOptions",
    "WebhookDispatcher",
    "WebhookEventLogger",
    "WebhookEventType",
    "action_name_for",
    "classify",
    "event_key_for",
    "expected_package_url",
    "get_reducer",
    "reduce_payload",
    "resolve_reducer",
]
