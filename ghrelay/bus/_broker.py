"""Broker configuration helpers for Dramatiq publication.

This private module resolves the Dramatiq broker the first time a
``DramatiqEventBus`` is built without an explicit broker.
"""

from __future__ import annotations

import os
import sys
import threading

import dramatiq
from dramatiq.brokers.stub import StubBroker

from .errors import EventBusError

_BROKER_LOCK = threading.Lock()
_broker_configured = False


def _is_running_tests() -> bool:
    """Return True under pytest or pytest-xdist."""
    return "pytest" in sys.modules or any(
        key in os.environ
        for key in ["PYTEST_CURRENT_TEST", "PYTEST_XDIST_WORKER", "PYTEST_ADDOPTS"]
    )


def _should_use_stub_broker() -> bool:
    """Return True when a StubBroker may stand in for a real broker.

    Either ``GHRELAY_ALLOW_STUB_BROKER`` is truthy or tests are running.
    """
    allow_stub = os.environ.get("GHRELAY_ALLOW_STUB_BROKER", "")
    return allow_stub.lower() in {"1", "true", "yes"} or _is_running_tests()


def ensure_broker_configured() -> dramatiq.Broker:
    """Return the global Dramatiq broker, installing a StubBroker if allowed.

    Thread-safe and idempotent.

    Raises
    ------
    EventBusError
        If no broker is configured and a stub is not allowed.

    """
    global _broker_configured

    with _BROKER_LOCK:
        if not _broker_configured:
            try:
                current_broker = dramatiq.get_broker()
            except (ImportError, LookupError):
                # ImportError: RabbitMQ/Redis broker dependencies are absent
                current_broker = None

            if current_broker is None:
                if not _should_use_stub_broker():
                    raise EventBusError.not_configured()
                dramatiq.set_broker(StubBroker())

            _broker_configured = True

        return dramatiq.get_broker()
