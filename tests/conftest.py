"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import os

import pytest


@pytest.fixture(autouse=True)
def _isolate_relay_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Run every test without GHRELAY_* settings from the calling shell."""
    for name in list(os.environ):
        if name.startswith("GHRELAY_"):
            monkeypatch.delenv(name)
