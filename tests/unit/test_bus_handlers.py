"""Unit tests for in-process bus subscribers."""

from __future__ import annotations

import pytest

from ghrelay.bus import handlers


class _FakeLogger:
    """Collects log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        del exc_info, stack_info
        self.calls.append((level, message))
        return message


@pytest.fixture
def fake_logger(monkeypatch: pytest.MonkeyPatch) -> _FakeLogger:
    """Replace the handler module's logger."""
    logger = _FakeLogger()
    monkeypatch.setattr(handlers, "logger", logger)
    return logger


def test_logs_package_identity(fake_logger: _FakeLogger) -> None:
    """Package publications log repository, branch and digest."""
    handlers.log_package_published(
        "github.package.published",
        {"repository": "acme/widgets", "branch": "main", "sha256": "abc"},
    )
    assert fake_logger.calls == [
        (
            "INFO",
            "github.package.published repository=acme/widgets branch=main "
            "sha256=abc",
        )
    ], "expected one INFO line"


def test_logs_payload_less_event(fake_logger: _FakeLogger) -> None:
    """Events published without a payload are still logged."""
    handlers.log_package_published("github.package.published", None)
    assert fake_logger.calls == [
        ("INFO", "github.package.published received without payload")
    ]
