"""Classify and reduce saved webhook payloads from the command line."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import msgspec

from .bus import InMemoryEventBus
from .config import RelayConfig
from .webhooks.dispatcher import DispatchResult, WebhookDispatcher
from .webhooks.reducers import DEFAULT_STRIP_MARKERS


def _read_payload(path: Path) -> object:
    """Return the decoded JSON document in ``path``; invalid JSON is None."""
    body = path.read_bytes()
    try:
        return msgspec.json.decode(body)
    except msgspec.DecodeError:
        return None


def _render(path: Path, result: DispatchResult) -> bytes:
    return msgspec.json.encode(
        {
            "file": str(path),
            "event_name": result.event_name,
            "outcome": result.outcome.value,
            "payload": msgspec.to_builtins(result.event.payload),
        }
    )


def main(argv: list[str] | None = None) -> int:
    """Print the canonical event for each payload file as a JSON line.

    Parameters
    ----------
    argv : list[str] | None, optional
        Command-line arguments. ``None`` defaults to ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 when any file cannot be read.

    """
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "payloads", type=Path, nargs="+", help="JSON webhook bodies to classify"
    )
    parser.add_argument(
        "--provider", default="github", help="Event name prefix (default: github)"
    )
    parser.add_argument(
        "--strip-marker",
        dest="strip_markers",
        action="append",
        default=None,
        help="Path marker stripped from opaque blobs; repeatable (default: _url)",
    )
    parser.add_argument(
        "--emit-unhandled",
        action="store_true",
        help="Report payload-less events for webhooks that reduce to nothing",
    )
    args = parser.parse_args(argv)

    try:
        config = RelayConfig(
            provider=args.provider,
            strip_markers=tuple(args.strip_markers or DEFAULT_STRIP_MARKERS),
            emit_unhandled=args.emit_unhandled,
        )
    except ValueError as exc:
        parser.error(str(exc))

    dispatcher = WebhookDispatcher.from_config(
        InMemoryEventBus(history_limit=0), config
    )
    exit_code = 0
    for path in args.payloads:
        try:
            payload = _read_payload(path)
        except OSError as exc:
            print(f"cannot read {path}: {exc.strerror or exc}", file=sys.stderr)
            exit_code = 1
            continue
        print(_render(path, dispatcher.process(payload)).decode())
    return exit_code


if __name__ == "__main__":
    raise SystemExit(main())
