"""Event type and action inference for raw webhook payloads.

GitHub sends the event type in a header, but payloads relayed through other
transports arrive without it. Classification therefore works from the body
alone:

- the action name comes from ``action`` when present, otherwise from a fixed
  list of structural marker fields;
- the event key is the first declared top-level field after a leading
  ``action``; a fixed list of discriminator fields is consulted only when
  that field is a scalar, such as the ``number`` leading a pull request.

Both are pure functions of the payload and never raise.
"""

from __future__ import annotations

import collections.abc as cabc
import typing as typ

from .models import UNKNOWN_SEGMENT

UNKNOWN_ACTION = UNKNOWN_SEGMENT

# Checked in order; the first marker present names the action.
ACTION_MARKERS: tuple[tuple[str, str], ...] = (
    ("forkee", "forked"),
    ("ref", "pushed"),
    ("release", "released"),
    ("pull_request", "pull_request"),
    ("issue", "issue"),
    ("pages", "pages"),
)

# Checked in order, and only when the first field is not an event object.
EVENT_KEY_MARKERS: tuple[str, ...] = (
    "package",
    "deployment_status",
    "deployment",
    "check_run",
    "workflow_run",
    "workflow",
    "pull_request",
    "release",
)

_EVENT_KEY_ALIASES: dict[str, str] = {"ref": "commit"}
_ACTION_ALIASES: dict[str, str] = {"ref": "push"}


class Classification(typ.NamedTuple):
    """Action name and event key inferred from a payload."""

    action_name: str
    event_key: str | None


def _has_field(payload: cabc.Mapping[str, typ.Any], key: str) -> bool:
    return payload.get(key) is not None


def _is_event_object(value: object) -> bool:
    return isinstance(value, cabc.Mapping)


def _first_field(
    payload: cabc.Mapping[str, typ.Any], *, skip_leading_action: bool
) -> str | None:
    keys = [str(key) for key in payload]
    if skip_leading_action:
        if keys and keys[0] == "action":
            keys = keys[1:]
    else:
        keys = [key for key in keys if key != "action"]
    return keys[0] if keys else None


def action_name_for(payload: object) -> str:
    """Return the action name for ``payload``.

    Examples
    --------
    >>> action_name_for({"action": "opened", "pull_request": {}})
    'opened'
    >>> action_name_for({"ref": "refs/heads/main", "commits": []})
    'pushed'
    >>> action_name_for({"zen": "Keep it simple.", "hook_id": 1})
    'zen'

    """
    if not isinstance(payload, cabc.Mapping):
        return UNKNOWN_ACTION

    action = payload.get("action")
    if isinstance(action, str) and action:
        return action

    for marker, action_name in ACTION_MARKERS:
        if _has_field(payload, marker):
            return action_name

    first = _first_field(payload, skip_leading_action=False)
    if first is None:
        return UNKNOWN_ACTION
    return _ACTION_ALIASES.get(first, first)


def event_key_for(payload: object) -> str | None:
    """Return the event key selecting the reducer for ``payload``.

    Examples
    --------
    >>> event_key_for({"action": "published", "package": {}, "repository": {}})
    'package'
    >>> event_key_for({"ref": "refs/heads/main"})
    'commit'
    >>> event_key_for({"action": "opened", "number": 7, "pull_request": {}})
    'pull_request'
    >>> event_key_for({"foo": 1, "bar": 2})
    'foo'
    >>> event_key_for({}) is None
    True

    """
    if not isinstance(payload, cabc.Mapping):
        return None

    first = _first_field(payload, skip_leading_action=True)
    if first is None:
        return None
    if first in _EVENT_KEY_ALIASES or _is_event_object(payload.get(first)):
        return _EVENT_KEY_ALIASES.get(first, first)

    for marker in EVENT_KEY_MARKERS:
        if _is_event_object(payload.get(marker)):
            return marker
    return first


def classify(payload: object) -> Classification:
    """Infer the action name and event key of a raw webhook payload.

    Parameters
    ----------
    payload
        Decoded webhook body. Anything other than a mapping classifies as
        ``("unknown", None)``.

    Returns
    -------
    Classification
        ``(action_name, event_key)``; unpacks as a tuple.

    """
    return Classification(
        action_name=action_name_for(payload),
        event_key=event_key_for(payload),
    )


__all__ = [
    "ACTION_MARKERS",
    "EVENT_KEY_MARKERS",
    "UNKNOWN_ACTION",
    "Classification",
    "action_name_for",
    "classify",
    "event_key_for",
]
