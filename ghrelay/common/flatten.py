"""Deep flatten and unflatten of nested mappings.

``flatten`` turns a nested structure into a single-level mapping keyed by
delimiter-joined paths; ``unflatten`` rebuilds the structure from such a
mapping. The pair is used to filter webhook payloads at field level without
knowing their shape in advance.

Examples
--------
>>> flatten({"repository": {"owner": {"login": "acme"}}, "tags": ["a", "b"]})
{'repository.owner.login': 'acme', 'tags.0': 'a', 'tags.1': 'b'}
>>> unflatten({"repository.owner.login": "acme", "tags.0": "a", "tags.1": "b"})
{'repository': {'owner': {'login': 'acme'}}, 'tags': ['a', 'b']}
>>> strip_fields_by_key_marker({"a": {"b_url": "x", "c": 1}}, "_url")
{'a': {'c': 1}}

"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import functools
import typing as typ

DEFAULT_DELIMITER = "."
RESERVED_SEGMENT = "__proto__"
# Digit segments above this stay mapping keys instead of padding a list.
MAX_LIST_INDEX = 10_000
_ROOT_SEGMENT = "root"

KeyTransform: typ.TypeAlias = cabc.Callable[[str], str]

_MISSING = object()


def _identity(key: str) -> str:
    return key


def _is_sequence(value: object) -> bool:
    return isinstance(value, list | tuple)


def _is_structured(value: object) -> bool:
    return isinstance(value, cabc.Mapping) or _is_sequence(value)


@dc.dataclass(frozen=True, slots=True)
class _FlattenSettings:
    delimiter: str
    max_depth: int | None
    transform_key: KeyTransform
    safe: bool

    def descends_into(self, value: object, depth: int) -> bool:
        if not _is_structured(value) or not value:
            return False
        if self.safe and _is_sequence(value):
            return False
        return self.max_depth is None or depth < self.max_depth


def _children(value: typ.Any) -> cabc.Iterator[tuple[str, typ.Any]]:  # noqa: ANN401
    if isinstance(value, cabc.Mapping):
        return ((str(key), child) for key, child in value.items())
    return ((str(index), child) for index, child in enumerate(value))


def _flatten_items(
    value: typ.Any,  # noqa: ANN401
    prefix: str | None,
    depth: int,
    settings: _FlattenSettings,
) -> cabc.Iterator[tuple[str, typ.Any]]:
    for key, child in _children(value):
        segment = settings.transform_key(key)
        path = segment if prefix is None else f"{prefix}{settings.delimiter}{segment}"
        if settings.descends_into(child, depth):
            yield from _flatten_items(child, path, depth + 1, settings)
        else:
            yield path, child


def flatten(
    target: typ.Any,  # noqa: ANN401
    *,
    delimiter: str = DEFAULT_DELIMITER,
    max_depth: int | None = None,
    transform_key: KeyTransform | None = None,
    safe: bool = False,
) -> dict[str, typ.Any]:
    """Flatten a nested structure into a single-level mapping.

    Parameters
    ----------
    target
        Mapping or sequence to flatten. Any other value yields ``{}``.
    delimiter
        Separator placed between path segments.
    max_depth
        Stop descending once this depth is reached; the remaining
        sub-structure becomes a single leaf value. ``None`` means unlimited.
    transform_key
        Applied to every path segment before it is joined.
    safe
        Treat lists and tuples as atomic leaf values instead of descending
        into them by index.

    Returns
    -------
    dict[str, Any]
        Leaf values keyed by their joined path, in traversal order. Empty
        mappings and sequences are kept as leaves.

    """
    if not _is_structured(target):
        return {}
    settings = _FlattenSettings(
        delimiter=delimiter,
        max_depth=max_depth,
        transform_key=transform_key or _identity,
        safe=safe,
    )
    return dict(_flatten_items(target, None, 1, settings))


@dc.dataclass(frozen=True, slots=True)
class _UnflattenSettings:
    delimiter: str
    force_mappings: bool
    overwrite: bool
    transform_key: KeyTransform

    def index_of(self, segment: str) -> int | None:
        """Return the list index a segment denotes, if it denotes one."""
        if self.force_mappings or not (segment.isascii() and segment.isdigit()):
            return None
        index = int(segment)
        return index if index <= MAX_LIST_INDEX else None

    def container_for(self, segment: str) -> dict[str, typ.Any] | list[typ.Any]:
        return [] if self.index_of(segment) is not None else {}


def _lookup(
    recipient: dict[str, typ.Any] | list[typ.Any],
    segment: str,
    settings: _UnflattenSettings,
) -> typ.Any:  # noqa: ANN401
    if isinstance(recipient, dict):
        return recipient.get(segment, _MISSING)
    index = settings.index_of(segment)
    if index is None or index >= len(recipient) or recipient[index] is None:
        return _MISSING
    return recipient[index]


def _store(
    recipient: dict[str, typ.Any] | list[typ.Any],
    segment: str,
    value: typ.Any,  # noqa: ANN401
    settings: _UnflattenSettings,
) -> bool:
    if isinstance(recipient, dict):
        recipient[segment] = value
        return True
    index = settings.index_of(segment)
    if index is None:
        return False
    if index >= len(recipient):
        recipient.extend([None] * (index + 1 - len(recipient)))
    recipient[index] = value
    return True


def _expand_structured_leaves(
    target: cabc.Mapping[typ.Any, typ.Any], delimiter: str
) -> dict[str, typ.Any]:
    """Flatten non-empty structured values so doubly-encoded input resolves."""
    expanded: dict[str, typ.Any] = {}
    for key, value in target.items():
        if _is_structured(value) and value:
            for path, leaf in flatten(value, delimiter=delimiter).items():
                expanded[f"{key}{delimiter}{path}"] = leaf
        else:
            expanded[str(key)] = value
    return expanded


def _insert(
    result: dict[str, typ.Any],
    item: tuple[str, typ.Any],
    settings: _UnflattenSettings,
) -> dict[str, typ.Any]:
    key, value = item
    segments = [settings.transform_key(part) for part in key.split(settings.delimiter)]
    if RESERVED_SEGMENT in segments:
        return result

    recipient: dict[str, typ.Any] | list[typ.Any] = result
    for segment, following in zip(segments, segments[1:], strict=False):
        existing = _lookup(recipient, segment, settings)
        if isinstance(existing, dict | list):
            recipient = existing
            continue
        # First write wins over an already-materialized scalar.
        if existing is not _MISSING and not settings.overwrite:
            return result
        container = settings.container_for(following)
        if not _store(recipient, segment, container, settings):
            return result
        recipient = container

    _store(recipient, segments[-1], _unflatten(value, settings), settings)
    return result


def _unflatten(
    target: typ.Any,  # noqa: ANN401
    settings: _UnflattenSettings,
) -> typ.Any:  # noqa: ANN401
    if not isinstance(target, cabc.Mapping):
        return target
    expanded = _expand_structured_leaves(target, settings.delimiter)
    return functools.reduce(
        functools.partial(_insert, settings=settings), expanded.items(), {}
    )


def unflatten(
    target: typ.Any,  # noqa: ANN401
    *,
    delimiter: str = DEFAULT_DELIMITER,
    force_mappings: bool = False,
    overwrite: bool = False,
    transform_key: KeyTransform | None = None,
) -> typ.Any:  # noqa: ANN401
    """Rebuild a nested structure from a delimiter-keyed mapping.

    Parameters
    ----------
    target
        Flat mapping to expand. Non-mapping values are returned unchanged.
    delimiter
        Separator used to split keys into path segments.
    force_mappings
        Build mappings at every level, even for segments made of digits.
        Use this when numeric-looking keys (version numbers, ids) must stay
        mapping keys. Digit segments above ``MAX_LIST_INDEX`` are always
        mapping keys.
    overwrite
        Replace an already-materialized scalar when a later key needs a
        container at the same path. When ``False`` the later key is skipped.
    transform_key
        Applied to every path segment after splitting.

    Returns
    -------
    Any
        The rebuilt structure. Keys containing the reserved segment
        ``__proto__`` are ignored.

    """
    settings = _UnflattenSettings(
        delimiter=delimiter,
        force_mappings=force_mappings,
        overwrite=overwrite,
        transform_key=transform_key or _identity,
    )
    return _unflatten(target, settings)


def strip_fields_by_key_marker(
    target: typ.Any,  # noqa: ANN401
    marker: str,
    *,
    delimiter: str = DEFAULT_DELIMITER,
) -> typ.Any:  # noqa: ANN401
    """Remove every leaf whose full path contains ``marker``.

    Containers left without leaves disappear with them. Because the result
    goes through ``unflatten``, mappings keyed only by digits come back as
    lists. A list or tuple target comes back as a list.

    Raises
    ------
    ValueError
        If ``marker`` is empty, which would strip everything.

    """
    if not marker:
        msg = "marker must be a non-empty string"
        raise ValueError(msg)
    kept = {
        path: value
        for path, value in flatten(target, delimiter=delimiter).items()
        if marker not in path
    }
    if not _is_sequence(target):
        return unflatten(kept, delimiter=delimiter)
    rooted = {
        f"{_ROOT_SEGMENT}{delimiter}{path}": value for path, value in kept.items()
    }
    return unflatten(rooted, delimiter=delimiter).get(_ROOT_SEGMENT, [])


__all__ = [
    "DEFAULT_DELIMITER",
    "MAX_LIST_INDEX",
    "RESERVED_SEGMENT",
    "flatten",
    "strip_fields_by_key_marker",
    "unflatten",
]
