"""
Nested-key access over plain mappings.

Form storage, user input and submitted values are all nested dicts addressed
by a list of keys (a "path"). These helpers read and write at such a path.
"""

from __future__ import annotations

from typing import Any, Mapping, MutableMapping, Optional, Sequence, Tuple

_MISSING = object()


def get_value(data: Any, keys: Sequence[Any], default: Any = None) -> Any:
    value, _ = get_value_exists(data, keys)
    return default if value is _MISSING else value


def get_value_exists(data: Any, keys: Sequence[Any]) -> Tuple[Any, bool]:
    """
    Return `(value, exists)`. A missing key anywhere along the path yields
    `(_MISSING, False)`. List levels are indexed by integer-like keys.
    """
    ref = data
    for key in keys:
        if isinstance(ref, Mapping):
            if key in ref:
                ref = ref[key]
                continue
            # JSON round-trips turn int keys into strings; accept either form.
            alt = _alternate_key(key)
            if alt is not None and alt in ref:
                ref = ref[alt]
                continue
            return _MISSING, False
        if isinstance(ref, (list, tuple)):
            try:
                idx = int(key)
            except (TypeError, ValueError):
                return _MISSING, False
            if 0 <= idx < len(ref):
                ref = ref[idx]
                continue
            return _MISSING, False
        return _MISSING, False
    return ref, True


def key_exists(data: Any, keys: Sequence[Any]) -> bool:
    return get_value_exists(data, keys)[1]


def set_value(data: MutableMapping[Any, Any], keys: Sequence[Any], value: Any) -> None:
    """
    Write `value` at `keys`, creating intermediate dicts. Non-mapping values
    found along the way are replaced.
    """
    if not keys:
        raise ValueError("set_value() needs at least one key")
    ref: MutableMapping[Any, Any] = data
    for key in keys[:-1]:
        nxt = ref.get(key)
        if not isinstance(nxt, MutableMapping):
            nxt = {}
            ref[key] = nxt
        ref = nxt
    ref[keys[-1]] = value


def _alternate_key(key: Any) -> Optional[Any]:
    if isinstance(key, bool):
        return None
    if isinstance(key, int):
        return str(key)
    if isinstance(key, str) and key.isdigit():
        return int(key)
    return None
