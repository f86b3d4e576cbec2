from __future__ import annotations

from typing import Any, Callable, Dict

from .errors import UnknownCallbackError

_CALLBACKS: Dict[str, Callable[..., Any]] = {}


def register_callback(name: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """
    Register a submit handler or async callback under `name`.

    Element definitions refer to handlers by name so they stay serializable
    between requests.
    """

    def deco(fn: Callable[..., Any]) -> Callable[..., Any]:
        _CALLBACKS[name] = fn
        return fn

    return deco


def resolve_callback(name: str) -> Callable[..., Any]:
    fn = _CALLBACKS.get(str(name or ""))
    if fn is None:
        raise UnknownCallbackError(f"No callback registered as {name!r}")
    return fn
