from __future__ import annotations

from typing import Any, Dict, List

from .schemas.elements import ElementDefinition

# Pipeline bookkeeping that clients never need.
_INTERNAL_KEYS = {"processed", "input"}


def _prune_empty(v: Any) -> Any:
    if isinstance(v, dict):
        out: Dict[str, Any] = {}
        for k, vv in v.items():
            pv = _prune_empty(vv)
            if pv is None or pv == "":
                continue
            if isinstance(pv, (dict, list)) and not pv:
                continue
            out[k] = pv
        return out
    if isinstance(v, list):
        return [_prune_empty(item) for item in v]
    return v


def sorted_children(element: ElementDefinition) -> List[str]:
    """Child keys by weight; equal weights keep their insertion order."""
    keys = list(element.children)
    return sorted(keys, key=lambda k: (element.children[k].weight, keys.index(k)))


def render_element(element: ElementDefinition) -> Dict[str, Any]:
    """
    JSON-ready view of a built element.

    Empty fields are dropped, children come out in weight order, and values
    (which may be falsy) are always kept for input elements.
    """
    data = element.model_dump(mode="json", exclude={"children"} | _INTERNAL_KEYS)
    out = _prune_empty(data)
    if element.input and not element.is_button:
        out["value"] = element.model_dump(mode="json", include={"value"})["value"]
    if element.children:
        out["children"] = {key: render_element(element.children[key]) for key in sorted_children(element)}
    return out
