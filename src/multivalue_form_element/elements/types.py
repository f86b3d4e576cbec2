"""
Element-type registry.

Each element type declares whether it takes input, the defaults merged into
definitions of that type, its value callback and its process hooks. The
pipeline looks types up here while building; the multivalue element registers
itself from `elements.multivalue`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

from ..errors import UnknownElementTypeError

# (element, input_or_False, form_state) -> value
ValueCallback = Callable[[Any, Any, Any], Any]
# (element, form_state, complete_form) -> element
ProcessHook = Callable[[Any, Any, Any], Any]


@dataclass(frozen=True)
class ElementInfo:
    input: bool = False
    defaults: Dict[str, Any] = field(default_factory=dict)
    value_callback: Optional[ValueCallback] = None
    process: Tuple[ProcessHook, ...] = ()


_ELEMENT_TYPES: Dict[str, ElementInfo] = {}


def register_element_type(name: str, info: ElementInfo) -> None:
    _ELEMENT_TYPES[name] = info


def element_info(name: str) -> ElementInfo:
    info = _ELEMENT_TYPES.get(name)
    if info is None:
        raise UnknownElementTypeError(f"Unknown element type: {name!r}")
    return info


def value_or_default(element: Any, input: Any, form_state: Any) -> Any:
    if input is not False:
        return input
    return element.default_value


def checkbox_value(element: Any, input: Any, form_state: Any) -> Any:
    if input is False:
        return bool(element.default_value)
    return input not in (None, "", 0, "0", False)


def checkboxes_value(element: Any, input: Any, form_state: Any) -> Any:
    if input is False:
        default = element.default_value
        return list(default) if isinstance(default, (list, tuple)) else []
    if isinstance(input, dict):
        return [k for k, v in input.items() if v]
    if isinstance(input, (list, tuple)):
        return list(input)
    return [input] if input not in (None, "") else []


def number_value(element: Any, input: Any, form_state: Any) -> Any:
    raw = element.default_value if input is False else input
    if raw in (None, ""):
        return None
    try:
        num = float(raw)
    except (TypeError, ValueError):
        return raw
    return int(num) if num.is_integer() else num


def button_value(element: Any, input: Any, form_state: Any) -> Any:
    # Buttons carry their label as value; submitted input is ignored.
    return element.value


for _name in ("textfield", "textarea", "email", "select", "hidden", "radios"):
    register_element_type(_name, ElementInfo(input=True, value_callback=value_or_default))

register_element_type("number", ElementInfo(input=True, value_callback=number_value))
register_element_type("checkbox", ElementInfo(input=True, value_callback=checkbox_value))
register_element_type("checkboxes", ElementInfo(input=True, value_callback=checkboxes_value))
register_element_type(
    "weight",
    ElementInfo(input=True, defaults={"attributes": {"class": ["row-weight"]}}, value_callback=number_value),
)
register_element_type("submit", ElementInfo(input=True, value_callback=button_value))
register_element_type("button", ElementInfo(input=True, value_callback=button_value))
register_element_type("container", ElementInfo())
register_element_type("fieldset", ElementInfo())
register_element_type("form", ElementInfo(defaults={"tree": False}))
