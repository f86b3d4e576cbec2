"""
The `multivalue` element: a form element with cardinality.

It wraps arbitrary child elements and repeats them once per item. Unlimited
fields get an "Add another item" button that bumps the stored item count and
asks for a rebuild; the async callback then hands the rebuilt field back to
the client, which swaps it in at the wrapper id.

Row count is kept in the form-session storage (see `state.py`), keyed by the
field's `parents`, so it survives rebuilds and separate requests.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..callbacks import register_callback
from ..errors import ElementConfigurationError
from ..form_state import FormState
from ..nested import key_exists
from ..schemas.elements import CARDINALITY_UNLIMITED, AjaxSettings, ElementDefinition
from ..schemas.state import ElementState
from .types import ElementInfo, register_element_type

logger = logging.getLogger(__name__)

ADD_MORE_SUBMIT = "multivalue.add_more_submit"
ADD_MORE_AJAX = "multivalue.add_more_ajax"
WEIGHT_KEY = "_weight"
ADD_MORE_KEY = "add_more"


def _default_value_items(default_value: Any) -> Iterable[Tuple[Any, Any]]:
    if default_value is None:
        return []
    if isinstance(default_value, Mapping):
        return list(default_value.items())
    if isinstance(default_value, (list, tuple)):
        return list(enumerate(default_value))
    raise ElementConfigurationError(
        f"multivalue default_value must be a mapping or a list, got {type(default_value).__name__}"
    )


def count_items(default_value: Any) -> int:
    return len(list(_default_value_items(default_value)))


def _item_at(value: Any, delta: int) -> Any:
    if isinstance(value, Mapping):
        if delta in value:
            return value[delta]
        return value.get(str(delta))
    if isinstance(value, (list, tuple)) and delta < len(value):
        return value[delta]
    return None


def is_bare_single_child_value(value: Any, child_key: str) -> bool:
    """
    Whether a default item for a single-child element omits the child key.

    True for scalars, for lists (e.g. the selected keys of checkboxes) and for
    mappings that do not contain `child_key`. A keyed default whose mapping
    happens to lack the child key is misread as a bare value.
    """
    if isinstance(value, Mapping):
        return child_key not in value
    return True


def normalize_default_value(default_value: Any, child_keys: List[str]) -> Dict[Any, Any]:
    """
    Shape `default_value` as `{delta: {child_key: value}}`.

    With exactly one child, bare items may omit the child key, so
    `["a", "b"]` for a single `name` child becomes
    `{0: {"name": "a"}, 1: {"name": "b"}}`. Other items pass through as is.
    """
    single = child_keys[0] if len(child_keys) == 1 else None
    value: Dict[Any, Any] = {}
    for delta, item in _default_value_items(default_value):
        if single is not None and is_bare_single_child_value(item, single):
            value[delta] = {single: item}
        else:
            value[delta] = item
    return value


def value_callback(element: ElementDefinition, input: Any, form_state: FormState) -> Any:
    if input is not False:
        return input
    return normalize_default_value(element.default_value, list(element.children))


def set_default_value(elements: Dict[str, ElementDefinition], value: Any) -> None:
    """Seed the direct children of one row from a `{child_key: value}` mapping."""
    if not isinstance(value, Mapping):
        raise ElementConfigurationError(
            f"multivalue row value must be a mapping keyed by child name, got {type(value).__name__}"
        )
    # Nested multivalue children are not descended into.
    for key, child in elements.items():
        if value.get(key) is not None:
            child.default_value = value[key]


def _weight_element(delta: int) -> ElementDefinition:
    return ElementDefinition(
        type="weight",
        title=f"Weight for row {delta + 1}",
        title_display="invisible",
        default_value=delta,
        weight=100,
    )


def process_multivalue_element(
    element: ElementDefinition,
    form_state: FormState,
    complete_form: ElementDefinition,
) -> ElementDefinition:
    if not element.array_parents:
        raise ElementConfigurationError("multivalue element needs a non-empty structural path")

    element_name = element.array_parents[-1]
    parents = list(element.parents)
    cardinality = element.cardinality

    element.tree = True
    element.field_name = element_name

    store = form_state.element_states
    element_state = store.get_element_state(parents, element_name)
    if element_state is None:
        # The initial count always comes from the default value.
        element_state = ElementState(items_count=count_items(element.default_value), array_parents=[])
        store.set_element_state(parents, element_name, element_state)
        logger.debug("initialized %s with %s item(s)", "/".join(parents), element_state.items_count)

    if cardinality == CARDINALITY_UNLIMITED:
        max_delta = element_state.items_count - 1
    else:
        max_delta = cardinality - 1

    # The children are the template repeated for every delta.
    template = element.children
    element.children = {}

    value = element.value if isinstance(element.value, (Mapping, list, tuple)) else {}
    submitted = form_state.process_input and key_exists(form_state.input, parents)

    for delta in range(max_delta + 1):
        row = {key: child.model_copy(deep=True) for key, child in template.items()}
        item = _item_at(value, delta)
        if submitted and item is not None and not isinstance(item, Mapping):
            # Malformed user input: the row falls back to its template defaults.
            logger.info("ignoring non-mapping input for %s row %s", "/".join(parents), delta)
            item = None
        if item is not None:
            set_default_value(row, item)
        row[WEIGHT_KEY] = _weight_element(delta)
        element.children[str(delta)] = ElementDefinition(type="container", children=row)

    if cardinality == CARDINALITY_UNLIMITED and not form_state.programmed:
        id_prefix = "-".join(parents)
        wrapper_id = form_state.html_ids.get_unique_id(f"{id_prefix}-add-more-wrapper")
        element.prefix = f'<div id="{wrapper_id}">'
        element.suffix = "</div>"
        element.children[ADD_MORE_KEY] = ElementDefinition(
            type="submit",
            name=id_prefix.replace("-", "_") + "_add_more",
            value=element.add_more_label or form_state.add_more_label,
            attributes={"class": ["multivalue-add-more-submit"]},
            limit_validation_errors=[list(element.array_parents)],
            submit_handlers=[ADD_MORE_SUBMIT],
            ajax=AjaxSettings(callback=ADD_MORE_AJAX, wrapper=wrapper_id, effect="fade"),
            weight=101,
        )

    return element


def _owning_element(form: ElementDefinition, form_state: FormState) -> ElementDefinition:
    button = form_state.triggering_element
    if button is None:
        raise ElementConfigurationError("add-more handler invoked without a triggering element")
    # One level up from the button is the multivalue element.
    element = form.find(button.array_parents[:-1])
    if element is None:
        raise ElementConfigurationError(f"no element at {'/'.join(button.array_parents[:-1])!r}")
    return element


@register_callback(ADD_MORE_SUBMIT)
def add_more_submit(form: ElementDefinition, form_state: FormState) -> None:
    element = _owning_element(form, form_state)
    element_name = element.field_name or element.array_parents[-1]
    parents = list(element.parents)

    store = form_state.element_states
    element_state = store.get_element_state(parents, element_name)
    if element_state is None:
        element_state = ElementState(items_count=count_items(element.default_value))
    element_state = element_state.model_copy(update={"items_count": element_state.items_count + 1})
    store.set_element_state(parents, element_name, element_state)
    logger.debug("add more on %s: items_count=%s", "/".join(parents), element_state.items_count)

    form_state.rebuild = True


@register_callback(ADD_MORE_AJAX)
def add_more_ajax(form: ElementDefinition, form_state: FormState) -> Optional[ElementDefinition]:
    element = _owning_element(form, form_state)

    # The button is only attached to unlimited fields; a stale one gets no update.
    if element.cardinality != CARDINALITY_UNLIMITED:
        return None

    return element


register_element_type(
    "multivalue",
    ElementInfo(
        input=True,
        defaults={
            "cardinality": CARDINALITY_UNLIMITED,
            "theme": "field_multiple_value_form",
            "cardinality_multiple": True,
        },
        value_callback=value_callback,
        process=(process_multivalue_element,),
    ),
)
