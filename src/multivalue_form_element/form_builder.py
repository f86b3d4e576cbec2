"""
Minimal form pipeline.

This is the host side the multivalue element plugs into: it copies a
definition, assigns structural paths, resolves values through each type's
value callback, runs process hooks, and on submission validates, runs the
triggering button's submit handlers and rebuilds when asked to.

Everything a handler needs between requests lives in `FormState.storage`;
the definition itself is never mutated.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Dict, List, Optional, Sequence

from . import elements  # noqa: F401  (registers element types and callbacks)
from .callbacks import resolve_callback
from .elements.types import ElementInfo, element_info
from .form_state import FormState
from .nested import get_value_exists, key_exists, set_value
from .schemas.elements import ElementDefinition

logger = logging.getLogger(__name__)


def _apply_defaults(element: ElementDefinition, info: ElementInfo) -> None:
    extra = element.model_extra or {}
    for name, default in info.defaults.items():
        if name in element.model_fields_set or name in extra:
            continue
        setattr(element, name, copy.deepcopy(default))


def _handle_input(element: ElementDefinition, info: ElementInfo, form_state: FormState) -> None:
    element.input = True
    callback = info.value_callback
    if callback is None:
        return
    if form_state.process_input and not element.is_button:
        raw, exists = get_value_exists(form_state.input, element.parents)
        element.value = callback(element, raw if exists else False, form_state)
    else:
        element.value = callback(element, False, form_state)


def _is_triggering(element: ElementDefinition, form_state: FormState) -> bool:
    if not element.is_button or not element.name or not form_state.process_input:
        return False
    name = form_state.triggering_element_name
    if name:
        return element.name == name
    # Without JS the browser posts the clicked button as `name=label`.
    return element.name in form_state.input


def _do_build(element: ElementDefinition, form_state: FormState, complete_form: ElementDefinition) -> ElementDefinition:
    info = element_info(element.type)
    _apply_defaults(element, info)
    if info.input:
        _handle_input(element, info, form_state)

    for hook in info.process:
        element = hook(element, form_state, complete_form) or element
    element.processed = True

    if form_state.triggering_element is None and _is_triggering(element, form_state):
        form_state.triggering_element = element

    for key in list(element.children):
        child = element.children[key]
        if child.tree is None:
            child.tree = bool(element.tree)
        child.parents = [*element.parents, key] if (child.tree and element.tree) else [key]
        child.array_parents = [*element.array_parents, key]
        element.children[key] = _do_build(child, form_state, complete_form)
    return element


def _collect_values(form: ElementDefinition) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for element in form.iter_elements():
        if not element.input or element.is_button or not element.parents:
            continue
        if element.children:
            if not key_exists(values, element.parents):
                set_value(values, element.parents, {})
            continue
        set_value(values, element.parents, element.value)
    return values


def build_form(definition: ElementDefinition, form_state: FormState) -> ElementDefinition:
    """Build a fresh tree from `definition` against the current form state."""
    form = definition.model_copy(deep=True)
    form.parents = []
    form.array_parents = []
    form_state.html_ids.reset()
    form_state.triggering_element = None
    form = _do_build(form, form_state, form)
    form_state.values = _collect_values(form)
    return form


def rebuild_form(definition: ElementDefinition, form_state: FormState) -> ElementDefinition:
    logger.info("rebuilding form build_id=%s", form_state.build_id)
    return build_form(definition, form_state)


def _in_sections(parents: Sequence[str], sections: Optional[List[List[str]]]) -> bool:
    if sections is None:
        return True
    return any(list(parents[: len(s)]) == list(s) for s in sections)


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {} or value is False


def validate_form(form: ElementDefinition, form_state: FormState) -> None:
    triggering = form_state.triggering_element
    sections = triggering.limit_validation_errors if triggering is not None else None
    for element in form.iter_elements():
        if not element.input or element.is_button or element.children or not element.required:
            continue
        if not _in_sections(element.parents, sections):
            continue
        if _is_empty(element.value):
            label = element.title or (element.parents[-1] if element.parents else "Value")
            form_state.set_error(element, f"{label} field is required.")


def process_form(definition: ElementDefinition, form_state: FormState) -> ElementDefinition:
    """
    Build the form and, when there is input, validate and submit it.

    Submit handlers come from the triggering button, or from the form itself
    when no button was identified. A handler that sets `form_state.rebuild`
    gets the form rebuilt from `definition` with the updated storage.
    """
    form = build_form(definition, form_state)
    if not form_state.process_input:
        return form

    form_state.submitted = True
    validate_form(form, form_state)
    if form_state.has_errors():
        logger.info("form build_id=%s has %s error(s)", form_state.build_id, len(form_state.errors))
        return form

    triggering = form_state.triggering_element
    if triggering is None and form_state.triggering_element_name:
        # A named trigger that matches no button (stale or removed) submits nothing.
        logger.info(
            "no button named %r in form build_id=%s; skipping submit handlers",
            form_state.triggering_element_name,
            form_state.build_id,
        )
        return form
    handlers = triggering.submit_handlers if triggering is not None and triggering.submit_handlers else form.submit_handlers
    for name in handlers:
        resolve_callback(name)(form, form_state)

    if form_state.rebuild:
        form = rebuild_form(definition, form_state)
    return form


def ajax_response(form: ElementDefinition, form_state: FormState) -> Optional[ElementDefinition]:
    """Run the triggering button's async callback; None means "no update"."""
    triggering = form_state.triggering_element
    if triggering is None or triggering.ajax is None:
        return None
    return resolve_callback(triggering.ajax.callback)(form, form_state)


def submit_form(
    definition: ElementDefinition,
    values: Dict[str, Any],
    *,
    storage: Optional[Dict[str, Any]] = None,
) -> FormState:
    """Headless submission: `values` act as user input and no add-more buttons are attached."""
    form_state = FormState(storage=storage, input=values, programmed=True)
    process_form(definition, form_state)
    return form_state


def get_element(form: ElementDefinition, array_parents: Sequence[str]) -> Optional[ElementDefinition]:
    return form.find(array_parents)
