"""
Namespaced access to per-field state inside the form-session storage.

State for a field lives at

    ["multivalue_form_element_storage", "#parents", *parents, "#elements", element_name]

so a field literally named like one of its parent segments can never collide
with the bookkeeping keys. Writes replace the whole record.
"""

from __future__ import annotations

import logging
from typing import Any, List, MutableMapping, Optional, Sequence

from .nested import get_value, set_value
from .schemas.state import ElementState

logger = logging.getLogger(__name__)

STORAGE_NAMESPACE = "multivalue_form_element_storage"
PARENTS_KEY = "#parents"
ELEMENTS_KEY = "#elements"


def element_state_parents(parents: Sequence[Any], element_name: str) -> List[str]:
    return [STORAGE_NAMESPACE, PARENTS_KEY, *[str(p) for p in parents], ELEMENTS_KEY, str(element_name)]


class ElementStateStore:
    def __init__(self, storage: MutableMapping[str, Any]) -> None:
        self.storage = storage

    def get_element_state(self, parents: Sequence[Any], element_name: str) -> Optional[ElementState]:
        raw = get_value(self.storage, element_state_parents(parents, element_name))
        if raw is None:
            return None
        if isinstance(raw, ElementState):
            return raw.model_copy(deep=True)
        return ElementState.model_validate(raw)

    def set_element_state(self, parents: Sequence[Any], element_name: str, state: ElementState) -> None:
        key = element_state_parents(parents, element_name)
        set_value(self.storage, key, state.model_dump())
        logger.debug("element state %s -> items_count=%s", "/".join(key[2:]), state.items_count)
