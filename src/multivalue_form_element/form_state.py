"""
Per-request form session.

`FormState` carries everything one pass over a form needs: the persisted
`storage` (the session store the multivalue element keeps its counts in), the
raw user `input`, the collected `values` and `errors`, and the flags the
pipeline and handlers exchange (`programmed`, `rebuild`, the triggering
element).
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from .config import DEFAULT_ADD_MORE_LABEL
from .html_ids import HtmlIdRegistry
from .schemas.elements import ElementDefinition
from .state import ElementStateStore

TRIGGERING_ELEMENT_KEY = "_triggering_element_name"


class FormState:
    def __init__(
        self,
        *,
        storage: Optional[Dict[str, Any]] = None,
        input: Optional[Dict[str, Any]] = None,
        programmed: bool = False,
        build_id: Optional[str] = None,
        add_more_label: str = DEFAULT_ADD_MORE_LABEL,
    ) -> None:
        self.storage: Dict[str, Any] = storage if storage is not None else {}
        self.input: Dict[str, Any] = dict(input or {})
        self.programmed = programmed
        self.build_id = build_id
        self.add_more_label = add_more_label
        self.values: Dict[str, Any] = {}
        self.errors: Dict[str, str] = {}
        self.rebuild = False
        self.submitted = False
        self.triggering_element: Optional[ElementDefinition] = None
        self.html_ids = HtmlIdRegistry()

    @property
    def process_input(self) -> bool:
        return self.programmed or bool(self.input)

    @property
    def element_states(self) -> ElementStateStore:
        return ElementStateStore(self.storage)

    @property
    def triggering_element_name(self) -> Optional[str]:
        name = self.input.get(TRIGGERING_ELEMENT_KEY)
        return str(name) if name else None

    def set_error(self, element: ElementDefinition, message: str) -> None:
        key = "][".join(element.parents)
        self.errors.setdefault(key, message)

    def has_errors(self) -> bool:
        return bool(self.errors)
