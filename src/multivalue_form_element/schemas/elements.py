"""
Typed element tree.

An `ElementDefinition` describes one node of a form: its control metadata as
named fields, and its nested elements under `children`. The same model is used
for the definition a caller submits and for the built tree the pipeline
returns (where `parents`, `array_parents`, `value` and `processed` are filled
in).
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

CARDINALITY_UNLIMITED = -1


class AjaxSettings(BaseModel):
    callback: str = Field(..., description="Registered name of the async callback")
    wrapper: str = Field(..., description="Id of the container the returned subtree replaces")
    effect: Literal["none", "fade", "slide"] = "none"


class ElementDefinition(BaseModel):
    type: str = Field(default="container", description="Element type (e.g. textfield, multivalue, submit)")
    title: Optional[str] = None
    title_display: Literal["before", "after", "invisible", "attribute"] = "before"
    description: Optional[str] = None
    name: Optional[str] = Field(default=None, description="Input name; buttons are matched on it")

    input: bool = False
    tree: Optional[bool] = None
    parents: List[str] = Field(default_factory=list, description="Structural path used for values and state")
    array_parents: List[str] = Field(default_factory=list, description="Location in the built tree")
    weight: float = 0
    required: bool = False

    cardinality: int = Field(default=CARDINALITY_UNLIMITED, description="-1 for unlimited, else a positive bound")
    add_more_label: Optional[str] = None
    field_name: Optional[str] = None

    default_value: Any = None
    value: Any = None
    options: Optional[Dict[str, str]] = None

    prefix: Optional[str] = None
    suffix: Optional[str] = None
    attributes: Dict[str, Any] = Field(default_factory=dict)

    limit_validation_errors: Optional[List[List[str]]] = None
    submit_handlers: List[str] = Field(default_factory=list)
    ajax: Optional[AjaxSettings] = None

    processed: bool = False
    children: Dict[str, "ElementDefinition"] = Field(default_factory=dict)

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    @field_validator("cardinality")
    @classmethod
    def _validate_cardinality(cls, v: int) -> int:
        if v == CARDINALITY_UNLIMITED or v >= 1:
            return v
        raise ValueError(f"cardinality must be {CARDINALITY_UNLIMITED} (unlimited) or a positive bound, got {v}")

    @property
    def is_button(self) -> bool:
        return self.type in {"submit", "button"}

    @property
    def unlimited(self) -> bool:
        return self.cardinality == CARDINALITY_UNLIMITED

    def find(self, array_parents: Sequence[str]) -> Optional["ElementDefinition"]:
        """Walk `children` along `array_parents`; None when any step is missing."""
        node: Optional[ElementDefinition] = self
        for key in array_parents:
            if node is None:
                return None
            node = node.children.get(str(key))
        return node

    def iter_elements(self):
        """Depth-first walk over this element and all descendants."""
        yield self
        for child in self.children.values():
            yield from child.iter_elements()


ElementDefinition.model_rebuild()
