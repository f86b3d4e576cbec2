from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ElementState(BaseModel):
    """
    Per-field bookkeeping kept in the form session.

    - items_count: number of rows to display for an unlimited field.
    - array_parents: where the field's rows live in the built form; reserved
      for the pipeline and left empty by the multivalue element.
    """

    items_count: int = Field(default=0, ge=0)
    array_parents: List[str] = Field(default_factory=list)
