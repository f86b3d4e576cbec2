from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..schemas.elements import ElementDefinition


class BuildFormRequest(BaseModel):
    """Start a form session, or submit a form headlessly when `programmed` is set."""

    model_config = ConfigDict(populate_by_name=True)

    form: ElementDefinition = Field(..., description="Unprocessed form definition")
    values: Dict[str, Any] = Field(
        default_factory=dict,
        description="Values for a programmatic submission (ignored unless programmed=true)",
    )
    programmed: bool = Field(default=False, description="Submit `values` without a browser round-trip")


class FormInteractionRequest(BaseModel):
    """A submission of an existing form session (full submit or async trigger)."""

    model_config = ConfigDict(populate_by_name=True)

    input: Dict[str, Any] = Field(default_factory=dict, description="Raw user input keyed by element parents")
    triggering_element: Optional[str] = Field(
        default=None,
        alias="triggeringElement",
        description="`name` of the button that was activated",
    )
