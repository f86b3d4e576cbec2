from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC = _REPO_ROOT / "src"
if _SRC.exists():
    sys.path.insert(0, str(_SRC))

from multivalue_form_element.schemas.elements import CARDINALITY_UNLIMITED, ElementDefinition  # noqa: E402


def contacts_form_dict(
    *,
    cardinality: int = CARDINALITY_UNLIMITED,
    default_value: Any = None,
    children: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    contacts: Dict[str, Any] = {
        "type": "multivalue",
        "title": "Contacts",
        "cardinality": cardinality,
        "children": children or {"name": {"type": "textfield", "title": "Name"}},
    }
    if default_value is not None:
        contacts["default_value"] = default_value
    return {
        "type": "form",
        "children": {
            "title": {"type": "textfield", "title": "Title", "required": True},
            "contacts": contacts,
        },
    }


@pytest.fixture
def contacts_form():
    def _make(**kwargs: Any) -> ElementDefinition:
        return ElementDefinition.model_validate(contacts_form_dict(**kwargs))

    return _make
