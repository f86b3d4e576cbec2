"""
multivalue-form-element: a repeatable, reorderable form element and the small
form pipeline it runs in.

- Element: `elements/multivalue.py`
- Pipeline: `form_builder.py`
- HTTP app: `api/main.py`
"""

from .form_builder import ajax_response, build_form, process_form, submit_form  # noqa: F401
from .form_state import FormState  # noqa: F401
from .schemas import CARDINALITY_UNLIMITED, ElementDefinition, ElementState  # noqa: F401
