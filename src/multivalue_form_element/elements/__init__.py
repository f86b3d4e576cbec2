"""
Element types known to the form pipeline.

Importing this package registers the core types and the `multivalue` element.
"""

from . import types  # noqa: F401
from .multivalue import (  # noqa: F401
    add_more_ajax,
    add_more_submit,
    is_bare_single_child_value,
    normalize_default_value,
    process_multivalue_element,
    set_default_value,
    value_callback,
)
from .types import ElementInfo, element_info, register_element_type  # noqa: F401
