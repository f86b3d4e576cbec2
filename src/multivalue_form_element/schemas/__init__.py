"""
Schema package for the element tree and per-field state.
"""

from .elements import CARDINALITY_UNLIMITED, AjaxSettings, ElementDefinition  # noqa: F401
from .state import ElementState  # noqa: F401
