from __future__ import annotations


class MultiValueFormError(Exception):
    """Base class for errors raised by the form engine."""


class ElementConfigurationError(MultiValueFormError):
    """An element definition cannot be built (bad default value shape, missing path, ...)."""


class UnknownElementTypeError(ElementConfigurationError):
    pass


class UnknownCallbackError(MultiValueFormError):
    pass


class FormNotFoundError(MultiValueFormError):
    pass


class FormCacheError(MultiValueFormError):
    pass
