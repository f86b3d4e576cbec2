"""ASGI entrypoint: `uvicorn multivalue_form_element.api.index:app`."""

from __future__ import annotations

from .main import create_app

app = create_app()
