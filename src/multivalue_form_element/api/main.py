from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.status import (
    HTTP_404_NOT_FOUND,
    HTTP_422_UNPROCESSABLE_ENTITY,
    HTTP_500_INTERNAL_SERVER_ERROR,
    HTTP_503_SERVICE_UNAVAILABLE,
)

from ..cache import FormCache, create_form_cache
from ..config import Settings, load_env_files, load_settings
from ..errors import ElementConfigurationError, FormCacheError, FormNotFoundError, MultiValueFormError
from .http_logging import install_http_logging
from .routes.forms import router as forms_router
from .routes.health import router as health_router
from .utils import error_response, new_request_id

logger = logging.getLogger(__name__)


def _status_for(exc: MultiValueFormError) -> tuple[int, str]:
    if isinstance(exc, FormNotFoundError):
        return HTTP_404_NOT_FOUND, "form_not_found"
    if isinstance(exc, ElementConfigurationError):
        return HTTP_422_UNPROCESSABLE_ENTITY, "element_configuration_error"
    if isinstance(exc, FormCacheError):
        return HTTP_503_SERVICE_UNAVAILABLE, "form_cache_unavailable"
    return HTTP_500_INTERNAL_SERVER_ERROR, "internal_error"


def create_app(settings: Optional[Settings] = None, form_cache: Optional[FormCache] = None) -> FastAPI:
    if settings is None:
        # Local dev convenience: `.env` then `.env.local`.
        load_env_files()
        settings = load_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level, logging.INFO))

    app = FastAPI(title="multivalue-form-element", version="1.0.0")
    app.state.settings = settings
    app.state.form_cache = form_cache if form_cache is not None else create_form_cache(settings)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        request_id = new_request_id("val")
        logger.info("422 validation_error requestId=%s path=%s errors=%s", request_id, request.url.path, exc.errors())
        return error_response(
            HTTP_422_UNPROCESSABLE_ENTITY,
            error="validation_error",
            message="Request body did not match expected schema.",
            request_id=request_id,
            details=jsonable_encoder(exc.errors()),
        )

    @app.exception_handler(MultiValueFormError)
    async def _form_error_handler(request: Request, exc: MultiValueFormError) -> JSONResponse:
        request_id = new_request_id("form")
        status, error = _status_for(exc)
        log = logger.error if status >= 500 else logger.info
        log("%s %s requestId=%s path=%s err=%s", status, error, request_id, request.url.path, exc)
        return error_response(status, error=error, message=str(exc), request_id=request_id)

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = new_request_id("err")
        logger.error("500 internal_error requestId=%s path=%s err=%r", request_id, request.url.path, exc)
        return error_response(
            HTTP_500_INTERNAL_SERVER_ERROR,
            error="internal_error",
            message="Unhandled server error.",
            request_id=request_id,
        )

    # Unversioned health is convenient for deployments and uptime checks.
    app.include_router(health_router)
    app.include_router(forms_router, prefix="/v1")

    install_http_logging(app, enabled=settings.http_log, max_body_bytes=settings.http_log_body_max_bytes)
    return app
