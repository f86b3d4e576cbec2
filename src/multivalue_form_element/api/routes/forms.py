from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import anyio
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ...cache import CachedForm, FormCache, new_build_id
from ...config import Settings
from ...errors import FormNotFoundError
from ...form_builder import ajax_response, build_form, process_form, submit_form
from ...form_state import TRIGGERING_ELEMENT_KEY, FormState
from ...render import render_element
from ...schemas.elements import ElementDefinition
from ..models import BuildFormRequest, FormInteractionRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/forms", tags=["forms"])


def _deps(request: Request) -> Tuple[FormCache, Settings]:
    return request.app.state.form_cache, request.app.state.settings


def _load(cache: FormCache, build_id: str) -> CachedForm:
    entry = cache.get(build_id)
    if entry is None:
        logger.info("form cache miss build_id=%s", build_id)
        raise FormNotFoundError(f"No form session {build_id!r} (unknown or expired)")
    return entry


def _interaction_state(entry: CachedForm, body: FormInteractionRequest, settings: Settings) -> FormState:
    user_input = dict(body.input)
    if body.triggering_element:
        user_input[TRIGGERING_ELEMENT_KEY] = body.triggering_element
    return FormState(
        storage=entry.storage,
        input=user_input,
        build_id=entry.build_id,
        add_more_label=settings.add_more_label,
    )


def _submission_payload(form: ElementDefinition, form_state: FormState) -> Dict[str, Any]:
    return {
        "ok": not form_state.has_errors(),
        "formBuildId": form_state.build_id,
        "rebuild": form_state.rebuild,
        "form": render_element(form),
        "values": form_state.values,
        "errors": form_state.errors,
    }


@router.post("")
async def create_form(request: Request, body: BuildFormRequest) -> JSONResponse:
    """
    Start a form session.

    Builds the definition, caches it with the fresh form storage and returns
    the built tree plus the `formBuildId` later requests refer to. With
    `programmed: true` the `values` are submitted headlessly instead and
    nothing is cached.
    """
    cache, settings = _deps(request)

    if body.programmed:
        form_state = await anyio.to_thread.run_sync(lambda: submit_form(body.form, body.values))
        return JSONResponse(
            {"ok": not form_state.has_errors(), "values": form_state.values, "errors": form_state.errors}
        )

    def run() -> Tuple[ElementDefinition, FormState]:
        form_state = FormState(build_id=new_build_id(), add_more_label=settings.add_more_label)
        form = build_form(body.form, form_state)
        cache.set(CachedForm(build_id=form_state.build_id, form=body.form, storage=form_state.storage))
        return form, form_state

    form, form_state = await anyio.to_thread.run_sync(run)
    return JSONResponse({"ok": True, "formBuildId": form_state.build_id, "form": render_element(form)})


@router.get("/{build_id}")
async def get_form(request: Request, build_id: str) -> JSONResponse:
    """Re-render a form session from its stored definition and storage."""
    cache, settings = _deps(request)

    def run() -> ElementDefinition:
        entry = _load(cache, build_id)
        form_state = FormState(storage=entry.storage, build_id=build_id, add_more_label=settings.add_more_label)
        return build_form(entry.form, form_state)

    form = await anyio.to_thread.run_sync(run)
    return JSONResponse({"ok": True, "formBuildId": build_id, "form": render_element(form)})


@router.post("/{build_id}/submit")
async def submit(request: Request, build_id: str, body: FormInteractionRequest) -> JSONResponse:
    """Full (non-async) submission; returns the whole form, rebuilt if a handler asked for it."""
    cache, settings = _deps(request)

    def run() -> Tuple[ElementDefinition, FormState]:
        entry = _load(cache, build_id)
        form_state = _interaction_state(entry, body, settings)
        form = process_form(entry.form, form_state)
        cache.set(entry.model_copy(update={"storage": form_state.storage}))
        return form, form_state

    form, form_state = await anyio.to_thread.run_sync(run)
    return JSONResponse(_submission_payload(form, form_state))


@router.post("/{build_id}/ajax")
async def ajax(request: Request, build_id: str, body: FormInteractionRequest) -> JSONResponse:
    """
    Async trigger: run the submit phase, persist the storage, then return only
    the subtree the triggering button's callback picks (or null for no update).
    """
    cache, settings = _deps(request)

    def run() -> Tuple[FormState, Optional[ElementDefinition]]:
        entry = _load(cache, build_id)
        form_state = _interaction_state(entry, body, settings)
        form = process_form(entry.form, form_state)
        # The incremented count must be stored before the client sees the update.
        cache.set(entry.model_copy(update={"storage": form_state.storage}))
        return form_state, ajax_response(form, form_state)

    form_state, element = await anyio.to_thread.run_sync(run)
    triggering = form_state.triggering_element
    wrapper = triggering.ajax.wrapper if triggering is not None and triggering.ajax is not None else None
    return JSONResponse(
        {
            "ok": not form_state.has_errors(),
            "formBuildId": build_id,
            "wrapper": wrapper,
            "element": render_element(element) if element is not None else None,
            "errors": form_state.errors,
        }
    )
