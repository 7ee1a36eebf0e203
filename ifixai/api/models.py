"""Model registry routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ifixai.api.responses import (
    error_response,
    model_response,
    ok_response,
    optional_flag,
    optional_int,
    optional_text,
    require_agent_type,
)
from ifixai.core.errors import ConflictError, InvalidRequestError, NotFoundError
from ifixai.storage import get_store

router = APIRouter()


@router.get("")
async def list_models() -> JSONResponse:
    return model_response(get_store().list_models())


@router.get("/{agent_type}")
async def list_agent_models(agent_type: str) -> JSONResponse:
    return model_response(get_store().list_models(agent_type))


@router.post("")
async def add_model(payload: dict[str, Any]) -> JSONResponse:
    try:
        model_value = optional_text(payload, "modelValue")
        model_label = optional_text(payload, "modelLabel")
        if not payload.get("agentType") or not model_value or not model_label:
            return error_response(400, "agentType, modelValue, and modelLabel are required")
        agent = require_agent_type(payload)
        is_default = optional_flag(payload, "isDefault")
        display_order = optional_int(payload, "displayOrder")
    except InvalidRequestError as exc:
        return error_response(400, str(exc))

    try:
        created = get_store().add_model(
            agent_type=agent.value,
            model_value=model_value,
            model_label=model_label,
            is_default=bool(is_default),
            display_order=display_order or 0,
        )
    except ConflictError as exc:
        return error_response(409, str(exc))
    return model_response(created, status_code=201)


@router.patch("/{model_id}")
async def update_model(model_id: str, payload: dict[str, Any]) -> JSONResponse:
    try:
        model_label = optional_text(payload, "modelLabel")
        is_default = optional_flag(payload, "isDefault")
        is_active = optional_flag(payload, "isActive")
        display_order = optional_int(payload, "displayOrder")
    except InvalidRequestError as exc:
        return error_response(400, str(exc))

    store = get_store()
    if store.get_model(model_id) is None:
        return error_response(404, "Model not found")
    if model_label is None and is_default is None and is_active is None and display_order is None:
        return error_response(400, "No fields to update")

    try:
        updated = store.update_model(
            model_id,
            model_label=model_label,
            is_default=is_default,
            is_active=is_active,
            display_order=display_order,
        )
    except NotFoundError as exc:
        return error_response(404, str(exc))
    return model_response(updated)


@router.delete("/{model_id}")
async def delete_model(model_id: str) -> JSONResponse:
    get_store().delete_model(model_id)
    return ok_response()
