"""API key settings routes. Secrets are write-only: no route returns them."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ifixai.api.responses import (
    error_response,
    model_response,
    ok_response,
    optional_flag,
    optional_text,
    require_agent_type,
)
from ifixai.core.errors import ConflictError, InvalidRequestError, NotFoundError
from ifixai.storage import get_store
from ifixai.util.logger import get_logger
from ifixai.util.masking import mask_secret

logger = get_logger("api.settings")

router = APIRouter()


@router.get("/api-keys")
async def list_api_keys() -> JSONResponse:
    return model_response(get_store().list_api_keys())


@router.get("/api-keys/{agent_type}")
async def list_agent_api_keys(agent_type: str) -> JSONResponse:
    return model_response(get_store().list_api_keys(agent_type))


@router.post("/api-keys")
async def add_api_key(payload: dict[str, Any]) -> JSONResponse:
    try:
        key_name = optional_text(payload, "keyName")
        api_key = optional_text(payload, "apiKey")
        if not payload.get("agentType") or not key_name or not api_key:
            return error_response(400, "agentType, keyName, and apiKey are required")
        agent = require_agent_type(payload)
    except InvalidRequestError as exc:
        return error_response(400, str(exc))

    try:
        created = get_store().add_api_key(agent_type=agent.value, key_name=key_name, api_key=api_key)
    except ConflictError as exc:
        return error_response(409, str(exc))
    logger.info("api key added agent=%s name=%s key=%s", agent.value, key_name, mask_secret(api_key))
    return model_response(created, status_code=201)


@router.patch("/api-keys/{key_id}")
async def update_api_key(key_id: str, payload: dict[str, Any]) -> JSONResponse:
    if payload.get("apiKey") is not None:
        return error_response(400, "apiKey cannot be changed; add a new key and delete the old one")
    try:
        key_name = optional_text(payload, "keyName")
        is_active = optional_flag(payload, "isActive")
    except InvalidRequestError as exc:
        return error_response(400, str(exc))
    if key_name is None and is_active is None:
        return error_response(400, "No fields to update")

    try:
        updated = get_store().update_api_key(key_id, key_name=key_name, is_active=is_active)
    except NotFoundError as exc:
        return error_response(404, str(exc))
    except ConflictError as exc:
        return error_response(409, str(exc))
    return model_response(updated)


@router.delete("/api-keys/{key_id}")
async def delete_api_key(key_id: str) -> JSONResponse:
    get_store().delete_api_key(key_id)
    return ok_response()
