"""Conversation CRUD routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ifixai.api.responses import error_response, model_response, ok_response, optional_text
from ifixai.core.errors import InvalidRequestError, NotFoundError
from ifixai.storage import get_store

router = APIRouter()


@router.get("")
async def list_conversations() -> JSONResponse:
    return model_response(get_store().list_conversations())


@router.get("/{conversation_id}")
async def get_conversation(conversation_id: str) -> JSONResponse:
    store = get_store()
    conversation = store.get_conversation(conversation_id)
    if conversation is None:
        return error_response(404, "Conversation not found")
    content = conversation.model_dump()
    content["messages"] = [item.model_dump() for item in store.list_messages(conversation_id)]
    return JSONResponse(content=content)


@router.post("")
async def create_conversation(payload: dict[str, Any]) -> JSONResponse:
    try:
        title = optional_text(payload, "title")
        agent_type = optional_text(payload, "agentType")
        model = optional_text(payload, "model")
    except InvalidRequestError as exc:
        return error_response(400, str(exc))
    if not title or not agent_type:
        return error_response(400, "Title and agentType are required")

    conversation = get_store().create_conversation(title=title, agent_type=agent_type, model=model)
    return model_response(conversation, status_code=201)


@router.patch("/{conversation_id}")
async def update_conversation(conversation_id: str, payload: dict[str, Any]) -> JSONResponse:
    try:
        title = optional_text(payload, "title")
        model = optional_text(payload, "model")
    except InvalidRequestError as exc:
        return error_response(400, str(exc))
    if title is None and model is None:
        return error_response(400, "At least one field (title or model) is required")

    try:
        conversation = get_store().update_conversation(conversation_id, title=title, model=model)
    except NotFoundError as exc:
        return error_response(404, str(exc))
    return model_response(conversation)


@router.delete("/{conversation_id}")
async def delete_conversation(conversation_id: str) -> JSONResponse:
    get_store().delete_conversation(conversation_id)
    return ok_response()
