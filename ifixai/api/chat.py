"""Chat routes: one-shot reply and simulated SSE stream."""

from __future__ import annotations

from typing import Any, AsyncGenerator

from fastapi import APIRouter
from fastapi.responses import JSONResponse, StreamingResponse

from ifixai.api.responses import error_response, optional_text, sse_event
from ifixai.core.chat_service import ChatService
from ifixai.core.errors import InvalidRequestError, NotFoundError
from ifixai.storage import get_store
from ifixai.util.logger import get_logger

logger = get_logger("api.chat")

router = APIRouter()


def _chat_fields(payload: dict[str, Any]) -> dict[str, Any]:
    message = optional_text(payload, "message")
    agent_type = optional_text(payload, "agentType")
    if not message or not agent_type:
        raise InvalidRequestError("Message and agentType are required")
    return {
        "message": message,
        "agent_type": agent_type,
        "api_key": optional_text(payload, "apiKey"),
        "model": optional_text(payload, "model"),
        "image_url": optional_text(payload, "imageUrl"),
    }


@router.post("/{conversation_id}")
async def send_message(conversation_id: str, payload: dict[str, Any]) -> JSONResponse:
    try:
        fields = _chat_fields(payload)
    except InvalidRequestError as exc:
        return error_response(400, str(exc))

    service = ChatService(get_store())
    try:
        response, stored = await service.send_message(conversation_id, **fields)
    except NotFoundError as exc:
        return error_response(404, str(exc))

    if response.error is not None or stored is None:
        return error_response(500, response.error or "chat failed")
    return JSONResponse(content={"message": response.content, "messageId": stored.id})


@router.post("/{conversation_id}/stream", response_model=None)
async def stream_message(conversation_id: str, payload: dict[str, Any]) -> JSONResponse | StreamingResponse:
    try:
        fields = _chat_fields(payload)
    except InvalidRequestError as exc:
        return error_response(400, str(exc))

    store = get_store()
    if store.get_conversation(conversation_id) is None:
        return error_response(404, "Conversation not found")

    service = ChatService(store)

    async def _events() -> AsyncGenerator[bytes, None]:
        async for event in service.stream_message(conversation_id, **fields):
            yield sse_event(event)

    return StreamingResponse(
        _events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )
