"""JSON response and request-body helpers shared by the API routers."""

from __future__ import annotations

import json
from typing import Any, Iterable

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ifixai.core.errors import InvalidRequestError
from ifixai.core.models import AGENT_TYPE_VALUES, AgentType


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def ok_response() -> JSONResponse:
    return JSONResponse(content={"success": True})


def model_response(data: BaseModel | Iterable[BaseModel], status_code: int = 200) -> JSONResponse:
    if isinstance(data, BaseModel):
        content: Any = data.model_dump()
    else:
        content = [item.model_dump() for item in data]
    return JSONResponse(status_code=status_code, content=content)


def sse_event(payload: dict[str, Any]) -> bytes:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n".encode("utf-8")


def optional_text(payload: dict[str, Any], key: str) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidRequestError(f"{key} must be a string")
    return value


def require_agent_type(payload: dict[str, Any], key: str = "agentType") -> AgentType:
    agent = AgentType.parse(payload.get(key))
    if agent is None:
        raise InvalidRequestError(f"Invalid agentType. Must be {', '.join(AGENT_TYPE_VALUES[:-1])}, or {AGENT_TYPE_VALUES[-1]}")
    return agent


def optional_flag(payload: dict[str, Any], key: str) -> bool | None:
    if key not in payload or payload[key] is None:
        return None
    value = payload[key]
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    raise InvalidRequestError(f"{key} must be a boolean")


def optional_int(payload: dict[str, Any], key: str) -> int | None:
    if key not in payload or payload[key] is None:
        return None
    value = payload[key]
    if isinstance(value, bool):
        raise InvalidRequestError(f"{key} must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise InvalidRequestError(f"{key} must be an integer") from exc
