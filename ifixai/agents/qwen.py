"""Qwen chat provider over an OpenAI-compatible HTTP endpoint."""

from __future__ import annotations

from typing import Any

from ifixai.agents.base import ChatProvider
from ifixai.agents.transport import bearer_headers, error_message, post_json
from ifixai.config.settings import settings
from ifixai.core.models import AgentType, ChatMessage, ChatResponse

# error bodies that are not JSON objects
UNREADABLE_ERROR_BODY = "Unknown error"
UNEXPECTED_FORMAT = "Unexpected response format"


def first_choice_content(payload: Any) -> str | None:
    """
    ``choices[0].message.content`` of a chat-completions body.

    An empty ``choices`` list or a missing content gives ``""``; a body
    without a ``choices`` list gives None.
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("choices"), list):
        return None
    choices = payload["choices"]
    if not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


class QwenProvider(ChatProvider):
    agent_type = AgentType.QWEN
    label = "Qwen"

    def __init__(
        self,
        default_model: str | None = None,
        endpoint: str | None = None,
        strict_attachments: bool | None = None,
    ) -> None:
        super().__init__(default_model or settings.qwen_model, strict_attachments=strict_attachments)
        self.endpoint = endpoint or settings.qwen_api_endpoint

    def build_payload(self, messages: list[ChatMessage], model: str) -> dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": msg.role, "content": msg.content} for msg in messages],
            "temperature": settings.qwen_temperature,
            "max_tokens": settings.max_output_tokens,
        }

    async def _complete(self, messages: list[ChatMessage], model: str, credential: str) -> ChatResponse:
        status, body = await post_json(self.endpoint, self.build_payload(messages, model), bearer_headers(credential))
        if status >= 400:
            if not isinstance(body, dict):
                return ChatResponse(error=UNREADABLE_ERROR_BODY)
            return ChatResponse(error=error_message(body) or self.fallback_error)

        content = first_choice_content(body)
        if content is None:
            return ChatResponse(error=UNEXPECTED_FORMAT)
        return ChatResponse(content=content)
