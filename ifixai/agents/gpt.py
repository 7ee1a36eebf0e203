"""OpenAI GPT chat provider."""

from __future__ import annotations

from typing import Any, Callable

from openai import AsyncOpenAI

from ifixai.agents.base import ChatProvider
from ifixai.config.settings import settings
from ifixai.core.models import AgentType, ChatMessage, ChatResponse

ClientFactory = Callable[..., Any]


def _openai_role(role: str) -> str:
    if role in {"user", "assistant"}:
        return role
    return "system"


def to_openai_messages(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """
    Plain text turns, except that an image on the newest turn turns it into
    a ``user`` turn with a text part and an ``image_url`` part.
    """
    last = messages[-1]
    if not last.image_url:
        return [{"role": _openai_role(msg.role), "content": msg.content} for msg in messages]

    converted: list[dict[str, Any]] = [
        {"role": _openai_role(msg.role), "content": msg.content} for msg in messages[:-1]
    ]
    converted.append(
        {
            "role": "user",
            "content": [
                {"type": "text", "text": last.content},
                {"type": "image_url", "image_url": {"url": last.image_url}},
            ],
        }
    )
    return converted


class GPTProvider(ChatProvider):
    agent_type = AgentType.GPT
    label = "GPT"
    supports_images = True

    def __init__(
        self,
        default_model: str | None = None,
        client_factory: ClientFactory | None = None,
        strict_attachments: bool | None = None,
    ) -> None:
        super().__init__(default_model or settings.gpt_model, strict_attachments=strict_attachments)
        self._client_factory = client_factory or AsyncOpenAI

    async def _complete(self, messages: list[ChatMessage], model: str, credential: str) -> ChatResponse:
        client = self._client_factory(api_key=credential)
        response = await client.chat.completions.create(
            model=model,
            messages=to_openai_messages(messages),
            max_tokens=settings.max_output_tokens,
        )
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ChatResponse(content="")
        message = getattr(choices[0], "message", None)
        return ChatResponse(content=getattr(message, "content", None) or "")
