"""Anthropic Claude chat provider."""

from __future__ import annotations

from typing import Any, Callable

from anthropic import AsyncAnthropic

from ifixai.agents.base import ChatProvider
from ifixai.config.settings import settings
from ifixai.core.models import AgentType, ChatMessage, ChatResponse

ClientFactory = Callable[..., Any]


def split_system_prompt(messages: list[ChatMessage]) -> tuple[str | None, list[dict[str, str]]]:
    """
    Separate the system prompt from the turn list.

    Only the first ``system`` message is kept as the prompt; all system
    messages are removed from the turns. Images are not forwarded.
    """
    system = next((msg.content for msg in messages if msg.role == "system"), None)
    turns = [
        {"role": "user" if msg.role == "user" else "assistant", "content": msg.content}
        for msg in messages
        if msg.role != "system"
    ]
    return system, turns


class ClaudeProvider(ChatProvider):
    agent_type = AgentType.CLAUDE
    label = "Claude"

    def __init__(
        self,
        default_model: str | None = None,
        client_factory: ClientFactory | None = None,
        strict_attachments: bool | None = None,
    ) -> None:
        super().__init__(default_model or settings.claude_model, strict_attachments=strict_attachments)
        self._client_factory = client_factory or AsyncAnthropic

    async def _complete(self, messages: list[ChatMessage], model: str, credential: str) -> ChatResponse:
        client = self._client_factory(api_key=credential)
        system, turns = split_system_prompt(messages)

        kwargs: dict[str, Any] = {
            "model": model,
            "max_tokens": settings.max_output_tokens,
            "messages": turns,
        }
        if system is not None:
            kwargs["system"] = system

        response = await client.messages.create(**kwargs)

        blocks = list(getattr(response, "content", None) or [])
        if blocks and getattr(blocks[0], "type", None) == "text":
            return ChatResponse(content=blocks[0].text)
        return ChatResponse(error="Unexpected response format")
