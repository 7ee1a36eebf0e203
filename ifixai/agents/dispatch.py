"""Route a chat request to the provider registered for its agent type."""

from __future__ import annotations

from typing import Callable, Mapping, Sequence

from ifixai.agents.base import ChatProvider
from ifixai.agents.claude import ClaudeProvider
from ifixai.agents.gemini import GeminiProvider
from ifixai.agents.gpt import GPTProvider
from ifixai.agents.qwen import QwenProvider
from ifixai.core.models import AgentType, ChatMessage, ChatResponse
from ifixai.util.logger import get_logger

logger = get_logger("dispatch")

CredentialLookup = Callable[[str], str | None]


def build_providers() -> dict[AgentType, ChatProvider]:
    return {
        AgentType.GEMINI: GeminiProvider(),
        AgentType.CLAUDE: ClaudeProvider(),
        AgentType.QWEN: QwenProvider(),
        AgentType.GPT: GPTProvider(),
    }


_providers: dict[AgentType, ChatProvider] | None = None


def get_providers() -> dict[AgentType, ChatProvider]:
    global _providers
    if _providers is None:
        _providers = build_providers()
    return _providers


async def chat_with_agent(
    agent: AgentType | str,
    messages: Sequence[ChatMessage],
    credential: str | None = None,
    model: str | None = None,
    *,
    credential_lookup: CredentialLookup | None = None,
    providers: Mapping[AgentType, ChatProvider] | None = None,
) -> ChatResponse:
    """
    Send *messages* to the provider for *agent* and return its reply.

    Args:
        agent: Agent type or its string value
        messages: Ordered turns, newest last; must not be empty
        credential: Explicit API key; when absent ``credential_lookup`` is asked
        model: Wire model override; the provider default applies when absent
        credential_lookup: Callable returning the stored key for an agent value
        providers: Provider table, defaults to the process-wide one

    Returns:
        ChatResponse: Never raises; every failure is reported in ``error``
    """
    agent_type = AgentType.parse(agent)
    if agent_type is None:
        return ChatResponse(error=f"Unknown agent type: {agent}")

    table = providers if providers is not None else get_providers()
    provider = table.get(agent_type)
    if provider is None:
        return ChatResponse(error=f"Unknown agent type: {agent}")

    if not messages:
        return ChatResponse(error="messages must not be empty")

    key = credential
    if not key and credential_lookup is not None:
        try:
            key = credential_lookup(agent_type.value)
        except Exception as exc:
            logger.error("credential lookup failed agent=%s error=%s", agent_type.value, exc)
            key = None

    return await provider.send_chat(messages, model=model, credential=key)
