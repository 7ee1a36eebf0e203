"""
Conversation-level chat flow: persist the user turn, rebuild the history,
resolve the model, call the agent and persist the reply.
"""

from __future__ import annotations

import asyncio
from typing import Any, AsyncGenerator, Awaitable, Callable

from ifixai.agents.dispatch import chat_with_agent
from ifixai.config.settings import settings
from ifixai.core.models import AgentType, ChatResponse, Conversation, StoredMessage
from ifixai.storage.sqlite_store import SqliteChatStore
from ifixai.util.logger import get_logger

logger = get_logger("chat")

Dispatch = Callable[..., Awaitable[ChatResponse]]


def split_stream_chunks(content: str) -> list[str]:
    """Word chunks for the simulated stream; joining them with spaces gives *content* back."""
    return content.split(" ")


class ChatService:
    def __init__(self, store: SqliteChatStore, dispatch: Dispatch | None = None) -> None:
        self.store = store
        self._dispatch = dispatch or chat_with_agent

    def resolve_model(self, agent_type: str, model: str | None, conversation: Conversation) -> str | None:
        """Explicit model, then the conversation's model, then the registry default."""
        if model and model.strip():
            return model.strip()
        if conversation.model:
            return conversation.model
        agent = AgentType.parse(agent_type)
        if agent is None:
            return None
        return self.store.get_default_model(agent.value) or None

    async def _ask_agent(
        self,
        conversation_id: str,
        *,
        message: str,
        agent_type: str,
        api_key: str | None,
        model: str | None,
        image_url: str | None,
    ) -> ChatResponse:
        conversation = self.store.require_conversation(conversation_id)
        self.store.add_message(conversation_id, role="user", content=message, image_url=image_url)
        history = [item.to_chat_message() for item in self.store.list_messages(conversation_id)]
        resolved_model = self.resolve_model(agent_type, model, conversation)
        logger.info(
            "chat request conversation=%s agent=%s model=%s turns=%d",
            conversation_id,
            agent_type,
            resolved_model or "<provider default>",
            len(history),
        )
        return await self._dispatch(
            agent_type,
            history,
            api_key or None,
            resolved_model,
            credential_lookup=self.store.get_active_api_key,
        )

    def _save_reply(self, conversation_id: str, content: str) -> StoredMessage:
        stored = self.store.add_message(conversation_id, role="assistant", content=content)
        self.store.touch_conversation(conversation_id)
        return stored

    async def send_message(
        self,
        conversation_id: str,
        *,
        message: str,
        agent_type: str,
        api_key: str | None = None,
        model: str | None = None,
        image_url: str | None = None,
    ) -> tuple[ChatResponse, StoredMessage | None]:
        """Returns the agent response and, on success, the stored assistant message."""
        response = await self._ask_agent(
            conversation_id,
            message=message,
            agent_type=agent_type,
            api_key=api_key,
            model=model,
            image_url=image_url,
        )
        if response.error is not None:
            logger.warning("chat failed conversation=%s agent=%s error=%s", conversation_id, agent_type, response.error)
            return response, None
        return response, self._save_reply(conversation_id, response.content)

    async def stream_message(
        self,
        conversation_id: str,
        *,
        message: str,
        agent_type: str,
        api_key: str | None = None,
        model: str | None = None,
        image_url: str | None = None,
        delay_seconds: float | None = None,
    ) -> AsyncGenerator[dict[str, Any], None]:
        """
        Simulated stream: the full reply is fetched first and then replayed
        word by word with a fixed delay. Yields ``{"content"}`` events, then
        ``{"done": True}``, or a single ``{"error"}`` event.
        """
        delay = settings.stream_chunk_delay_seconds if delay_seconds is None else delay_seconds
        try:
            response = await self._ask_agent(
                conversation_id,
                message=message,
                agent_type=agent_type,
                api_key=api_key,
                model=model,
                image_url=image_url,
            )
            if response.error is not None:
                logger.warning("stream failed conversation=%s agent=%s error=%s", conversation_id, agent_type, response.error)
                yield {"error": response.error}
                return

            chunks = split_stream_chunks(response.content)
            for chunk in chunks:
                yield {"content": f"{chunk} "}
                if delay > 0:
                    await asyncio.sleep(delay)

            self._save_reply(conversation_id, " ".join(chunks))
            yield {"done": True}
        except Exception as exc:
            logger.exception("stream error conversation=%s", conversation_id)
            yield {"error": str(exc) or "stream error"}
