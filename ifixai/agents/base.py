"""
Base provider interface for chat agents.

Every provider turns the same ordered ``ChatMessage`` list into one vendor
request and maps the vendor reply back to a ``ChatResponse``. Failures of
any kind come back in ``ChatResponse.error``; ``send_chat`` never raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from ifixai.config.settings import settings
from ifixai.core.models import AgentType, ChatMessage, ChatResponse
from ifixai.util.logger import get_logger
from ifixai.util.masking import mask_secret

logger = get_logger("agents")


class ChatProvider(ABC):
    """
    Abstract base class for chat providers.

    Subclasses set ``agent_type``, ``label`` and ``supports_images`` and
    implement ``_complete``; credential checks, attachment policy and error
    conversion live here.
    """

    agent_type: AgentType
    label: str
    supports_images: bool = False

    def __init__(self, default_model: str, strict_attachments: bool | None = None) -> None:
        self.default_model = default_model
        self.strict_attachments = settings.strict_attachments if strict_attachments is None else strict_attachments

    @property
    def fallback_error(self) -> str:
        return f"{self.label} API error"

    def resolve_model(self, model: str | None) -> str:
        return (model or "").strip() or self.default_model

    async def send_chat(
        self,
        messages: Sequence[ChatMessage],
        model: str | None = None,
        credential: str | None = None,
    ) -> ChatResponse:
        if not credential:
            return ChatResponse(error=f"{self.label} API key not configured")
        if not messages:
            return ChatResponse(error="messages must not be empty")

        if messages[-1].image_url and not self.supports_images:
            if self.strict_attachments:
                return ChatResponse(error=f"{self.label} does not support image attachments")
            logger.debug("image attachment dropped agent=%s", self.agent_type.value)

        model_name = self.resolve_model(model)
        logger.info(
            "agent call agent=%s model=%s turns=%d key=%s",
            self.agent_type.value,
            model_name,
            len(messages),
            mask_secret(credential),
        )
        try:
            return await self._complete(list(messages), model_name, credential)
        except Exception as exc:
            detail = (str(exc) or "").strip() or self.fallback_error
            logger.warning("agent call failed agent=%s model=%s error=%s", self.agent_type.value, model_name, detail)
            return ChatResponse(error=detail)

    @abstractmethod
    async def _complete(self, messages: list[ChatMessage], model: str, credential: str) -> ChatResponse:
        """
        Issue the vendor call.

        Args:
            messages: Non-empty ordered turns, newest last
            model: Resolved wire model identifier
            credential: API key for the vendor

        Returns:
            ChatResponse: Reply text, or a local error for unexpected shapes
        """
        pass
