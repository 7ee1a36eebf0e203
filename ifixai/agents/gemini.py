"""
Google Gemini chat provider.

History goes through ``start_chat``; a turn carrying an image is sent as a
single ``generate_content`` call with the text and an inline JPEG part.
"""

from __future__ import annotations

import base64
import re
from typing import Any, Callable

import google.generativeai as genai

from ifixai.agents.base import ChatProvider
from ifixai.config.settings import settings
from ifixai.core.models import AgentType, ChatMessage, ChatResponse

_DATA_URI_PREFIX_RE = re.compile(r"^data:image/\w+;base64,")
# the vendor is told JPEG whatever the source type was
INLINE_IMAGE_MIME_TYPE = "image/jpeg"

ModelFactory = Callable[[str, str], Any]


def _default_model_factory(api_key: str, model_name: str) -> Any:
    # genai keeps the key in module state; configure right before building the model
    genai.configure(api_key=api_key)
    return genai.GenerativeModel(model_name)


def to_gemini_history(messages: list[ChatMessage]) -> list[dict[str, Any]]:
    """Every turn except the newest, with non-user roles mapped to ``model``."""
    return [
        {
            "role": "user" if msg.role == "user" else "model",
            "parts": [{"text": msg.content}],
        }
        for msg in messages[:-1]
    ]


def inline_image_part(image_url: str) -> dict[str, Any]:
    data = _DATA_URI_PREFIX_RE.sub("", image_url.strip(), count=1)
    return {
        "inline_data": {
            "mime_type": INLINE_IMAGE_MIME_TYPE,
            "data": base64.b64decode(data, validate=True),
        }
    }


class GeminiProvider(ChatProvider):
    agent_type = AgentType.GEMINI
    label = "Gemini"
    supports_images = True

    def __init__(
        self,
        default_model: str | None = None,
        model_factory: ModelFactory | None = None,
        strict_attachments: bool | None = None,
    ) -> None:
        super().__init__(default_model or settings.gemini_model, strict_attachments=strict_attachments)
        self._model_factory = model_factory or _default_model_factory

    async def _complete(self, messages: list[ChatMessage], model: str, credential: str) -> ChatResponse:
        gen_model = self._model_factory(credential, model)
        last = messages[-1]

        if last.image_url:
            result = await gen_model.generate_content_async(
                [{"text": last.content}, inline_image_part(last.image_url)]
            )
            return ChatResponse(content=result.text)

        chat = gen_model.start_chat(history=to_gemini_history(messages))
        result = await chat.send_message_async(last.content)
        return ChatResponse(content=result.text)
