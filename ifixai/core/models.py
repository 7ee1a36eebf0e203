"""Internal chat models shared by the agents, the store and the API."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict


class AgentType(str, Enum):
    GEMINI = "gemini"
    CLAUDE = "claude"
    QWEN = "qwen"
    GPT = "gpt"

    @classmethod
    def parse(cls, raw: object) -> AgentType | None:
        """Return the member for *raw* (enum or string), or None when unknown."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw or "").strip().lower())
        except ValueError:
            return None


AGENT_TYPE_VALUES = tuple(item.value for item in AgentType)

Role = Literal["user", "assistant", "system"]


class ChatMessage(BaseModel):
    """One conversation turn as handed to a provider."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    image_url: str | None = None


class ChatResponse(BaseModel):
    """Provider reply: ``content`` is always a string, ``error`` is set on failure."""

    content: str = ""
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class Conversation(BaseModel):
    id: str
    title: str
    agent_type: str
    model: str | None = None
    created_at: int
    updated_at: int


class StoredMessage(BaseModel):
    id: str
    conversation_id: str
    role: Role
    content: str
    image_url: str | None = None
    created_at: int

    def to_chat_message(self) -> ChatMessage:
        return ChatMessage(role=self.role, content=self.content, image_url=self.image_url or None)


class ApiKeyInfo(BaseModel):
    """Credential row as exposed over the API; the secret is never included."""

    id: str
    agent_type: str
    key_name: str
    is_active: int
    created_at: int


class AgentModel(BaseModel):
    id: str
    agent_type: str
    model_value: str
    model_label: str
    is_default: int
    is_active: int
    display_order: int
    created_at: int
