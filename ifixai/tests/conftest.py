"""
Shared fixtures: a throwaway SQLite store and recording fakes for the three
vendor SDKs. The fakes capture every request so tests can assert on the
exact outbound payload without any network access.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import pytest

from ifixai import storage
from ifixai.storage.sqlite_store import SqliteChatStore


@pytest.fixture
def store(tmp_path) -> SqliteChatStore:
    chat_store = SqliteChatStore(db_path=str(tmp_path / "chat.db"))
    storage.set_store(chat_store)
    yield chat_store
    storage.set_store(None)


class FakeGeminiModel:
    def __init__(self, api_key: str, model_name: str, reply: str) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self.reply = reply
        self.history: list[dict[str, Any]] | None = None
        self.sent: list[Any] = []
        self.generated: list[Any] = []

    def start_chat(self, history: list[dict[str, Any]]) -> "FakeGeminiModel":
        self.history = history
        return self

    async def send_message_async(self, content: Any) -> SimpleNamespace:
        self.sent.append(content)
        return SimpleNamespace(text=self.reply)

    async def generate_content_async(self, contents: Any) -> SimpleNamespace:
        self.generated.append(contents)
        return SimpleNamespace(text=self.reply)


class FakeGeminiFactory:
    def __init__(self, reply: str = "gemini reply", error: Exception | None = None) -> None:
        self.reply = reply
        self.error = error
        self.models: list[FakeGeminiModel] = []

    def __call__(self, api_key: str, model_name: str) -> FakeGeminiModel:
        if self.error is not None:
            raise self.error
        model = FakeGeminiModel(api_key, model_name, self.reply)
        self.models.append(model)
        return model


class _RecordingCreate:
    def __init__(self, response: Any, error: Exception | None) -> None:
        self.response = response
        self.error = error
        self.calls: list[dict[str, Any]] = []

    async def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


class FakeAnthropicFactory:
    def __init__(self, blocks: list[Any] | None = None, error: Exception | None = None) -> None:
        if blocks is None:
            blocks = [SimpleNamespace(type="text", text="claude reply")]
        self.messages = _RecordingCreate(SimpleNamespace(content=blocks), error)
        self.api_keys: list[str] = []

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.messages.calls

    def __call__(self, api_key: str) -> SimpleNamespace:
        self.api_keys.append(api_key)
        return SimpleNamespace(messages=self.messages)


def openai_completion(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


class FakeOpenAIFactory:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.completions = _RecordingCreate(response if response is not None else openai_completion("gpt reply"), error)
        self.api_keys: list[str] = []

    @property
    def calls(self) -> list[dict[str, Any]]:
        return self.completions.calls

    def __call__(self, api_key: str) -> SimpleNamespace:
        self.api_keys.append(api_key)
        return SimpleNamespace(chat=SimpleNamespace(completions=self.completions))


@pytest.fixture
def gemini_factory() -> FakeGeminiFactory:
    return FakeGeminiFactory()


@pytest.fixture
def anthropic_factory() -> FakeAnthropicFactory:
    return FakeAnthropicFactory()


@pytest.fixture
def openai_factory() -> FakeOpenAIFactory:
    return FakeOpenAIFactory()


@pytest.fixture
def fake_factories():
    """Constructors for fakes with custom replies or errors."""
    return SimpleNamespace(
        gemini=FakeGeminiFactory,
        anthropic=FakeAnthropicFactory,
        openai=FakeOpenAIFactory,
        completion=openai_completion,
    )


@pytest.fixture
def qwen_calls(monkeypatch):
    """Patch the Qwen HTTP call; returns the list of captured requests and a setter for the reply."""
    from ifixai.agents import qwen

    state: dict[str, Any] = {
        "calls": [],
        "reply": (200, {"choices": [{"message": {"role": "assistant", "content": "qwen reply"}}]}),
    }

    async def fake_post_json(url, payload, headers):
        state["calls"].append({"url": url, "payload": payload, "headers": dict(headers)})
        reply = state["reply"]
        if isinstance(reply, Exception):
            raise reply
        return reply

    monkeypatch.setattr(qwen, "post_json", fake_post_json)
    return state
