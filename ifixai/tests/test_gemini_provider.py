import base64

import pytest

from ifixai.agents.gemini import GeminiProvider, inline_image_part, to_gemini_history
from ifixai.core.models import ChatMessage


def test_history_maps_non_user_roles_to_model_and_excludes_newest_turn():
    messages = [
        ChatMessage(role="system", content="be brief"),
        ChatMessage(role="user", content="hi"),
        ChatMessage(role="assistant", content="hello"),
        ChatMessage(role="user", content="how are you"),
    ]
    history = to_gemini_history(messages)
    assert history == [
        {"role": "model", "parts": [{"text": "be brief"}]},
        {"role": "user", "parts": [{"text": "hi"}]},
        {"role": "model", "parts": [{"text": "hello"}]},
    ]


def test_inline_image_part_strips_data_uri_prefix():
    raw = b"\xff\xd8\xff\xe0fake-jpeg"
    encoded = base64.b64encode(raw).decode("ascii")

    part = inline_image_part(f"data:image/png;base64,{encoded}")
    assert part == {"inline_data": {"mime_type": "image/jpeg", "data": raw}}

    bare = inline_image_part(encoded)
    assert bare["inline_data"]["data"] == raw


@pytest.mark.asyncio
async def test_send_chat_uses_history_and_sends_newest_turn(gemini_factory):
    provider = GeminiProvider(default_model="gemini-test", model_factory=gemini_factory)
    response = await provider.send_chat(
        [
            ChatMessage(role="user", content="hi"),
            ChatMessage(role="assistant", content="hello"),
            ChatMessage(role="user", content="tell me more"),
        ],
        credential="g-key-1234",
    )

    assert response.ok
    assert response.content == "gemini reply"
    model = gemini_factory.models[0]
    assert model.api_key == "g-key-1234"
    assert model.model_name == "gemini-test"
    assert model.history == [
        {"role": "user", "parts": [{"text": "hi"}]},
        {"role": "model", "parts": [{"text": "hello"}]},
    ]
    assert model.sent == ["tell me more"]
    assert model.generated == []


@pytest.mark.asyncio
async def test_send_chat_with_image_uses_single_generate_call(gemini_factory):
    raw = b"image-bytes"
    encoded = base64.b64encode(raw).decode("ascii")
    provider = GeminiProvider(default_model="gemini-test", model_factory=gemini_factory)

    response = await provider.send_chat(
        [
            ChatMessage(role="user", content="earlier turn"),
            ChatMessage(role="user", content="what is this", image_url=f"data:image/jpeg;base64,{encoded}"),
        ],
        model="gemini-vision",
        credential="g-key-1234",
    )

    assert response.content == "gemini reply"
    model = gemini_factory.models[0]
    assert model.model_name == "gemini-vision"
    assert model.history is None
    assert model.generated == [
        [
            {"text": "what is this"},
            {"inline_data": {"mime_type": "image/jpeg", "data": raw}},
        ]
    ]


@pytest.mark.asyncio
async def test_send_chat_reports_undecodable_image_as_error(gemini_factory):
    provider = GeminiProvider(model_factory=gemini_factory)
    response = await provider.send_chat(
        [ChatMessage(role="user", content="look", image_url="https://example.com/cat.png")],
        credential="g-key-1234",
    )
    assert response.error
    assert response.content == ""


@pytest.mark.asyncio
async def test_send_chat_without_credential_never_builds_model(gemini_factory):
    provider = GeminiProvider(model_factory=gemini_factory)
    response = await provider.send_chat([ChatMessage(role="user", content="hi")], credential=None)
    assert response.error == "Gemini API key not configured"
    assert gemini_factory.models == []


@pytest.mark.asyncio
async def test_vendor_exception_becomes_error(fake_factories):
    factory = fake_factories.gemini(error=RuntimeError("quota exceeded"))
    provider = GeminiProvider(model_factory=factory)
    response = await provider.send_chat([ChatMessage(role="user", content="hi")], credential="g-key-1234")
    assert response.error == "quota exceeded"


@pytest.mark.asyncio
async def test_vendor_exception_without_message_uses_fallback(fake_factories):
    factory = fake_factories.gemini(error=RuntimeError())
    provider = GeminiProvider(model_factory=factory)
    response = await provider.send_chat([ChatMessage(role="user", content="hi")], credential="g-key-1234")
    assert response.error == "Gemini API error"
