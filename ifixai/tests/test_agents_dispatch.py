import pytest

from ifixai.agents.claude import ClaudeProvider
from ifixai.agents.dispatch import build_providers, chat_with_agent
from ifixai.agents.gemini import GeminiProvider
from ifixai.agents.gpt import GPTProvider
from ifixai.agents.qwen import QwenProvider
from ifixai.core.models import AgentType, ChatMessage

HELLO = [ChatMessage(role="user", content="hello")]


@pytest.fixture
def providers(gemini_factory, anthropic_factory, openai_factory, qwen_calls):
    return {
        AgentType.GEMINI: GeminiProvider(model_factory=gemini_factory),
        AgentType.CLAUDE: ClaudeProvider(client_factory=anthropic_factory),
        AgentType.QWEN: QwenProvider(),
        AgentType.GPT: GPTProvider(client_factory=openai_factory),
    }


def _outbound_calls(gemini_factory, anthropic_factory, openai_factory, qwen_calls) -> int:
    return len(gemini_factory.models) + len(anthropic_factory.calls) + len(openai_factory.calls) + len(qwen_calls["calls"])


def test_build_providers_covers_every_agent_type():
    table = build_providers()
    assert set(table) == set(AgentType)
    for agent, provider in table.items():
        assert provider.agent_type is agent
        assert provider.default_model


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("agent", "expected"),
    [
        ("gemini", "Gemini API key not configured"),
        ("claude", "Claude API key not configured"),
        ("qwen", "Qwen API key not configured"),
        ("gpt", "GPT API key not configured"),
    ],
)
async def test_missing_credential_makes_no_outbound_call(
    agent, expected, providers, gemini_factory, anthropic_factory, openai_factory, qwen_calls
):
    response = await chat_with_agent(agent, HELLO, providers=providers)
    assert response.error == expected
    assert response.content == ""
    assert _outbound_calls(gemini_factory, anthropic_factory, openai_factory, qwen_calls) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("agent", ["gemini", "claude", "qwen", "gpt"])
async def test_no_key_in_store_makes_no_outbound_call(
    agent, store, providers, gemini_factory, anthropic_factory, openai_factory, qwen_calls
):
    store.add_api_key(agent_type=agent, key_name="disabled", api_key="key-disabled")
    store.update_api_key(store.list_api_keys(agent)[0].id, is_active=False)

    response = await chat_with_agent(agent, HELLO, credential_lookup=store.get_active_api_key, providers=providers)

    assert response.error == f"{providers[AgentType(agent)].label} API key not configured"
    assert response.content == ""
    assert _outbound_calls(gemini_factory, anthropic_factory, openai_factory, qwen_calls) == 0


@pytest.mark.asyncio
async def test_key_from_store_reaches_provider(store, providers, qwen_calls):
    store.add_api_key(agent_type="qwen", key_name="main", api_key="qwen-stored-5555")

    response = await chat_with_agent("qwen", HELLO, credential_lookup=store.get_active_api_key, providers=providers)

    assert response.content == "qwen reply"
    assert qwen_calls["calls"][0]["headers"]["Authorization"] == "Bearer qwen-stored-5555"


@pytest.mark.asyncio
async def test_unknown_agent_type(providers, gemini_factory, anthropic_factory, openai_factory, qwen_calls):
    response = await chat_with_agent("llama", HELLO, credential="key-1234", providers=providers)
    assert response.error == "Unknown agent type: llama"
    assert _outbound_calls(gemini_factory, anthropic_factory, openai_factory, qwen_calls) == 0


@pytest.mark.asyncio
async def test_empty_messages_is_rejected(providers, openai_factory):
    response = await chat_with_agent("gpt", [], credential="sk-openai-4321", providers=providers)
    assert response.error == "messages must not be empty"
    assert openai_factory.calls == []


@pytest.mark.asyncio
async def test_agent_type_string_is_case_insensitive(providers, openai_factory):
    response = await chat_with_agent(" GPT ", HELLO, credential="sk-openai-4321", providers=providers)
    assert response.content == "gpt reply"


@pytest.mark.asyncio
async def test_credential_lookup_used_when_no_explicit_key(providers, anthropic_factory):
    asked: list[str] = []

    def lookup(agent_value: str) -> str | None:
        asked.append(agent_value)
        return "sk-ant-stored-0001"

    response = await chat_with_agent(AgentType.CLAUDE, HELLO, credential_lookup=lookup, providers=providers)
    assert response.content == "claude reply"
    assert asked == ["claude"]
    assert anthropic_factory.api_keys == ["sk-ant-stored-0001"]


@pytest.mark.asyncio
async def test_explicit_credential_wins_over_lookup(providers, anthropic_factory):
    def lookup(agent_value: str) -> str | None:
        raise AssertionError("lookup must not be consulted")

    await chat_with_agent("claude", HELLO, credential="sk-ant-explicit", credential_lookup=lookup, providers=providers)
    assert anthropic_factory.api_keys == ["sk-ant-explicit"]


@pytest.mark.asyncio
async def test_failing_lookup_reports_missing_key(providers, gemini_factory):
    def lookup(agent_value: str) -> str | None:
        raise RuntimeError("database is locked")

    response = await chat_with_agent("gemini", HELLO, credential_lookup=lookup, providers=providers)
    assert response.error == "Gemini API key not configured"
    assert gemini_factory.models == []


@pytest.mark.asyncio
async def test_model_override_reaches_provider(providers, openai_factory):
    await chat_with_agent("gpt", HELLO, credential="sk-openai-4321", model="gpt-4o-mini", providers=providers)
    assert openai_factory.calls[0]["model"] == "gpt-4o-mini"


@pytest.mark.asyncio
async def test_vendor_failure_never_raises(fake_factories, qwen_calls):
    table = {
        AgentType.GEMINI: GeminiProvider(model_factory=fake_factories.gemini(error=ValueError("bad request"))),
        AgentType.CLAUDE: ClaudeProvider(client_factory=fake_factories.anthropic(error=ConnectionError("reset"))),
        AgentType.QWEN: QwenProvider(),
        AgentType.GPT: GPTProvider(client_factory=fake_factories.openai(error=TimeoutError())),
    }
    qwen_calls["reply"] = RuntimeError("Read timed out")

    results = {agent: await chat_with_agent(agent, HELLO, credential="key-1234", providers=table) for agent in AgentType}

    assert results[AgentType.GEMINI].error == "bad request"
    assert results[AgentType.CLAUDE].error == "reset"
    assert results[AgentType.QWEN].error == "Read timed out"
    assert results[AgentType.GPT].error == "GPT API error"
