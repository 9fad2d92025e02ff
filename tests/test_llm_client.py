import pytest

from tripquote.services.llm_client import LLMClient


def _client(openai_reply=None, anthropic_reply=None):
    client = LLMClient(openai_api_key="", anthropic_api_key="")
    calls = []

    def provider(name, reply):
        async def ask(system, user, max_tokens, temperature, json_mode):
            calls.append((name, json_mode))
            if isinstance(reply, Exception):
                raise reply
            return reply
        return ask

    if openai_reply is not None:
        client._openai = object()
        client._ask_openai = provider("openai", openai_reply)
    if anthropic_reply is not None:
        client._anthropic = object()
        client._ask_anthropic = provider("anthropic", anthropic_reply)
    return client, calls


@pytest.mark.asyncio
async def test_unconfigured_client_raises():
    client, _ = _client()
    assert not client.configured
    with pytest.raises(RuntimeError, match="No LLM provider configured"):
        await client.complete("system", "user")


@pytest.mark.asyncio
async def test_openai_answers_first():
    client, calls = _client(openai_reply="from openai", anthropic_reply="from anthropic")
    assert await client.complete("system", "user", json_mode=True) == "from openai"
    assert calls == [("openai", True)]


@pytest.mark.asyncio
async def test_falls_back_to_anthropic():
    client, calls = _client(openai_reply=TimeoutError("slow"), anthropic_reply="from anthropic")
    assert await client.complete("system", "user") == "from anthropic"
    assert [name for name, _ in calls] == ["openai", "anthropic"]


@pytest.mark.asyncio
async def test_all_providers_failing_raises_with_both_errors():
    client, _ = _client(openai_reply=ValueError("bad key"), anthropic_reply=ConnectionError("down"))
    with pytest.raises(RuntimeError, match="OpenAI: bad key; Anthropic: down"):
        await client.complete("system", "user")
