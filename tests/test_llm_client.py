import asyncio

import pytest

from prospect_discovery.analysis import llm_client
from prospect_discovery.analysis.extraction import llm_json
from prospect_discovery.analysis.llm_client import (
    LLMUnavailableError,
    get_active_provider,
    llm_complete,
)


def test_no_provider_raises(config):
    with pytest.raises(LLMUnavailableError):
        asyncio.run(llm_complete("hi", config))


def test_billing_error_sticks_to_openai(monkeypatch, llm_config):
    llm_config.openai_api_key = "sk-test"
    calls = []

    async def anthropic_billing(prompt, config, max_tokens, json_mode):
        calls.append("anthropic")
        raise llm_client._AnthropicBillingError("credit balance too low")

    async def openai_ok(prompt, config, max_tokens, json_mode):
        calls.append("openai")
        llm_client._set_active("openai", config.openai_model)
        return '{"ok": true}'

    monkeypatch.setattr(llm_client, "_call_anthropic", anthropic_billing)
    monkeypatch.setattr(llm_client, "_call_openai", openai_ok)

    assert asyncio.run(llm_complete("one", llm_config)) == '{"ok": true}'
    assert asyncio.run(llm_complete("two", llm_config)) == '{"ok": true}'
    assert calls == ["anthropic", "openai", "openai"]
    assert get_active_provider() == "openai"


def test_other_anthropic_errors_fall_through_per_call(monkeypatch, llm_config):
    llm_config.openai_api_key = "sk-test"
    calls = []

    async def anthropic_down(prompt, config, max_tokens, json_mode):
        calls.append("anthropic")
        raise RuntimeError("overloaded")

    async def openai_ok(prompt, config, max_tokens, json_mode):
        calls.append("openai")
        return "{}"

    monkeypatch.setattr(llm_client, "_call_anthropic", anthropic_down)
    monkeypatch.setattr(llm_client, "_call_openai", openai_ok)

    asyncio.run(llm_complete("one", llm_config))
    asyncio.run(llm_complete("two", llm_config))
    assert calls == ["anthropic", "openai", "anthropic", "openai"]


def test_anthropic_error_without_openai_is_unavailable(monkeypatch, llm_config):
    async def anthropic_down(prompt, config, max_tokens, json_mode):
        raise RuntimeError("overloaded")

    monkeypatch.setattr(llm_client, "_call_anthropic", anthropic_down)

    with pytest.raises(LLMUnavailableError):
        asyncio.run(llm_complete("hi", llm_config))


def test_llm_json_swallows_provider_failure(monkeypatch, llm_config):
    async def anthropic_down(prompt, config, max_tokens, json_mode):
        raise RuntimeError("overloaded")

    monkeypatch.setattr(llm_client, "_call_anthropic", anthropic_down)

    assert asyncio.run(llm_json("hi", llm_config)) is None


def test_llm_json_parses_fenced_reply(monkeypatch, llm_config):
    seen = {}

    async def anthropic_fenced(prompt, config, max_tokens, json_mode):
        seen["json_mode"] = json_mode
        return 'Sure:\n```json\n{"industries": ["Retail"]}\n```'

    monkeypatch.setattr(llm_client, "_call_anthropic", anthropic_fenced)

    assert asyncio.run(llm_json("hi", llm_config)) == {"industries": ["Retail"]}
    assert seen["json_mode"] is True
