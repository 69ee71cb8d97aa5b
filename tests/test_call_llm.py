import asyncio

import pytest

from chatspend import call_llm


def test_unsupported_provider():
    with pytest.raises(ValueError, match="Unsupported provider"):
        call_llm.call_llm("hi", provider="parrot")


def test_provider_defaults_to_environment(monkeypatch):
    monkeypatch.delenv("LLM_PROVIDER", raising=False)
    assert call_llm.get_provider() == "gemini"

    monkeypatch.setenv("LLM_PROVIDER", " OpenAI ")
    assert call_llm.get_provider() == "openai"
    assert call_llm.get_provider("anthropic") == "anthropic"


def test_dispatch_by_provider(monkeypatch):
    calls = []

    def fake(name):
        def _call(prompt, **kwargs):
            calls.append((name, prompt, kwargs["temperature"]))
            return f"{name} reply"

        return _call

    monkeypatch.setattr(call_llm, "_call_gemini", fake("gemini"))
    monkeypatch.setattr(call_llm, "_call_openai", fake("openai"))
    monkeypatch.setattr(call_llm, "_call_anthropic", fake("anthropic"))

    assert call_llm.call_llm("a", provider="gemini") == "gemini reply"
    assert call_llm.call_llm("b", provider="openai", temperature=0.5) == "openai reply"
    assert call_llm.call_llm("c", provider="anthropic") == "anthropic reply"
    assert calls == [("gemini", "a", 0.0), ("openai", "b", 0.5), ("anthropic", "c", 0.0)]


def test_generator_runs_call_llm(monkeypatch):
    seen = {}

    def fake_call_llm(prompt, **kwargs):
        seen.update(kwargs, prompt=prompt)
        return "raw text"

    monkeypatch.setattr(call_llm, "call_llm", fake_call_llm)
    generate = call_llm.get_generator(provider="openai", temperature=0.1)

    assert asyncio.run(generate("prompt")) == "raw text"
    assert seen["prompt"] == "prompt"
    assert seen["provider"] == "openai"
    assert seen["temperature"] == 0.1


@pytest.mark.parametrize(
    "provider, key",
    [("gemini", "GEMINI_API_KEY"), ("openai", "OPENAI_API_KEY"), ("anthropic", "ANTHROPIC_API_KEY")],
)
def test_missing_api_key(monkeypatch, provider, key):
    pytest.importorskip({"gemini": "google.generativeai", "openai": "openai", "anthropic": "anthropic"}[provider])
    monkeypatch.delenv(key, raising=False)

    with pytest.raises(ValueError, match=key):
        call_llm.call_llm("hi", provider=provider)
