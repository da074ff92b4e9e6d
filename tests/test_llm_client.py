from __future__ import annotations

import http.client
import urllib.request
from collections.abc import Mapping
from typing import Any

import pytest

from musicdict.core.errors import AIServiceError
from musicdict.llm.client import LLMClient
from musicdict.llm.models import (
    BGE_BASE,
    DEFAULT_ALIAS,
    LLAMA_3_2_3B,
    LLAMA_3_3_70B,
    ModelConfig,
    get_model,
)


def _cloudflare_client() -> LLMClient:
    return LLMClient(cloudflare_account_id="acct-123", cloudflare_api_token="cf-token")


def test_from_env_reads_provider_credentials(monkeypatch: Any) -> None:
    """LLMClient.from_env() should honour the Workers AI and OpenAI settings."""
    monkeypatch.setenv("CLOUDFLARE_ACCOUNT_ID", "acct-env")
    monkeypatch.setenv("CLOUDFLARE_API_TOKEN", "token-env")
    monkeypatch.setenv("OPENAI_API_KEY", "test-openai-key")
    monkeypatch.setenv("OPENAI_BASE_URL", "https://example.com/v1")

    client = LLMClient.from_env()

    assert client.cloudflare_account_id == "acct-env"
    assert client.cloudflare_api_token == "token-env"
    assert client.openai_api_key == "test-openai-key"
    assert client.openai_base_url == "https://example.com/v1"
    assert client.default_model_alias == DEFAULT_ALIAS


def test_registry_aliases_and_raw_model_ids() -> None:
    assert get_model("quality").name == LLAMA_3_2_3B
    assert get_model("enhancement").name == LLAMA_3_3_70B
    assert get_model("@cf/mistral/mistral-7b-instruct-v0.1").provider == "cloudflare"
    assert get_model("gpt-4.1-mini").provider == "openai"


def test_complete_cloudflare_posts_prompt_and_reads_result(monkeypatch: Any) -> None:
    """Workers AI calls go to ai/run/{model} and return result.response."""
    captured: dict[str, Any] = {}

    def fake_post(
        self: LLMClient,
        *,
        url: str,
        headers: Mapping[str, str],
        payload: Mapping[str, Any],
        config: ModelConfig,
    ) -> dict[str, Any]:
        captured["url"] = url
        captured["headers"] = dict(headers)
        captured["payload"] = dict(payload)
        return {"success": True, "result": {"response": '{"score": 80}'}}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    completion = _cloudflare_client().complete(
        "Rate this entry", model="quality", max_tokens=500, temperature=0.1
    )

    assert completion.response == '{"score": 80}'
    assert completion.model == LLAMA_3_2_3B
    assert captured["url"] == (
        "https://api.cloudflare.com/client/v4/accounts/acct-123/ai/run/" + LLAMA_3_2_3B
    )
    assert captured["headers"]["Authorization"] == "Bearer cf-token"
    assert captured["payload"]["prompt"] == "Rate this entry"
    assert captured["payload"]["max_tokens"] == 500
    assert captured["payload"]["temperature"] == pytest.approx(0.1)
    assert captured["payload"]["stream"] is False


def test_complete_uses_registry_defaults_when_not_overridden(monkeypatch: Any) -> None:
    captured: dict[str, Any] = {}

    def fake_post(self: LLMClient, **kwargs: Any) -> dict[str, Any]:
        captured.update(kwargs["payload"])
        return {"result": {"response": "ok"}}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    _cloudflare_client().complete("Improve this", model="enhancement")

    assert captured["max_tokens"] == 1500
    assert captured["temperature"] == pytest.approx(0.7)


def test_cloudflare_failure_envelope_raises(monkeypatch: Any) -> None:
    def fake_post(self: LLMClient, **kwargs: Any) -> dict[str, Any]:
        return {"success": False, "errors": [{"code": 3036, "message": "quota"}]}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    with pytest.raises(AIServiceError) as exc_info:
        _cloudflare_client().complete("x", model="definition")
    assert exc_info.value.provider == "cloudflare"


def test_missing_cloudflare_credentials_raise() -> None:
    with pytest.raises(AIServiceError):
        LLMClient().complete("x", model="definition")


def test_openai_compatible_provider(monkeypatch: Any) -> None:
    captured: dict[str, Any] = {}

    def fake_post(self: LLMClient, **kwargs: Any) -> dict[str, Any]:
        captured.update(kwargs)
        return {"choices": [{"message": {"content": "Hello"}}]}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    client = LLMClient(openai_api_key="sk-test")
    completion = client.complete("Say hello", model="openai")

    assert completion.response == "Hello"
    assert captured["url"].endswith("/chat/completions")
    assert captured["payload"]["messages"] == [{"role": "user", "content": "Say hello"}]


def test_stream_is_not_supported() -> None:
    with pytest.raises(ValueError):
        _cloudflare_client().complete("x", model="definition", stream=True)


def test_embed_returns_first_vector(monkeypatch: Any) -> None:
    captured: dict[str, Any] = {}

    def fake_post(self: LLMClient, **kwargs: Any) -> dict[str, Any]:
        captured.update(kwargs)
        return {"result": {"shape": [1, 3], "data": [[0.1, 0.2, 0.3]]}}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    vector = _cloudflare_client().embed("allegro")

    assert vector == [0.1, 0.2, 0.3]
    assert captured["url"].endswith(BGE_BASE)
    assert captured["payload"] == {"text": ["allegro"]}


def test_complete_many_isolates_failures(monkeypatch: Any) -> None:
    def fake_post(self: LLMClient, **kwargs: Any) -> dict[str, Any]:
        if kwargs["payload"]["prompt"] == "bad":
            raise AIServiceError("rate limited", provider="cloudflare")
        return {"result": {"response": kwargs["payload"]["prompt"].upper()}}

    monkeypatch.setattr(LLMClient, "_post", fake_post)

    results = _cloudflare_client().complete_many(
        ["a", "bad", "c"], model="definition", window_size=2
    )

    assert [r.is_ok() for r in results] == [True, False, True]
    assert results[0].unwrap().response == "A"
    assert "rate limited" in results[1].unwrap_err()


def test_dropped_connection_becomes_ai_service_error(monkeypatch: Any) -> None:
    def fake_urlopen(*args: Any, **kwargs: Any) -> Any:
        raise http.client.RemoteDisconnected("Remote end closed connection without response")

    monkeypatch.setattr(urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(AIServiceError) as exc_info:
        _cloudflare_client().complete("Define forte", model="definition")

    assert "network error" in str(exc_info.value)
