# -----------------------------------------------------------------------------
# This module provides a small, synchronous LLM client that:
#   - reads provider credentials from the application settings
#   - uses the model registry to resolve logical aliases → concrete model IDs
#   - exposes `complete()` (text), `complete_many()` (windowed batch) and
#     `embed()` (vectors), satisfying the completion/embedding ports
#
# The implementation uses only the Python standard library (`urllib.request`).
# Unit tests are expected to *mock* the internal `_post()` method so that no
# real HTTP calls are made during CI.
#
# Provider support
# ----------------
# 1. Cloudflare Workers AI (provider="cloudflare"):
#       POST {base}/accounts/{account_id}/ai/run/{model}
#    Text models answer with {"success": true, "result": {"response": "..."}},
#    embedding models with {"result": {"data": [[...]], "shape": [1, 768]}}.
#
# 2. OpenAI-compatible Chat Completions (provider="openai"):
#       POST {base}/chat/completions
# -----------------------------------------------------------------------------
from __future__ import annotations

import http.client
import json
import os
import time
import urllib.error
import urllib.request
from collections.abc import Mapping, MutableMapping, Sequence
from dataclasses import dataclass
from typing import Any

from musicdict.core.batching import run_windowed
from musicdict.core.errors import AIServiceError
from musicdict.core.ports import Completion
from musicdict.core.result import Result
from musicdict.core.settings import get_logger, load_settings

from .models import DEFAULT_ALIAS, OPENAI_BASE_URL, ModelConfig, get_model

logger = get_logger(__name__)


@dataclass(slots=True)
class LLMClient:
    """Multi-provider completion client with a simple `complete()` API.

    Parameters
    ----------
    cloudflare_account_id, cloudflare_api_token:
        Workers AI credentials, required for ``provider="cloudflare"`` models.
    openai_api_key:
        Key for OpenAI-compatible models.
    openai_base_url:
        Base URL for OpenAI-compatible endpoints; registry entries may carry
        their own.
    default_model_alias:
        Alias used when callers do not pass ``model``.
    timeout_seconds:
        Network timeout for each HTTP request.
    """

    cloudflare_account_id: str = ""
    cloudflare_api_token: str = ""
    openai_api_key: str = ""
    openai_base_url: str = OPENAI_BASE_URL
    default_model_alias: str = DEFAULT_ALIAS
    timeout_seconds: float = 30.0

    # --------------------------------------------------------------------- #
    # Constructors
    # --------------------------------------------------------------------- #
    @classmethod
    def from_env(cls, default_model_alias: str = DEFAULT_ALIAS) -> LLMClient:
        """Construct a client from settings (env vars and `.env` files).

        Reads ``CLOUDFLARE_ACCOUNT_ID``, ``CLOUDFLARE_API_TOKEN``,
        ``OPENAI_API_KEY``, ``OPENAI_BASE_URL`` and ``LLM_TIMEOUT_SECONDS``.
        Missing credentials only fail once a model of that provider is used.
        """
        cfg = load_settings()
        return cls(
            cloudflare_account_id=cfg.cloudflare_account_id or "",
            cloudflare_api_token=cfg.cloudflare_api_token or "",
            openai_api_key=cfg.openai_api_key or "",
            openai_base_url=os.getenv("OPENAI_BASE_URL", OPENAI_BASE_URL),
            default_model_alias=default_model_alias,
            timeout_seconds=cfg.llm_timeout_seconds,
        )

    # --------------------------------------------------------------------- #
    # Public API
    # --------------------------------------------------------------------- #
    def complete(
        self,
        prompt: str,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        top_p: float | None = None,
        stream: bool = False,
    ) -> Completion:
        """Return a single text completion for ``prompt``.

        Parameters
        ----------
        prompt:
            Full prompt text; the client sends it as one user turn.
        model:
            Logical alias or concrete provider model id.
        max_tokens, temperature, top_p:
            Optional overrides of the model's registry defaults.
        stream:
            Streaming is not supported by this client; passing ``True``
            raises :class:`ValueError`.

        Raises
        ------
        AIServiceError
            If credentials are missing, the HTTP call fails, or the response
            envelope carries no text.
        """
        if stream:
            raise ValueError("LLMClient does not support streaming completions")

        config = get_model(model or self.default_model_alias)
        effective_max_tokens = int(max_tokens if max_tokens is not None else config.max_tokens)
        effective_temperature = float(
            temperature if temperature is not None else config.temperature
        )
        effective_top_p = float(top_p if top_p is not None else config.top_p)

        started = time.perf_counter()
        if config.provider == "openai":
            response = self._complete_openai_compatible(
                config=config,
                prompt=prompt,
                max_tokens=effective_max_tokens,
                temperature=effective_temperature,
                top_p=effective_top_p,
            )
            text = self._extract_content_openai(response, config)
        else:
            response = self._run_cloudflare(
                config=config,
                payload={
                    "prompt": prompt,
                    "max_tokens": effective_max_tokens,
                    "temperature": effective_temperature,
                    "top_p": effective_top_p,
                    "stream": False,
                },
            )
            text = self._extract_content_cloudflare(response, config)
        latency_ms = int((time.perf_counter() - started) * 1000)

        logger.debug("Completion from %s in %d ms", config.name, latency_ms)
        return Completion(response=text, latency_ms=latency_ms, model=config.name)

    def complete_many(
        self,
        prompts: Sequence[str],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
        window_size: int | None = None,
    ) -> list[Result[Completion, str]]:
        """Complete several prompts in windows, isolating per-prompt failures.

        Returns one :class:`Result` per prompt, in input order; a failed call
        surfaces as ``Err(message)``.
        """
        size = window_size or load_settings().batch_window_size
        return run_windowed(
            prompts,
            lambda prompt: self.complete(
                prompt, model=model, max_tokens=max_tokens, temperature=temperature
            ),
            window_size=size,
        )

    def embed(self, text: str, *, model: str = "embedding") -> list[float]:
        """Return the embedding vector of ``text`` (Workers AI BGE by default)."""
        config = get_model(model)
        response = self._run_cloudflare(config=config, payload={"text": [text]})
        result = response.get("result")
        data = result.get("data") if isinstance(result, Mapping) else None
        if not isinstance(data, list) or not data or not isinstance(data[0], list):
            raise AIServiceError(
                "Embedding response has no vectors", provider=config.provider, model=config.name
            )
        return [float(x) for x in data[0]]

    # --------------------------------------------------------------------- #
    # Provider-specific helpers
    # --------------------------------------------------------------------- #
    def _run_cloudflare(
        self,
        *,
        config: ModelConfig,
        payload: Mapping[str, Any],
    ) -> dict[str, Any]:
        """Call the Workers AI ``ai/run`` endpoint for ``config.name``."""
        if not self.cloudflare_account_id or not self.cloudflare_api_token:
            raise AIServiceError(
                "Missing CLOUDFLARE_ACCOUNT_ID / CLOUDFLARE_API_TOKEN",
                provider="cloudflare",
                model=config.name,
            )

        base_url = config.base_url.rstrip("/")
        url = f"{base_url}/accounts/{self.cloudflare_account_id}/ai/run/{config.name}"
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.cloudflare_api_token}",
        }
        return self._post(url=url, headers=headers, payload=payload, config=config)

    def _complete_openai_compatible(
        self,
        *,
        config: ModelConfig,
        prompt: str,
        max_tokens: int,
        temperature: float,
        top_p: float,
    ) -> dict[str, Any]:
        """Call an OpenAI-compatible Chat Completions endpoint."""
        if not self.openai_api_key:
            raise AIServiceError("Missing OPENAI_API_KEY", provider="openai", model=config.name)

        base_url = (config.base_url or self.openai_base_url).rstrip("/")
        url = base_url + "/chat/completions"

        payload: MutableMapping[str, Any] = {
            "model": config.name,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": top_p,
        }
        headers: dict[str, str] = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.openai_api_key}",
        }
        return self._post(url=url, headers=headers, payload=payload, config=config)

    # --------------------------------------------------------------------- #
    # Internal helpers (test seams)
    # --------------------------------------------------------------------- #
    def _post(
        self,
        *,
        url: str,
        headers: Mapping[str, str],
        payload: Mapping[str, Any],
        config: ModelConfig,
    ) -> dict[str, Any]:
        """Perform an HTTP POST request and decode the JSON response.

        This is the main seam for unit tests: they monkeypatch
        ``LLMClient._post`` to return a stubbed body.

        Raises
        ------
        AIServiceError
            If the request fails or the body is not JSON.
        """
        body = json.dumps(payload).encode("utf-8")
        request = urllib.request.Request(
            url=url,
            data=body,
            headers=dict(headers),
            method="POST",
        )

        try:
            with urllib.request.urlopen(request, timeout=self.timeout_seconds) as resp:
                raw = resp.read()
        except urllib.error.HTTPError as exc:
            detail = exc.read().decode("utf-8", errors="ignore")
            raise AIServiceError(
                f"HTTP error {exc.code}: {exc.reason}; body={detail!r}",
                provider=config.provider,
                model=config.name,
            ) from exc
        except (OSError, http.client.HTTPException) as exc:
            raise AIServiceError(
                f"network error: {exc}", provider=config.provider, model=config.name
            ) from exc

        try:
            decoded: dict[str, Any] = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise AIServiceError(
                "Failed to decode response as JSON", provider=config.provider, model=config.name
            ) from exc

        return decoded

    # --------------------------------------------------------------------- #
    # Response extraction helpers
    # --------------------------------------------------------------------- #
    @staticmethod
    def _extract_content_cloudflare(response: Mapping[str, Any], config: ModelConfig) -> str:
        """Extract ``result.response`` from a Workers AI envelope."""
        if response.get("success") is False:
            errors = response.get("errors") or []
            raise AIServiceError(
                f"Workers AI reported failure: {errors!r}",
                provider=config.provider,
                model=config.name,
            )

        result = response.get("result")
        if not isinstance(result, Mapping):
            raise AIServiceError(
                "Workers AI response has no result", provider=config.provider, model=config.name
            )

        text = result.get("response")
        if not isinstance(text, str) or not text:
            raise AIServiceError(
                "Workers AI result.response is empty", provider=config.provider, model=config.name
            )
        return text

    @staticmethod
    def _extract_content_openai(response: Mapping[str, Any], config: ModelConfig) -> str:
        """Extract ``choices[0].message.content`` from a Chat Completions payload."""
        choices = response.get("choices")
        if not isinstance(choices, list) or not choices:
            raise AIServiceError(
                "LLM response has no choices", provider=config.provider, model=config.name
            )

        message = choices[0].get("message") if isinstance(choices[0], Mapping) else None
        if not isinstance(message, Mapping):
            raise AIServiceError(
                "LLM response choice[0].message is missing",
                provider=config.provider,
                model=config.name,
            )

        content = message.get("content")
        if not isinstance(content, str) or not content:
            raise AIServiceError(
                "LLM response choice[0].message.content is empty",
                provider=config.provider,
                model=config.name,
            )
        return content


__all__ = ["LLMClient"]
