# -----------------------------------------------------------------------------
# This module defines the in-process model registry used by the LLM client.
# Pipeline steps refer to logical aliases ("definition", "quality",
# "enhancement", ...) and the registry pins each alias to a concrete provider
# model together with its default sampling parameters.
#
# Two provider families are supported:
#   - "cloudflare": Workers AI text generation / embedding models
#   - "openai":     any OpenAI-compatible Chat Completions endpoint
# -----------------------------------------------------------------------------
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

CLOUDFLARE_BASE_URL = "https://api.cloudflare.com/client/v4"
OPENAI_BASE_URL = "https://api.openai.com/v1"


@dataclass(frozen=True, slots=True)
class ModelConfig:
    """Configuration for a single model.

    Parameters
    ----------
    name:
        Provider-specific model identifier, e.g.
        ``"@cf/meta/llama-3.1-8b-instruct"`` or ``"gpt-4o-mini"``.
    provider:
        Logical provider name, ``"cloudflare"`` or ``"openai"``. Drives
        authentication and endpoint selection inside the client.
    base_url:
        Base URL for the API endpoint.
    max_tokens:
        Default generation limit; callers may override it per request.
    temperature:
        Default sampling temperature.
    top_p:
        Default nucleus sampling mass.
    """

    name: str
    provider: str = "cloudflare"
    base_url: str = CLOUDFLARE_BASE_URL
    max_tokens: int = 1024
    temperature: float = 0.3
    top_p: float = 0.9


# --------------------------------------------------------------------------- #
# Registry
# --------------------------------------------------------------------------- #

LLAMA_3_1_8B = "@cf/meta/llama-3.1-8b-instruct"
LLAMA_3_2_3B = "@cf/meta/llama-3.2-3b-instruct"
LLAMA_3_3_70B = "@cf/meta/llama-3.3-70b-instruct-fp8-fast"
BGE_BASE = "@cf/baai/bge-base-en-v1.5"

MODEL_REGISTRY: dict[str, ModelConfig] = {
    # Definition drafting: balanced 8B model, JSON output.
    "definition": ModelConfig(name=LLAMA_3_1_8B, max_tokens=800, temperature=0.3),
    # Search-phrase extraction for encyclopedia / video lookups.
    "reference": ModelConfig(name=LLAMA_3_2_3B, max_tokens=200, temperature=0.1),
    # Ordinal pick among several encyclopedia candidates.
    "selection": ModelConfig(name=LLAMA_3_2_3B, max_tokens=10, temperature=0.0, top_p=1.0),
    # Rubric scoring of a full entry.
    "quality": ModelConfig(name=LLAMA_3_2_3B, max_tokens=500, temperature=0.1),
    # Enhancement of stored entries; large model, more creative.
    "enhancement": ModelConfig(name=LLAMA_3_3_70B, max_tokens=1500, temperature=0.7),
    # Cross-references for the related-terms focus area.
    "related_terms": ModelConfig(name=LLAMA_3_2_3B, max_tokens=400, temperature=0.3),
    "embedding": ModelConfig(name=BGE_BASE, max_tokens=0, temperature=0.0),
    # OpenAI-compatible fallback for environments without Workers AI.
    "openai": ModelConfig(
        name="gpt-4o-mini",
        provider="openai",
        base_url=OPENAI_BASE_URL,
        max_tokens=1024,
        temperature=0.3,
        top_p=1.0,
    ),
}

#: Default logical alias used when callers do not explicitly choose a model.
DEFAULT_ALIAS: str = "definition"


def get_model(alias_or_name: str) -> ModelConfig:
    """Return a :class:`ModelConfig` for the given alias or model name.

    Resolution rules
    ----------------
    1. Registry aliases win.
    2. Names starting with ``@cf/`` are treated as Workers AI model ids.
    3. Anything else is treated as an OpenAI-compatible model id.
    """
    if alias_or_name in MODEL_REGISTRY:
        return MODEL_REGISTRY[alias_or_name]
    if alias_or_name.startswith("@cf/"):
        return ModelConfig(name=alias_or_name)
    return ModelConfig(name=alias_or_name, provider="openai", base_url=OPENAI_BASE_URL)


def all_models() -> Mapping[str, ModelConfig]:
    """Return a shallow copy of the registry for diagnostics and tests."""
    return dict(MODEL_REGISTRY)


__all__ = [
    "BGE_BASE",
    "DEFAULT_ALIAS",
    "LLAMA_3_1_8B",
    "LLAMA_3_2_3B",
    "LLAMA_3_3_70B",
    "MODEL_REGISTRY",
    "ModelConfig",
    "all_models",
    "get_model",
]
