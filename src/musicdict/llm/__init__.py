from __future__ import annotations

from .client import LLMClient
from .models import (
    DEFAULT_ALIAS,
    MODEL_REGISTRY,
    ModelConfig,
    all_models,
    get_model,
)
from .parsing import parse_json_object, parse_json_response, parse_ordinal

__all__ = [
    "ModelConfig",
    "MODEL_REGISTRY",
    "DEFAULT_ALIAS",
    "get_model",
    "all_models",
    "LLMClient",
    "parse_json_object",
    "parse_json_response",
    "parse_ordinal",
]
