"""Centralized application configuration using Pydantic Settings (v2).

This module exposes a single, cached `settings` instance that reads from:
- Real environment variables (highest precedence)
- `.env` files at the repository root: .env, .env.local, .env.dev/.env.test/.env.prod

Besides the runtime environment flag and log level, the settings carry the
knobs of the generation pipeline (acceptance threshold, attempt budget, batch
window) and the credentials of the completion providers.
"""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["dev", "test", "prod"]
LogLevelName = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class Settings(BaseSettings):
    """Typed application configuration loaded from env and `.env` files.

    Attributes
    ----------
    environment : EnvName
        Runtime environment flag; maps from `MUSICDICT_ENV`.
    log_level : LogLevelName
        Global log level string; maps from `LOG_LEVEL`.
    quality_threshold : int
        Minimum validator score (0-100) a generated entry must reach to be
        accepted; maps from `QUALITY_THRESHOLD`.
    max_generation_attempts : int
        Attempt budget of the generate-validate loop; maps from
        `MAX_GENERATION_ATTEMPTS`.
    batch_window_size : int
        Number of batch items processed concurrently; maps from
        `BATCH_WINDOW_SIZE`.
    lookup_result_limit : int
        Maximum number of encyclopedia candidates requested per lookup.
    lookup_timeout_seconds, llm_timeout_seconds : float
        Network timeouts for the lookup service and the completion providers.
    default_entry_language : str
        Language code used for entries and reference lookups when the caller
        does not declare one.
    cloudflare_account_id, cloudflare_api_token : Optional[str]
        Credentials for Cloudflare Workers AI models.
    openai_api_key : Optional[str]
        Credentials for OpenAI-compatible models.
    """

    environment: EnvName = Field(default="dev", alias="MUSICDICT_ENV")
    log_level: LogLevelName = Field(default="INFO", alias="LOG_LEVEL")

    quality_threshold: Annotated[int, Field(ge=0, le=100)] = Field(
        default=70, alias="QUALITY_THRESHOLD"
    )
    max_generation_attempts: Annotated[int, Field(ge=1)] = Field(
        default=3, alias="MAX_GENERATION_ATTEMPTS"
    )
    batch_window_size: Annotated[int, Field(ge=1)] = Field(default=5, alias="BATCH_WINDOW_SIZE")
    lookup_result_limit: Annotated[int, Field(ge=1)] = Field(
        default=5, alias="LOOKUP_RESULT_LIMIT"
    )
    lookup_timeout_seconds: float = Field(default=5.0, alias="LOOKUP_TIMEOUT_SECONDS")
    llm_timeout_seconds: float = Field(default=30.0, alias="LLM_TIMEOUT_SECONDS")
    default_entry_language: str = Field(default="en", alias="DEFAULT_ENTRY_LANGUAGE")

    cloudflare_account_id: str | None = Field(default=None, alias="CLOUDFLARE_ACCOUNT_ID")
    cloudflare_api_token: str | None = Field(default=None, alias="CLOUDFLARE_API_TOKEN")
    openai_api_key: str | None = Field(default=None, alias="OPENAI_API_KEY")

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local", ".env.dev", ".env.test", ".env.prod"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def is_dev(self) -> bool:
        """Return True if running in the development environment."""
        return self.environment == "dev"

    @property
    def is_test(self) -> bool:
        """Return True if running in the test environment."""
        return self.environment == "test"

    @property
    def is_prod(self) -> bool:
        """Return True if running in the production environment."""
        return self.environment == "prod"

    def log_level_numeric(self) -> int:
        """Return the numeric logging level corresponding to `self.log_level`."""
        return getattr(logging, self.log_level, logging.INFO)


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Create and cache a `Settings` instance.

    Tests force a rebuild via `load_settings.cache_clear()` after mutating
    `os.environ`.
    """
    os.environ.setdefault("MUSICDICT_ENV", "dev")
    return Settings()


settings: Settings = load_settings()


def get_logger(name: str = "musicdict") -> logging.Logger:
    """Return a process-global logger configured to the current `LOG_LEVEL`."""
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
        )
        logger.addHandler(handler)
    logger.setLevel(load_settings().log_level_numeric())
    logger.propagate = False
    return logger


__all__ = ["EnvName", "LogLevelName", "Settings", "get_logger", "load_settings", "settings"]
