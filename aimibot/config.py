"""
Settings loaded from environment variables (.env file or system env).
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from aimibot.errors import ConfigError
from aimibot.providers.openai import OPENROUTER_BASE_URL

OPENAI_BASE_URL = "https://api.openai.com/v1"


def _require(key: str) -> str:
    val = os.getenv(key, "").strip()
    if not val:
        raise ConfigError(f"{key} is not set. Copy .env.example to .env and fill in values.")
    return val


def _int(key: str, default: int) -> int:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be an integer, got {raw!r}") from exc


def _float(key: str, default: float) -> float:
    raw = os.getenv(key, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigError(f"{key} must be a number, got {raw!r}") from exc


@dataclass
class BotConfig:
    """Resolved process configuration."""

    llm_api_key: str
    llm_base_url: str
    model: str = "anthropic/claude-3.5-sonnet"
    discord_token: str = ""
    max_tokens: int = 2500
    temperature: float = 0.7
    max_depth: int = 5
    bot_name: str = "AIMI"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, *, require_discord: bool = True, dotenv: bool = True) -> "BotConfig":
        """Build config from the environment.

        OPENROUTER_API_KEY takes precedence over OPENAI_API_KEY; LLM_BASE_URL
        overrides the endpoint picked for whichever key is used.
        """
        if dotenv:
            load_dotenv()

        openrouter_key = os.getenv("OPENROUTER_API_KEY", "").strip()
        openai_key = os.getenv("OPENAI_API_KEY", "").strip()
        if openrouter_key:
            api_key, base_url = openrouter_key, OPENROUTER_BASE_URL
        elif openai_key:
            api_key, base_url = openai_key, OPENAI_BASE_URL
        else:
            raise ConfigError("Set OPENROUTER_API_KEY or OPENAI_API_KEY")

        return cls(
            llm_api_key=api_key,
            llm_base_url=os.getenv("LLM_BASE_URL", "").strip() or base_url,
            model=os.getenv("LLM_MODEL", "").strip() or cls.model,
            discord_token=_require("DISCORD_TOKEN") if require_discord else os.getenv("DISCORD_TOKEN", ""),
            max_tokens=_int("MAX_TOKENS", cls.max_tokens),
            temperature=_float("TEMPERATURE", cls.temperature),
            max_depth=_int("MAX_DEPTH", cls.max_depth),
            bot_name=os.getenv("BOT_NAME", "").strip() or cls.bot_name,
            log_level=os.getenv("LOG_LEVEL", "").strip() or cls.log_level,
        )
