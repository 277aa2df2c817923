from __future__ import annotations

import os
from dataclasses import dataclass


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read from the environment."""

    llm_provider: str = "none"
    perplexity_api_key: str = ""
    api_base_url: str = "http://localhost:8000/api"

    parse_timeout_s: float = 5.0
    chat_timeout_s: float = 30.0
    cache_ttl_s: float = 300.0
    debounce_s: float = 1.2

    max_retries: int = 2
    retry_delay_s: float = 1.0

    default_project_id: str = "1"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            llm_provider=os.getenv("LLM_PROVIDER", "none").strip().lower(),
            perplexity_api_key=os.getenv("PERPLEXITY_API_KEY", "").strip(),
            api_base_url=os.getenv("AI_API_BASE_URL", "http://localhost:8000/api").strip().rstrip("/"),
            parse_timeout_s=_env_float("PARSE_TIMEOUT_S", 5.0),
            chat_timeout_s=_env_float("CHAT_TIMEOUT_S", 30.0),
            cache_ttl_s=_env_float("RESPONSE_CACHE_TTL_S", 300.0),
            debounce_s=_env_float("DEBOUNCE_S", 1.2),
            max_retries=_env_int("MAX_RETRIES", 2),
            retry_delay_s=_env_float("RETRY_DELAY_S", 1.0),
            default_project_id=os.getenv("DEFAULT_PROJECT_ID", "1").strip() or "1",
        )

    @property
    def chat_enabled(self) -> bool:
        return bool(self.perplexity_api_key)
