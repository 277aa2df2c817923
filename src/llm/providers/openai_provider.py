from __future__ import annotations
import os
import httpx
from .base import DEFAULT_TIMEOUT_S, LLMProvider


class OpenAIProvider(LLMProvider):
    """OpenAI-compatible chat completions endpoint, asked for a JSON object."""

    name = "openai"

    def __init__(self, timeout_s: float = DEFAULT_TIMEOUT_S):
        self.api_key = os.getenv("OPENAI_API_KEY", "").strip()
        self.model = os.getenv("OPENAI_MODEL", "gpt-4o-mini").strip()
        self.base_url = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").strip().rstrip("/")
        self.timeout_s = timeout_s

        if not self.api_key:
            raise RuntimeError("OPENAI_API_KEY is missing")

    def generate(self, *, system: str, user: str) -> str:
        payload = {
            "model": self.model,
            "messages": self.messages(system, user),
            "temperature": 0.7,
            "max_tokens": 1000,
            "response_format": {"type": "json_object"},
        }

        with httpx.Client(timeout=self.timeout_s) as client:
            r = client.post(
                f"{self.base_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )
            r.raise_for_status()
            choices = r.json().get("choices") or [{}]

        # empty content is reported by LLMClient as an API error
        return (choices[0].get("message") or {}).get("content") or ""
