from __future__ import annotations
import os
import httpx
from .base import DEFAULT_TIMEOUT_S, LLMProvider


class OllamaProvider(LLMProvider):
    """Local Ollama server in JSON output mode."""

    name = "ollama"

    def __init__(self, timeout_s: float = DEFAULT_TIMEOUT_S):
        self.model = os.getenv("OLLAMA_MODEL", "llama3.1").strip()
        self.base_url = os.getenv("OLLAMA_BASE_URL", "http://localhost:11434").strip().rstrip("/")
        self.timeout_s = timeout_s

    def generate(self, *, system: str, user: str) -> str:
        payload = {
            "model": self.model,
            "stream": False,
            "format": "json",
            "messages": self.messages(system, user),
            "options": {"temperature": 0.2},
        }

        with httpx.Client(timeout=self.timeout_s) as client:
            r = client.post(f"{self.base_url}/api/chat", json=payload)
            r.raise_for_status()
            message = r.json().get("message") or {}

        return message.get("content") or ""
