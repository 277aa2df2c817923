from __future__ import annotations
import json
import logging
import os
from typing import AsyncIterator, Dict, List
import httpx

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = """You are a helpful AI assistant integrated into a todo/productivity app. Help users with:
- Task planning and organization
- Productivity tips and strategies
- Time management advice
- Breaking down complex projects
- Research and information for their tasks
- General questions and assistance

Be concise, practical, and focused on helping users be more productive. If they ask about specific topics for research or work, provide accurate and up-to-date information."""


class PerplexityProvider:
    """Streams chat completions from the web-search-augmented Perplexity API."""

    name = "perplexity"

    def __init__(self, api_key: str | None = None, timeout_s: float = 30.0):
        self.api_key = (api_key or os.getenv("PERPLEXITY_API_KEY", "")).strip()
        self.model = os.getenv("PERPLEXITY_MODEL", "sonar-pro").strip()
        self.base_url = os.getenv("PERPLEXITY_BASE_URL", "https://api.perplexity.ai").strip()
        self.timeout_s = timeout_s

        if not self.api_key:
            raise RuntimeError("PERPLEXITY_API_KEY is missing")

    async def stream(self, messages: List[Dict[str, str]]) -> AsyncIterator[str]:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": self.model,
            "stream": True,
            "messages": [{"role": "system", "content": CHAT_SYSTEM_PROMPT}, *messages],
            "temperature": 0.7,
            "max_tokens": 1000,
        }

        async with httpx.AsyncClient(timeout=self.timeout_s) as client:
            async with client.stream("POST", url, headers=headers, json=payload) as r:
                r.raise_for_status()
                async for line in r.aiter_lines():
                    if not line.startswith("data:"):
                        continue
                    data = line[len("data:"):].strip()
                    if data == "[DONE]":
                        break
                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        logger.warning(f"Skipping malformed stream event: {data[:80]}")
                        continue
                    choices = event.get("choices") or [{}]
                    delta = choices[0].get("delta") or {}
                    content = delta.get("content")
                    if content:
                        yield content
