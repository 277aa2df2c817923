from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List

DEFAULT_TIMEOUT_S = 5.0


class LLMProvider(ABC):
    """A chat model that answers one system + user prompt pair with JSON text."""

    name = "base"
    timeout_s: float = DEFAULT_TIMEOUT_S

    @staticmethod
    def messages(system: str, user: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ]

    @abstractmethod
    def generate(self, *, system: str, user: str) -> str:
        """
        Returns the raw model output. JSON extraction and repair happen in LLMClient;
        httpx errors propagate so LLMClient can classify them.
        """
        raise NotImplementedError
