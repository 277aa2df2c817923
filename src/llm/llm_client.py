import json
import logging
import re
from typing import Any, Dict, Optional

import httpx

from llm.prompts import PromptTemplates
from llm.providers.base import LLMProvider
from smart_todo.errors import AIErrorKind, ModelError, classify_status
from smart_todo.models import Feature, ParsedTask

logger = logging.getLogger(__name__)

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def provider_from_env(name: str, timeout_s: float = 5.0) -> Optional[LLMProvider]:
    """Build the provider named by LLM_PROVIDER, or None when no model is configured."""
    name = (name or "").strip().lower()
    if name in {"", "none", "off"}:
        return None
    if name == "openai":
        from llm.providers.openai_provider import OpenAIProvider

        return OpenAIProvider(timeout_s=timeout_s)
    if name == "ollama":
        from llm.providers.ollama_provider import OllamaProvider

        return OllamaProvider(timeout_s=timeout_s)
    if name == "mock":
        from llm.providers.mock_provider import MockProvider

        return MockProvider()
    raise ValueError(f"Unknown LLM provider: {name}")


def extract_json(text: str) -> Dict[str, Any]:
    """Parse model output as a JSON object.

    Falls back to the first {...} span when the model wrapped its answer in
    prose or a code fence. Raises ModelError(VALIDATION_ERROR) otherwise.
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        match = _JSON_OBJECT.search(text or "")
        if not match:
            raise ModelError("Model returned no JSON", AIErrorKind.VALIDATION_ERROR, details=text)
        try:
            data = json.loads(match.group(0))
        except json.JSONDecodeError as e:
            raise ModelError("Model returned malformed JSON", AIErrorKind.VALIDATION_ERROR, details=text) from e

    if not isinstance(data, dict):
        raise ModelError("Model JSON is not an object", AIErrorKind.VALIDATION_ERROR, details=text)
    return data


class LLMClient:
    """Feature-aware wrapper around an LLM provider."""

    def __init__(self, provider: LLMProvider, prompts: Optional[PromptTemplates] = None):
        self.provider = provider
        self.prompts = prompts or PromptTemplates()

    def _generate(self, user: str) -> str:
        try:
            return self.provider.generate(system=self.prompts.system, user=user)
        except httpx.TimeoutException as e:
            raise ModelError("Model request timed out", AIErrorKind.TIMEOUT_ERROR) from e
        except httpx.HTTPStatusError as e:
            raise classify_status(e.response.status_code, f"Model API error: {e.response.status_code}") from e
        except httpx.TransportError as e:
            raise ModelError("Model endpoint unreachable", AIErrorKind.NETWORK_ERROR, details=str(e)) from e

    def complete(self, feature: Feature, user_input: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        feature = Feature.coerce(feature)
        prompt = self.prompts.render(feature, user_input, context)
        text = self._generate(prompt)
        if not text:
            raise ModelError("No content in model response", AIErrorKind.API_ERROR)
        return extract_json(text)

    def parse_task(self, text: str, context: Optional[Dict[str, Any]] = None) -> ParsedTask:
        data = self.complete(Feature.SMART_PARSE, text, context)
        # some models nest the fields under "parsed"
        if isinstance(data.get("parsed"), dict):
            data = {**data["parsed"], "confidence": data.get("confidence", data["parsed"].get("confidence"))}
        return ParsedTask.from_payload(data, text, model_backed=True)
