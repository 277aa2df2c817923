import logging
from typing import Optional

from composition.composer import TaskComposer
from extraction.feature_processor import FeatureProcessor
from llm.llm_client import LLMClient, provider_from_env
from smart_todo.config import Settings
from storage.task_store import InMemoryTaskStore

logger = logging.getLogger(__name__)


def build_processor(settings: Settings) -> FeatureProcessor:
    """Model-backed processor when a provider is configured and usable, local rules otherwise."""
    try:
        provider = provider_from_env(settings.llm_provider, timeout_s=settings.parse_timeout_s)
    except (RuntimeError, ValueError) as e:
        logger.warning(f"LLM provider {settings.llm_provider!r} unavailable, using local rules: {e}")
        provider = None

    llm_client: Optional[LLMClient] = LLMClient(provider) if provider is not None else None
    return FeatureProcessor(llm_client=llm_client)


settings = Settings.from_env()

# Process-wide instances, replaced wholesale in tests
task_store = InMemoryTaskStore()
processor = build_processor(settings)
composer = TaskComposer(project_id=settings.default_project_id)
