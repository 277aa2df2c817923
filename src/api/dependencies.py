from typing import Optional

from fastapi import Depends

from composition.composer import TaskComposer
from extraction.feature_processor import FeatureProcessor
from llm.providers.perplexity_provider import PerplexityProvider
from smart_todo.config import Settings
from storage.task_store import TaskStore
from api import state


def get_settings() -> Settings:
    return state.settings


def get_task_store() -> TaskStore:
    return state.task_store


def get_processor() -> FeatureProcessor:
    return state.processor


def get_composer() -> TaskComposer:
    return state.composer


def get_chat_provider(settings: Settings = Depends(get_settings)) -> Optional[PerplexityProvider]:
    if not settings.chat_enabled:
        return None
    return PerplexityProvider(api_key=settings.perplexity_api_key, timeout_s=settings.chat_timeout_s)
