import logging

from fastapi import APIRouter, Depends, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from api.dependencies import get_processor, get_settings, get_task_store
from api.metrics import TASKS_STORED
from extraction.feature_processor import FeatureProcessor
from smart_todo.config import Settings
from storage.task_store import TaskStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(
    settings: Settings = Depends(get_settings),
    processor: FeatureProcessor = Depends(get_processor),
) -> dict:
    """Health check endpoint for container orchestration."""
    return {
        "status": "healthy",
        "taskProcessor": {
            "available": True,
            "provider": settings.llm_provider,
            "aiPowered": processor.model_configured,
        },
        "chat": {"configured": settings.chat_enabled},
    }


@router.get("/metrics")
async def metrics(store: TaskStore = Depends(get_task_store)) -> Response:
    """
    Prometheus scrape endpoint.
    """
    try:
        TASKS_STORED.set(await store.count_tasks())
    except Exception:
        logger.exception("Could not refresh task gauge")

    data = generate_latest()
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)
