import asyncio
import logging
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from api.dependencies import get_processor
from api.metrics import AI_FEATURE_TOTAL, MODEL_FALLBACK_TOTAL, REQUEST_LATENCY_SECONDS, REQUESTS_TOTAL
from extraction.feature_processor import FeatureProcessor
from smart_todo.models import CamelModel, Feature

router = APIRouter()
logger = logging.getLogger(__name__)

ENDPOINT = "/api/ai-task-processor"


class ProcessorRequest(CamelModel):
    # loosely typed so a missing or non-string input gets the wire-format 400
    user_input: Optional[Any] = None
    feature: Optional[str] = Feature.SMART_PARSE.value
    context: Optional[Dict[str, Any]] = None


@router.post("/ai-task-processor")
async def process_task(
    payload: ProcessorRequest,
    processor: FeatureProcessor = Depends(get_processor),
):
    """Run one AI feature over the user's text; answers from local rules when the model is unavailable."""
    start = time.perf_counter()

    if not isinstance(payload.user_input, str) or not payload.user_input.strip():
        REQUESTS_TOTAL.labels(endpoint=ENDPOINT, status="invalid").inc()
        return JSONResponse(status_code=400, content={"error": "User input is required and must be a string"})

    feature = Feature.coerce(payload.feature)
    try:
        result = await asyncio.to_thread(processor.process, payload.user_input, feature, payload.context or {})
    except Exception as e:
        logger.exception(f"AI Task Processor error for {feature.value}")
        REQUESTS_TOTAL.labels(endpoint=ENDPOINT, status="error").inc()
        return JSONResponse(status_code=500, content={"error": "Failed to process request", "details": str(e)})
    finally:
        REQUEST_LATENCY_SECONDS.labels(endpoint=ENDPOINT).observe(time.perf_counter() - start)

    source = "model" if result.get("aiPowered") else "local"
    AI_FEATURE_TOTAL.labels(feature=feature.value, source=source).inc()
    if processor.model_configured and source == "local":
        MODEL_FALLBACK_TOTAL.inc()
    REQUESTS_TOTAL.labels(endpoint=ENDPOINT, status="ok").inc()
    return result
