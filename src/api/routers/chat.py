import logging
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse

from api.dependencies import get_chat_provider
from api.metrics import REQUESTS_TOTAL
from llm.providers.perplexity_provider import PerplexityProvider
from smart_todo.models import CamelModel

router = APIRouter()
logger = logging.getLogger(__name__)

ENDPOINT = "/api/chat"

FALLBACK_RESPONSE = (
    "I'm a helpful AI assistant! However, I need a Perplexity API key to be configured to provide "
    "real-time web search and answers. Please add your PERPLEXITY_API_KEY to the environment variables."
)


class ChatRequest(CamelModel):
    messages: Optional[List[Dict[str, Any]]] = None
    # accepted for compatibility, not forwarded to the model
    task_context: Optional[Any] = None


async def _relay(first: str, rest: AsyncIterator[str]) -> AsyncIterator[str]:
    yield first
    try:
        async for chunk in rest:
            yield chunk
    except Exception:
        # headers are already sent, the client sees a truncated answer
        logger.exception("Chat stream interrupted")


@router.post("/chat")
async def chat(
    payload: ChatRequest,
    provider: Optional[PerplexityProvider] = Depends(get_chat_provider),
):
    """Relay a chat conversation to the web-search model as a plain-text stream."""
    if not isinstance(payload.messages, list) or not payload.messages:
        REQUESTS_TOTAL.labels(endpoint=ENDPOINT, status="invalid").inc()
        return JSONResponse(status_code=400, content={"error": "Messages array is required"})

    if provider is None:
        REQUESTS_TOTAL.labels(endpoint=ENDPOINT, status="fallback").inc()
        return {"response": FALLBACK_RESPONSE, "fallback": True}

    messages = [{"role": str(m.get("role", "")), "content": str(m.get("content", ""))} for m in payload.messages]
    stream = provider.stream(messages).__aiter__()
    try:
        # pull the first chunk so upstream failures still get a proper status code
        first = await stream.__anext__()
    except StopAsyncIteration:
        first = ""
    except Exception as e:
        logger.error(f"Chat API error: {e}")
        REQUESTS_TOTAL.labels(endpoint=ENDPOINT, status="error").inc()
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process chat request", "details": str(e), "fallback": True},
        )

    REQUESTS_TOTAL.labels(endpoint=ENDPOINT, status="ok").inc()
    return StreamingResponse(_relay(first, stream), media_type="text/plain; charset=utf-8")
