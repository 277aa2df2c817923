"""
Async client for the task processor and chat endpoints.

Every call carries a client-side deadline, failures are classified into the
AIErrorKind taxonomy and transient ones are retried per RetryPolicy.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Union

import httpx

from client.retry import RetryPolicy, Sleep, call_with_retries
from llm.schemas import BreakdownResult, PrioritizeResult, SchedulingResult, SuggestionsResult
from smart_todo.errors import AIErrorKind, ModelError, classify_status
from smart_todo.models import Feature, ParsedTask

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000/api"
DEFAULT_TIMEOUT_S = 30.0
PARSE_TIMEOUT_S = 5.0
CHAT_TIMEOUT_S = 30.0

FeatureResult = Union[ParsedTask, BreakdownResult, PrioritizeResult, SuggestionsResult, SchedulingResult]


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class _BaseClient:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        http_client: Optional[httpx.AsyncClient] = None,
        retry: Optional[RetryPolicy] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.base_url = base_url.rstrip("/")
        self._http = http_client or httpx.AsyncClient()
        self._owns_http = http_client is None
        self.retry = retry or RetryPolicy()
        self._sleep = sleep

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def _post_once(self, path: str, payload: Dict[str, Any], timeout_s: float) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            response = await asyncio.wait_for(self._http.post(url, json=payload), timeout_s)
        except (asyncio.TimeoutError, httpx.TimeoutException) as e:
            raise ModelError("Request timeout", AIErrorKind.TIMEOUT_ERROR) from e
        except httpx.TransportError as e:
            raise ModelError("Network connection failed", AIErrorKind.NETWORK_ERROR, details=str(e)) from e

        if response.status_code >= 400:
            body = _error_body(response)
            raise classify_status(response.status_code, body.get("error"), body)
        return response

    async def _post(self, path: str, payload: Dict[str, Any], timeout_s: float) -> httpx.Response:
        return await call_with_retries(
            lambda: self._post_once(path, payload, timeout_s),
            self.retry,
            sleep=self._sleep,
            label=f"POST {path}",
        )


class TaskProcessorClient(_BaseClient):
    """Client for POST {base_url}/ai-task-processor."""

    path = "/ai-task-processor"

    async def _call(
        self,
        feature: Feature,
        user_input: str,
        context: Optional[Dict[str, Any]],
        timeout_s: float,
    ) -> Dict[str, Any]:
        payload = {"userInput": user_input, "feature": feature.value, "context": context or {}}
        response = await self._post(self.path, payload, timeout_s)
        try:
            data = response.json()
        except ValueError as e:
            raise ModelError("Malformed processor response", AIErrorKind.VALIDATION_ERROR) from e

        if not isinstance(data, dict) or not data.get("success"):
            raise ModelError(
                f"Failed to process {feature.value}",
                AIErrorKind.API_ERROR,
                details=data,
            )
        return data

    async def smart_parse(
        self,
        user_input: str,
        *,
        context: Optional[Dict[str, Any]] = None,
        timeout_s: float = PARSE_TIMEOUT_S,
    ) -> ParsedTask:
        if not isinstance(user_input, str) or not user_input.strip():
            raise ModelError("User input is required and must be a string", AIErrorKind.VALIDATION_ERROR)

        text = user_input.strip()
        data = await self._call(Feature.SMART_PARSE, text, context, timeout_s)
        parsed = ParsedTask.from_payload(data.get("parsed"), text, confidence=data.get("confidence"))
        return parsed.model_copy(
            update={"model_backed": bool(data.get("aiPowered")), "cached": bool(data.get("cached"))}
        )

    async def breakdown_task(
        self, task: str, context: Optional[Dict[str, Any]] = None, *, timeout_s: float = DEFAULT_TIMEOUT_S
    ) -> BreakdownResult:
        if not task:
            raise ModelError("Task is required", AIErrorKind.VALIDATION_ERROR)
        data = await self._call(Feature.TASK_BREAKDOWN, task, context, timeout_s)
        return BreakdownResult.from_wire(data, task)

    async def prioritize_tasks(
        self, tasks: List[Dict[str, Any]], context: Optional[Dict[str, Any]] = None, *, timeout_s: float = DEFAULT_TIMEOUT_S
    ) -> PrioritizeResult:
        if not isinstance(tasks, list):
            raise ModelError("Tasks must be a list", AIErrorKind.VALIDATION_ERROR)
        data = await self._call(
            Feature.SMART_PRIORITIZE, json.dumps(tasks, default=str), {**(context or {}), "tasks": tasks}, timeout_s
        )
        return PrioritizeResult.from_wire(data)

    async def contextual_suggestions(
        self, text: str, context: Optional[Dict[str, Any]] = None, *, timeout_s: float = DEFAULT_TIMEOUT_S
    ) -> SuggestionsResult:
        if not text:
            raise ModelError("Input is required", AIErrorKind.VALIDATION_ERROR)
        data = await self._call(Feature.CONTEXTUAL_SUGGESTIONS, text, context, timeout_s)
        return SuggestionsResult.from_wire(data)

    async def smart_scheduling(
        self, text: str, context: Optional[Dict[str, Any]] = None, *, timeout_s: float = DEFAULT_TIMEOUT_S
    ) -> SchedulingResult:
        if not text:
            raise ModelError("Input is required", AIErrorKind.VALIDATION_ERROR)
        data = await self._call(Feature.SMART_SCHEDULING, text, context, timeout_s)
        return SchedulingResult.from_wire(data)

    async def process(
        self,
        feature: Feature,
        text: str,
        context: Optional[Dict[str, Any]] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> FeatureResult:
        feature = Feature.coerce(feature)
        if feature is Feature.TASK_BREAKDOWN:
            return await self.breakdown_task(text, context, timeout_s=timeout_s)
        if feature is Feature.SMART_PRIORITIZE:
            tasks = (context or {}).get("tasks") or [{"title": text}]
            return await self.prioritize_tasks(tasks, context, timeout_s=timeout_s)
        if feature is Feature.CONTEXTUAL_SUGGESTIONS:
            return await self.contextual_suggestions(text, context, timeout_s=timeout_s)
        if feature is Feature.SMART_SCHEDULING:
            return await self.smart_scheduling(text, context, timeout_s=timeout_s)
        return await self.smart_parse(text, context=context, timeout_s=timeout_s)


def _validate_messages(messages: List[Dict[str, str]]) -> None:
    if not isinstance(messages, list) or not messages:
        raise ModelError("Messages array is required and cannot be empty", AIErrorKind.VALIDATION_ERROR)
    for message in messages:
        if not message.get("role") or not message.get("content"):
            raise ModelError("Each message must have role and content", AIErrorKind.VALIDATION_ERROR)


class ChatClient(_BaseClient):
    """Client for the streaming chat relay at POST {base_url}/chat."""

    path = "/chat"

    async def send_message(
        self,
        messages: List[Dict[str, str]],
        task_context: Optional[Dict[str, Any]] = None,
        *,
        timeout_s: float = CHAT_TIMEOUT_S,
    ) -> str:
        return "".join([chunk async for chunk in self.stream_message(messages, task_context, timeout_s=timeout_s)])

    async def stream_message(
        self,
        messages: List[Dict[str, str]],
        task_context: Optional[Dict[str, Any]] = None,
        *,
        timeout_s: float = CHAT_TIMEOUT_S,
    ) -> AsyncIterator[str]:
        _validate_messages(messages)
        url = f"{self.base_url}{self.path}"
        payload = {"messages": messages, "taskContext": task_context}

        try:
            async with self._http.stream("POST", url, json=payload, timeout=timeout_s) as response:
                if response.status_code >= 400:
                    await response.aread()
                    body = _error_body(response)
                    raise classify_status(response.status_code, body.get("error"), body)

                if "application/json" in response.headers.get("content-type", ""):
                    await response.aread()
                    data = _error_body(response)
                    if data.get("fallback"):
                        raise ModelError(
                            data.get("response") or data.get("error") or "Chat is not configured",
                            AIErrorKind.API_ERROR,
                            details={"fallback": True},
                        )
                    yield str(data.get("response", ""))
                    return

                async for chunk in response.aiter_text():
                    if chunk:
                        yield chunk
        except httpx.TimeoutException as e:
            raise ModelError("Request timeout", AIErrorKind.TIMEOUT_ERROR) from e
        except httpx.TransportError as e:
            raise ModelError("Network connection failed", AIErrorKind.NETWORK_ERROR, details=str(e)) from e


async def check_services(processor: TaskProcessorClient) -> Dict[str, Any]:
    """Probe the processor with a quick parse and report what is available."""
    try:
        probe = await processor.smart_parse("test task", timeout_s=PARSE_TIMEOUT_S)
    except ModelError as e:
        return {
            "taskProcessor": {"available": False, "error": str(e), "type": e.kind.value},
            "chat": {"available": False, "note": "Status unknown due to task processor unavailability"},
        }
    return {
        "taskProcessor": {"available": True, "aiPowered": probe.model_backed, "responseTime": "fast"},
        "chat": {"available": True, "note": "Chat availability depends on PERPLEXITY_API_KEY configuration"},
    }
