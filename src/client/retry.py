from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from smart_todo.errors import AIErrorKind, ModelError

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry transient failures with exponential backoff.

    Network errors, timeouts and 5xx API errors are retried; rate limits,
    validation and other 4xx errors are not.
    """

    max_retries: int = 2
    base_delay_s: float = 1.0

    def should_retry(self, error: ModelError) -> bool:
        if error.kind in (AIErrorKind.NETWORK_ERROR, AIErrorKind.TIMEOUT_ERROR):
            return True
        return error.kind is AIErrorKind.API_ERROR and error.status is not None and error.status >= 500

    def delay_for(self, attempt: int) -> float:
        return self.base_delay_s * (2 ** attempt)


NO_RETRY = RetryPolicy(max_retries=0)


async def call_with_retries(
    call: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    *,
    sleep: Sleep = asyncio.sleep,
    label: str = "request",
) -> T:
    attempt = 0
    while True:
        try:
            return await call()
        except ModelError as e:
            if attempt >= policy.max_retries or not policy.should_retry(e):
                raise
            delay = policy.delay_for(attempt)
            logger.info(f"{label} failed ({e.kind.value}), retry {attempt + 1}/{policy.max_retries} in {delay:.1f}s")
            attempt += 1
            await sleep(delay)
