"""
Typing session: debounces keystroke-triggered parses, cancels superseded
requests and applies only the newest result to the preview.

Each parse runs in its own asyncio task behind a `RequestHandle`. A keystroke
cancels every outstanding handle, and a result is applied only when its handle
is still live and carries the latest sequence number.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Set

from pydantic import BaseModel

from composition.composer import TaskComposer
from extraction.task_extractor import SmartParser
from llm.schemas import BreakdownResult, SuggestionsResult
from smart_todo.errors import AIErrorKind, ModelError, user_message
from smart_todo.models import DispatchResult, Feature, ParsedTask
from storage.task_store import TaskStore

logger = logging.getLogger(__name__)

DEBOUNCE_S = 1.2
MIN_TYPING_LENGTH = 8
MIN_BLUR_LENGTH = 5
MIN_WORDS = 2


class SessionState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"
    APPLIED = "applied"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class RequestHandle:
    seq: int
    text: str
    explicit: bool = False
    cancelled: bool = False
    task: Optional[asyncio.Task] = None

    def cancel(self) -> None:
        self.cancelled = True
        if self.task is not None and not self.task.done():
            self.task.cancel()


def _word_count(text: str) -> int:
    return len(text.strip().split())


class TypingSession:
    def __init__(
        self,
        parser: SmartParser,
        *,
        composer: Optional[TaskComposer] = None,
        context: Optional[Dict[str, Any]] = None,
        debounce_s: float = DEBOUNCE_S,
        min_typing_length: int = MIN_TYPING_LENGTH,
        min_blur_length: int = MIN_BLUR_LENGTH,
        min_words: int = MIN_WORDS,
        timeout_s: float = 5.0,
        on_change: Optional[Callable[["TypingSession"], None]] = None,
    ):
        self.parser = parser
        self.composer = composer or TaskComposer()
        self.context = context or {}
        self.debounce_s = debounce_s
        self.min_typing_length = min_typing_length
        self.min_blur_length = min_blur_length
        self.min_words = min_words
        self.timeout_s = timeout_s
        self.on_change = on_change

        self.state = SessionState.IDLE
        self.text = ""
        self.preview: Optional[ParsedTask] = None
        self.feature_result: Optional[BaseModel] = None
        self.selected: Set[int] = set()
        self.error_message: Optional[str] = None
        self.issued = 0

        self._seq = 0
        self._handles: List[RequestHandle] = []
        self._debounce_task: Optional[asyncio.Task] = None
        self._feature_seq = 0
        self._feature_handles: List[RequestHandle] = []

    @property
    def latest_seq(self) -> int:
        return self._seq

    @property
    def suggestions(self) -> List[Any]:
        if isinstance(self.feature_result, BreakdownResult):
            return list(self.feature_result.breakdown)
        if isinstance(self.feature_result, SuggestionsResult):
            return list(self.feature_result.suggestions)
        return list(self.preview.suggestions) if self.preview else []

    def on_input(self, text: str) -> None:
        self.text = text
        self.preview = None
        self.feature_result = None
        self.selected.clear()
        self.error_message = None

        had_requests = self._cancel_pending()

        if len(text) > self.min_typing_length and _word_count(text) >= self.min_words:
            self._debounce_task = asyncio.get_running_loop().create_task(self._debounce(text))
            self._set_state(SessionState.DEBOUNCING)
        else:
            self._set_state(SessionState.CANCELLED if had_requests else SessionState.IDLE)

    async def on_blur(self, text: Optional[str] = None) -> None:
        text = self.text if text is None else text
        if self.preview is not None:
            return
        if len(text.strip()) <= self.min_blur_length or _word_count(text) < self.min_words:
            return

        self.text = text
        self._cancel_debounce()
        handle = self._issue(text)
        await asyncio.wait([handle.task])

    async def parse_now(self, text: Optional[str] = None) -> Optional[ParsedTask]:
        """Explicit parse: errors other than a timeout surface as `error_message`."""
        text = self.text if text is None else text
        if not text.strip():
            return None
        self.text = text
        self._cancel_debounce()
        handle = self._issue(text, explicit=True)
        await asyncio.wait([handle.task])
        return self.preview if self._is_current(handle) else None

    async def request_feature(self, feature: Feature) -> Optional[BaseModel]:
        """Run a secondary feature; a newer feature request or a keystroke supersedes it."""
        text = self.text
        if not text.strip():
            return None
        feature = Feature.coerce(feature)

        for pending in self._feature_handles:
            pending.cancel()
        self._feature_seq += 1
        handle = RequestHandle(seq=self._feature_seq, text=text, explicit=True)
        handle.task = asyncio.get_running_loop().create_task(
            self.parser.run_feature(feature, text, self.context)
        )
        self._feature_handles = [handle]

        await asyncio.wait([handle.task])
        if handle in self._feature_handles:
            self._feature_handles.remove(handle)
        if not self._is_current_feature(handle):
            logger.debug(f"Discarding stale {feature.value} result {handle.seq} (latest {self._feature_seq})")
            return None

        try:
            result = handle.task.result()
        except ModelError as e:
            logger.warning(f"{feature.value} failed: {e}")
            self.error_message = user_message(e)
            self._notify()
            return None

        self.feature_result = result
        self.selected.clear()
        self._notify()
        return result

    def toggle_suggestion(self, index: int) -> None:
        if not 0 <= index < len(self.suggestions):
            raise IndexError(f"No suggestion at index {index}")
        if index in self.selected:
            self.selected.discard(index)
        else:
            self.selected.add(index)
        self._notify()

    async def submit(self, store: TaskStore, user_id: str = "default") -> Optional[DispatchResult]:
        text = self.text
        if not text.strip():
            return None

        composition = self.composer.compose(text, self.preview, self.selected, self.suggestions)
        # the session is ready for the next task before persistence finishes
        self.reset()
        return await self.composer.dispatch(composition, store, user_id)

    def reset(self) -> None:
        self._cancel_pending()
        self.text = ""
        self.preview = None
        self.feature_result = None
        self.selected.clear()
        self.error_message = None
        self._set_state(SessionState.IDLE)

    def close(self) -> None:
        self.reset()

    async def settle(self) -> None:
        """Wait until no debounce timer or request is outstanding."""
        while True:
            tasks = [self._debounce_task, *(h.task for h in self._handles + self._feature_handles)]
            pending = [t for t in tasks if t and not t.done()]
            if not pending:
                return
            await asyncio.wait(pending)

    async def _debounce(self, text: str) -> None:
        await asyncio.sleep(self.debounce_s)
        self._debounce_task = None
        self._issue(text)

    def _issue(self, text: str, explicit: bool = False) -> RequestHandle:
        for handle in self._handles:
            handle.cancel()
        self._seq += 1
        self.issued += 1
        handle = RequestHandle(seq=self._seq, text=text, explicit=explicit)
        handle.task = asyncio.get_running_loop().create_task(self._run(handle))
        self._handles = [handle]
        self.error_message = None
        self._set_state(SessionState.IN_FLIGHT)
        return handle

    async def _run(self, handle: RequestHandle) -> None:
        try:
            result = await self.parser.parse(
                handle.text,
                self.context,
                self.timeout_s,
                explicit=handle.explicit,
                degrade_on_timeout=handle.explicit,
            )
        except ModelError as e:
            if not self._is_current(handle):
                return
            self.preview = None
            if e.kind is AIErrorKind.TIMEOUT_ERROR and not handle.explicit:
                logger.info("AI request timeout - task can be added as typed")
            else:
                self.error_message = user_message(e)
            self._finish(handle, SessionState.FAILED)
            return
        except Exception as e:
            logger.exception(f"Unexpected parse failure for request {handle.seq}")
            if self._is_current(handle):
                self.preview = None
                self.error_message = user_message(e)
                self._finish(handle, SessionState.FAILED)
            return

        if not self._is_current(handle):
            logger.debug(f"Discarding stale parse result {handle.seq} (latest {self._seq})")
            return
        self.preview = result
        self.selected.clear()
        self._finish(handle, SessionState.APPLIED)

    def _is_current(self, handle: RequestHandle) -> bool:
        return not handle.cancelled and handle.seq == self._seq

    def _is_current_feature(self, handle: RequestHandle) -> bool:
        return not handle.cancelled and handle.seq == self._feature_seq

    def _finish(self, handle: RequestHandle, state: SessionState) -> None:
        if handle in self._handles:
            self._handles.remove(handle)
        self._set_state(state)

    def _cancel_debounce(self) -> None:
        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
        self._debounce_task = None

    def _cancel_pending(self) -> bool:
        self._cancel_debounce()
        had_requests = bool(self._handles)
        for handle in self._handles + self._feature_handles:
            handle.cancel()
        self._handles = []
        self._feature_handles = []
        return had_requests

    def _set_state(self, state: SessionState) -> None:
        self.state = state
        self._notify()

    def _notify(self) -> None:
        if self.on_change is None:
            return
        try:
            self.on_change(self)
        except Exception:
            logger.exception("Session change listener failed")
