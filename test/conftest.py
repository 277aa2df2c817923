import asyncio
from typing import Any, List, Optional

import pytest

from llm.schemas import BreakdownResult
from smart_todo.models import ParsedTask
from storage.task_store import InMemoryTaskStore


class FakeProvider:
    def __init__(self, response_text: str = "", error: Optional[Exception] = None):
        self._response_text = response_text
        self._error = error
        self.calls = 0

    def generate(self, *, system: str, user: str) -> str:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return self._response_text


class FakeModel:
    """Async stand-in for the task processor client."""

    def __init__(
        self,
        result: Optional[ParsedTask] = None,
        error: Optional[Exception] = None,
        feature_result: Any = None,
    ):
        self.result = result
        self.error = error
        self.feature_result = feature_result
        self.calls: List[str] = []

    async def smart_parse(self, user_input, *, context=None, timeout_s=5.0) -> ParsedTask:
        self.calls.append(user_input)
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return ParsedTask(task_name=user_input.title(), confidence=0.95, model_backed=True)

    async def process(self, feature, text, context=None, timeout_s=30.0):
        self.calls.append(text)
        if self.error is not None:
            raise self.error
        return self.feature_result or BreakdownResult(original_task=text, ai_powered=True)


class GatedModel:
    """Each smart_parse call blocks until its text is released.

    With `ignore_cancel` the call keeps waiting through a cancellation and still
    returns, like a transport that cannot be aborted.
    """

    def __init__(self, ignore_cancel: bool = False):
        self.ignore_cancel = ignore_cancel
        self.calls: List[str] = []
        self._gates = {}

    def _gate(self, text: str) -> asyncio.Event:
        return self._gates.setdefault(text, asyncio.Event())

    def release(self, text: str) -> None:
        self._gate(text).set()

    async def smart_parse(self, user_input, *, context=None, timeout_s=5.0) -> ParsedTask:
        self.calls.append(user_input)
        gate = self._gate(user_input)
        try:
            await gate.wait()
        except asyncio.CancelledError:
            if not self.ignore_cancel:
                raise
            await gate.wait()
        return ParsedTask(task_name=f"parsed {user_input}", confidence=0.9, model_backed=True)


class GatedFeatureModel(GatedModel):
    """Feature calls block per feature until released, then answer from `results`."""

    def __init__(self, results, ignore_cancel: bool = False):
        super().__init__(ignore_cancel)
        self.results = results

    async def process(self, feature, text, context=None, timeout_s=30.0):
        self.calls.append(feature.value)
        gate = self._gate(feature.value)
        try:
            await gate.wait()
        except asyncio.CancelledError:
            if not self.ignore_cancel:
                raise
            await gate.wait()
        return self.results[feature]


class RecordingStore(InMemoryTaskStore):
    """In-memory store that logs every create call and can fail chosen tasks."""

    def __init__(self, fail_on=()):
        super().__init__()
        self.fail_on = set(fail_on)
        self.calls: List[str] = []

    async def create_task(self, draft, user_id="default"):
        self.calls.append(draft.task)
        # give sibling calls a chance to interleave
        await asyncio.sleep(0)
        if draft.task in self.fail_on:
            raise RuntimeError(f"insert failed for {draft.task}")
        return await super().create_task(draft, user_id)


@pytest.fixture
def fake_provider_factory():
    def _make(response_text: str = "", error: Optional[Exception] = None):
        return FakeProvider(response_text, error)
    return _make


@pytest.fixture
def recording_store():
    return RecordingStore()
