"""
Turns a parse result plus the user's suggestion picks into persistence requests.

The primary task is always persisted first; subtasks are only sent once its id
is known, run concurrently with each other, and fail independently.
"""

import asyncio
import logging
from typing import Any, Iterable, List, Optional, Sequence

from llm.schemas import BreakdownItem
from smart_todo.models import (
    Composition,
    DispatchResult,
    ParsedTask,
    SubtaskDraft,
    SubtaskOutcome,
    TaskDraft,
    TaskRecord,
)
from storage.task_store import TaskStore

logger = logging.getLogger(__name__)


class TaskComposer:
    def __init__(self, project_id: str = "1"):
        self.project_id = project_id

    def primary_draft(self, raw_input: str, parsed: Optional[ParsedTask]) -> TaskDraft:
        text = raw_input.strip()
        if not text:
            raise ValueError("Nothing to compose: input is empty")

        if parsed is None:
            return TaskDraft(task=text, project_id=self.project_id, date="", priority="medium")

        name = parsed.task_name.strip() if parsed.task_name and parsed.task_name.strip() else text
        return TaskDraft(
            task=name,
            project_id=self.project_id,
            date=parsed.date or "",
            priority=parsed.priority,
            ai_enhanced=True,
            metadata={"originalInput": raw_input, "aiParsed": parsed.to_wire()},
        )

    def subtask_draft(self, suggestion: Any, primary: TaskDraft, priority: Optional[str] = None) -> Optional[SubtaskDraft]:
        estimated_time = None
        if isinstance(suggestion, BreakdownItem):
            text, item_priority, estimated_time = suggestion.task, suggestion.priority, suggestion.estimated_time
        elif isinstance(suggestion, dict):
            text = suggestion.get("task") or suggestion.get("title")
            item_priority = suggestion.get("priority")
            estimated_time = suggestion.get("estimatedTime")
        else:
            text, item_priority = suggestion, None

        if not text or not str(text).strip():
            return None

        metadata = {"parentTask": primary.task, "type": "subtask", "aiGenerated": True}
        if estimated_time:
            metadata["estimatedTime"] = estimated_time

        return SubtaskDraft(
            task=str(text),
            project_id=primary.project_id,
            priority=priority or item_priority or "low",
            metadata=metadata,
        )

    def compose(
        self,
        raw_input: str,
        parsed: Optional[ParsedTask],
        selected: Iterable[int],
        suggestions: Optional[Sequence[Any]] = None,
    ) -> Composition:
        primary = self.primary_draft(raw_input, parsed)
        items = list(suggestions) if suggestions is not None else (parsed.suggestions if parsed else [])

        subtasks: List[SubtaskDraft] = []
        for index in sorted(set(selected)):
            if not 0 <= index < len(items):
                logger.warning(f"Ignoring selection {index}: only {len(items)} suggestions")
                continue
            draft = self.subtask_draft(items[index], primary)
            if draft is not None:
                subtasks.append(draft)

        return Composition(primary=primary, subtasks=subtasks)

    def compose_single(self, raw_input: str, parsed: Optional[ParsedTask], suggestion: Any) -> Composition:
        """Single-click path: the main task plus exactly one low-priority subtask."""
        primary = self.primary_draft(raw_input, parsed)
        draft = self.subtask_draft(suggestion, primary, priority="low")
        return Composition(primary=primary, subtasks=[draft] if draft else [])

    async def dispatch(self, composition: Composition, store: TaskStore, user_id: str = "default") -> DispatchResult:
        result = DispatchResult(primary_draft=composition.primary)

        try:
            primary = await store.create_task(composition.primary, user_id)
        except Exception as e:
            logger.error(f"Error creating main task {composition.primary.task!r}: {e}")
            result.primary_error = str(e)
            return result

        result.primary = primary
        if not composition.subtasks:
            return result

        if primary is None or not getattr(primary, "id", None):
            logger.warning("Main task creation did not return an ID, skipping subtask creation")
            result.skipped_reason = "primary task has no id"
            return result

        resolved = [d.model_copy(update={"parent_task_id": primary.id}) for d in composition.subtasks]
        outcomes = await asyncio.gather(*(self._create_subtask(d, store, user_id) for d in resolved))
        result.subtasks = list(outcomes)

        failed = len(result.failed_subtasks)
        if failed:
            logger.warning(f"{failed}/{len(outcomes)} subtasks of {primary.id} failed")
        return result

    async def _create_subtask(self, draft: SubtaskDraft, store: TaskStore, user_id: str) -> SubtaskOutcome:
        if not draft.is_resolved:
            raise ValueError("Subtask has no resolved parent task id")
        try:
            record = await store.create_task(draft, user_id)
        except Exception as e:
            logger.error(f"Error creating subtask {draft.task!r}: {e}")
            return SubtaskOutcome(draft=draft, error=str(e))
        return SubtaskOutcome(draft=draft, record=record)

    async def replay(self, draft: TaskDraft, store: TaskStore, user_id: str = "default") -> TaskRecord:
        """Retry action for a failed persistence call: send the same draft again."""
        if isinstance(draft, SubtaskDraft) and not draft.is_resolved:
            raise ValueError("Subtask has no resolved parent task id")
        return await store.create_task(draft, user_id)
