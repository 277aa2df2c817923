"""
Persistence collaborator for tasks.

The composer only talks to the `TaskStore` primitives; `InMemoryTaskStore`
backs the API and the tests. A hosted database adapter implements the same
interface.
"""

from __future__ import annotations

import logging
import uuid
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from smart_todo.models import SubtaskDraft, TaskDraft, TaskRecord

logger = logging.getLogger(__name__)

TaskListListener = Callable[[List[TaskRecord]], None]


class TaskNotFound(KeyError):
    pass


class TaskStore(ABC):
    @abstractmethod
    async def create_task(self, draft: TaskDraft, user_id: str = "default") -> TaskRecord:
        raise NotImplementedError

    @abstractmethod
    async def update_task(self, task_id: str, patch: Dict[str, Any]) -> TaskRecord:
        raise NotImplementedError

    @abstractmethod
    async def delete_task(self, task_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def list_tasks(self, user_id: str = "default") -> List[TaskRecord]:
        raise NotImplementedError

    @abstractmethod
    async def count_tasks(self) -> int:
        """Number of stored tasks across all users."""
        raise NotImplementedError

    @abstractmethod
    def subscribe(self, user_id: str, listener: TaskListListener) -> Callable[[], None]:
        """Register `listener` for the user's full task list; returns an unsubscribe callable."""
        raise NotImplementedError


class InMemoryTaskStore(TaskStore):
    def __init__(self):
        self._tasks: Dict[str, TaskRecord] = {}
        self._listeners: Dict[str, List[TaskListListener]] = {}

    async def create_task(self, draft: TaskDraft, user_id: str = "default") -> TaskRecord:
        parent_id = draft.parent_task_id if isinstance(draft, SubtaskDraft) else None
        if parent_id is not None and parent_id not in self._tasks:
            raise TaskNotFound(parent_id)

        fields = draft.model_dump(include=set(TaskDraft.model_fields))
        record = TaskRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            parent_task_id=parent_id,
            **fields,
        )
        self._tasks[record.id] = record
        logger.info(f"Created task {record.id} ({record.task!r})")
        self._notify(user_id)
        return record

    async def update_task(self, task_id: str, patch: Dict[str, Any]) -> TaskRecord:
        current = self._tasks.get(task_id)
        if current is None:
            raise TaskNotFound(task_id)

        allowed = {k: v for k, v in patch.items() if k in {"task", "date", "priority", "completed", "metadata"}}
        updated = TaskRecord.model_validate({**current.model_dump(), **allowed})
        self._tasks[task_id] = updated
        self._notify(updated.user_id)
        return updated

    async def delete_task(self, task_id: str) -> None:
        record = self._tasks.pop(task_id, None)
        if record is None:
            raise TaskNotFound(task_id)
        # the whole subtree goes with its root
        orphans = [task_id]
        while orphans:
            parent_id = orphans.pop()
            for child_id in [t.id for t in self._tasks.values() if t.parent_task_id == parent_id]:
                del self._tasks[child_id]
                orphans.append(child_id)
        self._notify(record.user_id)

    async def list_tasks(self, user_id: str = "default") -> List[TaskRecord]:
        return self._snapshot(user_id)

    async def count_tasks(self) -> int:
        return len(self._tasks)

    def subscribe(self, user_id: str, listener: TaskListListener) -> Callable[[], None]:
        self._listeners.setdefault(user_id, []).append(listener)
        listener(self._snapshot(user_id))

        def unsubscribe() -> None:
            listeners = self._listeners.get(user_id, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def get(self, task_id: str) -> Optional[TaskRecord]:
        return self._tasks.get(task_id)

    def _snapshot(self, user_id: str) -> List[TaskRecord]:
        return sorted(
            (t for t in self._tasks.values() if t.user_id == user_id),
            key=lambda t: t.created_at,
        )

    def _notify(self, user_id: str) -> None:
        snapshot = self._snapshot(user_id)
        for listener in list(self._listeners.get(user_id, [])):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Task list listener failed")
