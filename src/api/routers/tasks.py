import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field, ValidationError

from api.dependencies import get_composer, get_task_store
from api.metrics import REQUESTS_TOTAL, SUBTASKS_CREATED_TOTAL, TASKS_STORED
from composition.composer import TaskComposer
from smart_todo.models import CamelModel, ParsedTask, Priority, SubtaskDraft, TaskDraft
from storage.task_store import TaskNotFound, TaskStore

router = APIRouter()
logger = logging.getLogger(__name__)

DEFAULT_USER_ID = "default"


class CreateTaskIn(CamelModel):
    task: str
    project_id: Optional[str] = None
    date: str = ""
    priority: Optional[Priority] = None
    ai_enhanced: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)
    parent_task_id: Optional[str] = None
    user_id: str = DEFAULT_USER_ID


class ComposeIn(CamelModel):
    raw_input: str
    parsed: Optional[ParsedTask] = None
    selected: List[int] = Field(default_factory=list)
    suggestions: Optional[List[Any]] = None
    user_id: str = DEFAULT_USER_ID


async def _refresh_gauge(store: TaskStore) -> None:
    TASKS_STORED.set(await store.count_tasks())


@router.get("/tasks")
async def get_tasks(
    user_id: str = DEFAULT_USER_ID,
    store: TaskStore = Depends(get_task_store),
) -> dict:
    tasks = await store.list_tasks(user_id)
    return {"tasks": [t.to_wire() for t in tasks], "total": len(tasks)}


@router.post("/tasks", status_code=201)
async def create_task(
    payload: CreateTaskIn,
    store: TaskStore = Depends(get_task_store),
    composer: TaskComposer = Depends(get_composer),
) -> dict:
    fields = payload.model_dump(exclude={"user_id", "parent_task_id"}, exclude_none=True)
    fields.setdefault("project_id", composer.project_id)
    try:
        if payload.parent_task_id:
            draft = SubtaskDraft(parent_task_id=payload.parent_task_id, **fields)
        else:
            draft = TaskDraft(**fields)
        record = await store.create_task(draft, payload.user_id)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid task: {e.errors()[0]['msg']}")
    except TaskNotFound:
        raise HTTPException(status_code=404, detail=f"Parent task {payload.parent_task_id} not found")

    REQUESTS_TOTAL.labels(endpoint="/tasks", status="created").inc()
    await _refresh_gauge(store)
    return {"status": "created", "task": record.to_wire()}


@router.patch("/tasks/{task_id}")
async def update_task(
    task_id: str,
    patch: Dict[str, Any],
    store: TaskStore = Depends(get_task_store),
) -> dict:
    try:
        record = await store.update_task(task_id, patch)
    except TaskNotFound:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid update: {e.errors()[0]['msg']}")
    return {"status": "updated", "task": record.to_wire()}


@router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    store: TaskStore = Depends(get_task_store),
) -> dict:
    try:
        await store.delete_task(task_id)
    except TaskNotFound:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    await _refresh_gauge(store)
    return {"status": "deleted", "id": task_id}


@router.post("/tasks/compose")
async def compose_tasks(
    payload: ComposeIn,
    store: TaskStore = Depends(get_task_store),
    composer: TaskComposer = Depends(get_composer),
) -> dict:
    """
    Create the main task and the selected suggestions as its subtasks.
    Subtasks are only sent once the main task has an id; each one may fail on its own.
    """
    try:
        composition = composer.compose(payload.raw_input, payload.parsed, payload.selected, payload.suggestions)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    result = await composer.dispatch(composition, store, payload.user_id)
    if result.primary_error is not None:
        REQUESTS_TOTAL.labels(endpoint="/tasks/compose", status="error").inc()
        raise HTTPException(status_code=500, detail=f"Failed to create task: {result.primary_error}")

    for outcome in result.subtasks:
        SUBTASKS_CREATED_TOTAL.labels(status="ok" if outcome.ok else "failed").inc()
    if result.skipped_reason:
        SUBTASKS_CREATED_TOTAL.labels(status="skipped").inc(len(composition.subtasks))

    REQUESTS_TOTAL.labels(endpoint="/tasks/compose", status="created").inc()
    await _refresh_gauge(store)
    return result.to_wire()
