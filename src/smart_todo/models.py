from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

Priority = Literal["low", "medium", "high"]
PRIORITIES = ("low", "medium", "high")

DEFAULT_CATEGORY = "general"
DEFAULT_DURATION = "30 minutes"
DEFAULT_CONFIDENCE = 0.5


class Feature(str, Enum):
    SMART_PARSE = "smart-parse"
    TASK_BREAKDOWN = "task-breakdown"
    SMART_PRIORITIZE = "smart-prioritize"
    CONTEXTUAL_SUGGESTIONS = "contextual-suggestions"
    SMART_SCHEDULING = "smart-scheduling"

    @classmethod
    def coerce(cls, value: Any) -> "Feature":
        """Unknown feature names are treated as smart-parse."""
        try:
            return cls(value)
        except ValueError:
            return cls.SMART_PARSE


class CamelModel(BaseModel):
    """Wire models speak camelCase, Python code uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


def normalize_priority(value: Any) -> str:
    if isinstance(value, str):
        v = value.strip().lower()
        if v in PRIORITIES:
            return v
    return "medium"


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (str, dict)):
        value = [value]
    out: List[str] = []
    for item in value:
        if item is None:
            continue
        if isinstance(item, dict):
            # models sometimes return suggestion objects instead of strings
            item = item.get("task") or item.get("title") or item.get("name")
            if not item:
                continue
        text = str(item).strip()
        if text:
            out.append(text)
    return out


class RawInput(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    text: str
    feature: Feature = Feature.SMART_PARSE


class ParsedTask(CamelModel):
    task_name: str
    date: Optional[str] = None
    time: Optional[str] = None
    priority: Priority = "medium"
    people: List[str] = Field(default_factory=list)
    category: str = DEFAULT_CATEGORY
    tags: List[str] = Field(default_factory=list)
    estimated_duration: str = DEFAULT_DURATION
    suggestions: List[str] = Field(default_factory=list)
    confidence: float = DEFAULT_CONFIDENCE

    model_backed: bool = False
    cached: bool = False
    fast_response: bool = False

    @field_validator("priority", mode="before")
    @classmethod
    def priority_in_enum(cls, v: Any) -> str:
        return normalize_priority(v)

    @field_validator("confidence", mode="before")
    @classmethod
    def confidence_in_range(cls, v: Any) -> float:
        try:
            c = float(v)
        except (TypeError, ValueError):
            return DEFAULT_CONFIDENCE
        if c != c:  # NaN
            return DEFAULT_CONFIDENCE
        return min(max(c, 0.0), 1.0)

    @field_validator("people", "tags", "suggestions", mode="before")
    @classmethod
    def lists_never_null(cls, v: Any) -> List[str]:
        return _as_str_list(v)

    @field_validator("category", mode="before")
    @classmethod
    def category_default(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            return DEFAULT_CATEGORY
        return str(v).strip().lower()

    @field_validator("estimated_duration", mode="before")
    @classmethod
    def duration_default(cls, v: Any) -> str:
        if v is None or v == "":
            return DEFAULT_DURATION
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return f"{int(v)} minutes"
        return str(v)

    @field_validator("date", "time", mode="before")
    @classmethod
    def blank_is_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @classmethod
    def from_payload(
        cls,
        data: Optional[Dict[str, Any]],
        original_text: str,
        *,
        confidence: Any = None,
        model_backed: bool = False,
    ) -> "ParsedTask":
        """Build a ParsedTask from loosely-shaped model output.

        Missing optional fields fall back to their defaults so the result always
        satisfies the model invariants, whatever the model left out.
        """
        data = data or {}
        name = data.get("taskName") or data.get("task_name") or data.get("task") or ""
        if not isinstance(name, str) or not name.strip():
            name = original_text.strip() or original_text
        if confidence is None:
            confidence = data.get("confidence")
        return cls(
            task_name=name.strip(),
            date=data.get("date"),
            time=data.get("time"),
            priority=data.get("priority"),
            people=data.get("people"),
            category=data.get("category"),
            tags=data.get("tags"),
            estimated_duration=data.get("estimatedDuration", data.get("estimated_duration")),
            suggestions=data.get("suggestions"),
            confidence=confidence,
            model_backed=model_backed,
        )


class TaskDraft(CamelModel):
    task: str = Field(..., min_length=1)
    project_id: str = "1"
    date: str = ""
    priority: Priority = "medium"
    ai_enhanced: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("task")
    @classmethod
    def task_not_blank(cls, v: str) -> str:
        v2 = v.strip()
        if not v2:
            raise ValueError("task must not be blank")
        return v2

    @field_validator("priority", mode="before")
    @classmethod
    def priority_in_enum(cls, v: Any) -> str:
        return normalize_priority(v)


class SubtaskDraft(TaskDraft):
    priority: Priority = "low"
    ai_enhanced: bool = True
    # unresolved until the primary task has been persisted
    parent_task_id: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def priority_in_enum(cls, v: Any) -> str:
        if v is None:
            return "low"
        return normalize_priority(v)

    @property
    def is_resolved(self) -> bool:
        return bool(self.parent_task_id)


class TaskRecord(TaskDraft):
    id: str
    user_id: str = "default"
    parent_task_id: Optional[str] = None
    completed: bool = False
    created_at: datetime = Field(default_factory=datetime.now)


class Composition(CamelModel):
    primary: TaskDraft
    subtasks: List[SubtaskDraft] = Field(default_factory=list)


class SubtaskOutcome(CamelModel):
    draft: SubtaskDraft
    record: Optional[TaskRecord] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.record is not None


class DispatchResult(CamelModel):
    primary_draft: TaskDraft
    primary: Optional[TaskRecord] = None
    primary_error: Optional[str] = None
    subtasks: List[SubtaskOutcome] = Field(default_factory=list)
    skipped_reason: Optional[str] = None

    @property
    def failed_subtasks(self) -> List[SubtaskOutcome]:
        return [s for s in self.subtasks if not s.ok]
