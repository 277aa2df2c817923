from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from smart_todo.models import CamelModel, Priority, normalize_priority


def _strings(v: Any) -> List[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v]
    return [str(x) for x in v if x is not None]


def _text(v: Any) -> Optional[str]:
    if v is None:
        return None
    if isinstance(v, (list, tuple)):
        return ", ".join(str(x) for x in v)
    return str(v)


class BreakdownItem(CamelModel):
    task: str
    priority: Priority = "medium"
    estimated_time: Optional[str] = None

    @field_validator("priority", mode="before")
    @classmethod
    def priority_in_enum(cls, v: Any) -> str:
        return normalize_priority(v)

    @field_validator("estimated_time", mode="before")
    @classmethod
    def time_as_text(cls, v: Any) -> Optional[str]:
        return _text(v)


class BreakdownResult(CamelModel):
    breakdown: List[BreakdownItem] = Field(default_factory=list)
    original_task: str = ""
    total_estimated_time: Optional[str] = None
    recommendations: List[str] = Field(default_factory=list)
    ai_powered: bool = False
    cached: bool = False

    @field_validator("breakdown", mode="before")
    @classmethod
    def items_from_strings(cls, v: Any) -> List[Any]:
        if v is None:
            return []
        return [{"task": item} if isinstance(item, str) else item for item in v]

    @field_validator("recommendations", mode="before")
    @classmethod
    def recommendations_list(cls, v: Any) -> List[str]:
        return _strings(v)

    @field_validator("total_estimated_time", mode="before")
    @classmethod
    def total_as_text(cls, v: Any) -> Optional[str]:
        return _text(v)

    @classmethod
    def from_wire(cls, data: Dict[str, Any], task: str) -> "BreakdownResult":
        return cls(
            breakdown=data.get("breakdown"),
            original_task=data.get("originalTask") or task,
            total_estimated_time=data.get("totalEstimatedTime"),
            recommendations=data.get("recommendations"),
            ai_powered=bool(data.get("aiPowered", False)),
        )


class PrioritizeResult(CamelModel):
    prioritized_tasks: List[Dict[str, Any]] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    ai_powered: bool = False
    cached: bool = False

    @field_validator("insights", mode="before")
    @classmethod
    def insights_list(cls, v: Any) -> List[str]:
        return _strings(v)

    @field_validator("prioritized_tasks", mode="before")
    @classmethod
    def tasks_list(cls, v: Any) -> List[Dict[str, Any]]:
        if v is None:
            return []
        return [t if isinstance(t, dict) else {"title": str(t)} for t in v]

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "PrioritizeResult":
        return cls(
            prioritized_tasks=data.get("prioritizedTasks"),
            insights=data.get("insights"),
            ai_powered=bool(data.get("aiPowered", False)),
        )


class SuggestionsResult(CamelModel):
    suggestions: List[str] = Field(default_factory=list)
    category: str = "general"
    related_actions: List[str] = Field(default_factory=list)
    best_practices: List[str] = Field(default_factory=list)
    ai_powered: bool = False
    cached: bool = False

    @field_validator("suggestions", "related_actions", "best_practices", mode="before")
    @classmethod
    def lists_never_null(cls, v: Any) -> List[str]:
        return _strings(v)

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "SuggestionsResult":
        return cls(
            suggestions=data.get("suggestions"),
            category=data.get("category") or "general",
            related_actions=data.get("relatedActions"),
            best_practices=data.get("bestPractices"),
            ai_powered=bool(data.get("aiPowered", False)),
        )


class SchedulingResult(CamelModel):
    optimal_time: Optional[str] = None
    duration: Optional[str] = None
    preparation: Optional[str] = None
    alternatives: List[str] = Field(default_factory=list)
    conflicts: Optional[str] = None
    buffer_time: Optional[str] = None
    reminders: List[str] = Field(default_factory=list)
    ai_powered: bool = False
    cached: bool = False

    @field_validator("optimal_time", "duration", "preparation", "conflicts", "buffer_time", mode="before")
    @classmethod
    def as_text(cls, v: Any) -> Optional[str]:
        return _text(v)

    @field_validator("alternatives", "reminders", mode="before")
    @classmethod
    def lists_never_null(cls, v: Any) -> List[str]:
        return _strings(v)

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "SchedulingResult":
        recommendations = data.get("recommendations") or {}
        scheduling = data.get("scheduling") or {}
        return cls(
            optimal_time=recommendations.get("bestTime"),
            duration=recommendations.get("duration"),
            preparation=recommendations.get("preparation"),
            reminders=recommendations.get("reminders"),
            alternatives=scheduling.get("alternatives"),
            conflicts=scheduling.get("conflicts"),
            buffer_time=scheduling.get("bufferTime"),
            ai_powered=bool(data.get("aiPowered", False)),
        )
