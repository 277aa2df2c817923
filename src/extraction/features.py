"""
Rule-based answers for every processor feature.

These produce the same wire shape as the model-backed path so the processor
endpoint can fall back to them transparently.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from extraction.heuristics import HeuristicParser, estimate_duration
from smart_todo.models import Feature

KNOWN_BREAKDOWNS: Dict[str, List[Dict[str, str]]] = {
    "organize team retreat": [
        {"task": "Define budget and constraints", "priority": "high", "estimatedTime": "1 hour"},
        {"task": "Research and book venue", "priority": "high", "estimatedTime": "3 hours"},
        {"task": "Plan agenda and activities", "priority": "medium", "estimatedTime": "2 hours"},
        {"task": "Send invitations to team", "priority": "medium", "estimatedTime": "30 minutes"},
        {"task": "Arrange catering/meals", "priority": "medium", "estimatedTime": "1 hour"},
        {"task": "Prepare materials and supplies", "priority": "low", "estimatedTime": "1 hour"},
    ],
    "launch product": [
        {"task": "Finalize product features", "priority": "high", "estimatedTime": "1 week"},
        {"task": "Complete testing and QA", "priority": "high", "estimatedTime": "3 days"},
        {"task": "Prepare marketing materials", "priority": "high", "estimatedTime": "2 days"},
        {"task": "Set up analytics and tracking", "priority": "medium", "estimatedTime": "4 hours"},
        {"task": "Plan launch event/announcement", "priority": "medium", "estimatedTime": "1 day"},
        {"task": "Monitor initial user feedback", "priority": "low", "estimatedTime": "Ongoing"},
    ],
}

PRIORITY_KEYWORDS: Dict[str, List[str]] = {
    "urgent": ["urgent", "asap", "deadline", "due", "critical", "emergency"],
    "high": ["important", "meeting", "presentation", "client", "boss", "interview"],
    "medium": ["plan", "prepare", "research", "review", "organize"],
    "low": ["someday", "maybe", "when possible", "eventually", "nice to have"],
}

CONTEXT_SUGGESTIONS: Dict[str, List[str]] = {
    "blog post": [
        "Research trending topics in your niche",
        "Create an outline with key points",
        "Find relevant images and graphics",
        "Optimize for SEO keywords",
        "Schedule social media promotion",
    ],
    "meeting": [
        "Prepare agenda items",
        "Send calendar invites",
        "Book conference room",
        "Prepare presentation materials",
        "Share pre-meeting documents",
    ],
    "project": [
        "Define project scope and goals",
        "Identify key stakeholders",
        "Create project timeline",
        "Set up collaboration tools",
        "Plan regular check-ins",
    ],
}

GENERIC_SUGGESTIONS = [
    "Break this down into smaller steps",
    "Set a deadline for completion",
    "Identify resources you might need",
    "Consider who else might be involved",
]

RELATED_ACTIONS = ["Add to calendar", "Set reminder", "Create checklist", "Share with team"]


def smart_parse(text: str, parser: Optional[HeuristicParser] = None) -> Dict[str, Any]:
    parsed = (parser or HeuristicParser()).parse(text)
    wire = parsed.to_wire()
    confidence = wire.pop("confidence")
    for key in ("modelBacked", "cached", "fastResponse"):
        wire.pop(key, None)
    return {"success": True, "parsed": wire, "confidence": confidence, "aiPowered": False}


def breakdown_task(task: str) -> Dict[str, Any]:
    lower = task.lower().strip()
    for key, steps in KNOWN_BREAKDOWNS.items():
        if key in lower or (lower and lower in key):
            return {
                "success": True,
                "breakdown": [dict(s) for s in steps],
                "originalTask": task,
                "totalEstimatedTime": "1-2 days" if len(steps) > 3 else "2-4 hours",
                "recommendations": [],
                "aiPowered": False,
            }

    return {
        "success": True,
        "breakdown": [
            {"task": f"Research and plan for: {task}", "priority": "medium", "estimatedTime": "30 minutes"},
            {"task": f"Execute main work for: {task}", "priority": "high", "estimatedTime": "1 hour"},
            {"task": f"Review and finalize: {task}", "priority": "low", "estimatedTime": "15 minutes"},
        ],
        "originalTask": task,
        "totalEstimatedTime": "2-4 hours",
        "recommendations": ["AI-generated breakdown based on task analysis"],
        "aiPowered": False,
    }


def _task_text(task: Any) -> str:
    if isinstance(task, dict):
        return str(task.get("title") or task.get("task") or "")
    return str(task)


def _keyword_priority(task: Any):
    text = _task_text(task).lower()
    for priority, words in PRIORITY_KEYWORDS.items():
        for word in words:
            if word in text:
                return priority, f'Marked as {priority} priority due to keyword: "{word}"'
    return "medium", "Default medium priority assigned"


def smart_prioritize(tasks: List[Any]) -> Dict[str, Any]:
    prioritized = []
    for task in tasks:
        item = dict(task) if isinstance(task, dict) else {"title": str(task)}
        item["aiPriority"], item["reasoning"] = _keyword_priority(task)
        prioritized.append(item)
    return {
        "success": True,
        "prioritizedTasks": prioritized,
        "insights": [
            f"{len(tasks)} tasks analyzed for intelligent prioritization",
            "Consider tackling high-priority items during your peak energy hours",
            "Group similar tasks together for better efficiency",
        ],
        "aiPowered": False,
    }


def contextual_suggestions(text: str) -> Dict[str, Any]:
    lower = text.lower()
    matched = next((key for key in CONTEXT_SUGGESTIONS if key in lower), None)
    return {
        "success": True,
        "suggestions": list(CONTEXT_SUGGESTIONS[matched]) if matched else list(GENERIC_SUGGESTIONS),
        "category": matched or "general",
        "relatedActions": list(RELATED_ACTIONS),
        "bestPractices": [],
        "aiPowered": False,
    }


def _optimal_time(lower: str) -> str:
    if "meeting" in lower or "call" in lower:
        return "10:00 AM - Best for focused discussions"
    if "creative" in lower or "design" in lower:
        return "9:00 AM - Peak creative hours"
    return "2:00 PM - Good for general tasks"


def _prep_time(lower: str) -> str:
    if "presentation" in lower:
        return "1 hour preparation time"
    if "meeting" in lower:
        return "15 minutes preparation time"
    return "5 minutes preparation time"


def smart_scheduling(text: str, context: Dict[str, Any]) -> Dict[str, Any]:
    lower = text.lower()
    existing = context.get("existingTasks") or []
    return {
        "success": True,
        "recommendations": {
            "bestTime": _optimal_time(lower),
            "duration": estimate_duration(text),
            "preparation": _prep_time(lower),
            "reminders": ["1 day before", "1 hour before", "15 minutes before"],
        },
        "scheduling": {
            "conflicts": (
                "Schedule appears busy - consider rescheduling"
                if len(existing) > 5
                else "No scheduling conflicts detected"
            ),
            "alternatives": ["Tomorrow morning", "Next week", "End of day today"],
            "bufferTime": "15 minutes before and after" if "meeting" in lower else "5 minutes buffer",
        },
        "aiPowered": False,
    }


def run_heuristic_feature(
    feature: Feature,
    user_input: str,
    context: Optional[Dict[str, Any]] = None,
    parser: Optional[HeuristicParser] = None,
) -> Dict[str, Any]:
    context = context or {}
    feature = Feature.coerce(feature)
    if feature is Feature.TASK_BREAKDOWN:
        return breakdown_task(user_input)
    if feature is Feature.SMART_PRIORITIZE:
        tasks = context.get("tasks")
        return smart_prioritize(tasks if isinstance(tasks, list) else [user_input])
    if feature is Feature.CONTEXTUAL_SUGGESTIONS:
        return contextual_suggestions(user_input)
    if feature is Feature.SMART_SCHEDULING:
        return smart_scheduling(user_input, context)
    return smart_parse(user_input, parser)
