from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from smart_todo.models import Feature

SYSTEM_PROMPT = (
    "You are an expert AI assistant specializing in task management and productivity. "
    "Always respond with valid JSON only."
)

SMART_PARSE_PROMPT = """You are an expert task parser. Parse this natural language input into structured task data.

User input: "{user_input}"

Extract and return JSON with these fields:
- taskName: The core task (cleaned up)
- date: Any date mentioned (relative or absolute) or null
- time: Any time mentioned or null
- priority: "high" | "medium" | "low" based on urgency keywords
- people: Array of people mentioned
- category: Inferred category (work, personal, shopping, health, finance, general)
- tags: Relevant tags
- estimatedDuration: Estimated time needed, e.g. "30 minutes"
- confidence: Your confidence in parsing (0-1)
- suggestions: Array of short, actionable subtask suggestions

Respond only with valid JSON."""

TASK_BREAKDOWN_PROMPT = """Break down this complex task into actionable subtasks.

Task: "{user_input}"

Return JSON with:
- breakdown: Array of subtasks with {{"task", "priority", "estimatedTime"}}
- totalEstimatedTime: Overall time estimate
- dependencies: Any task dependencies
- recommendations: Helpful tips

Respond only with valid JSON."""

SMART_PRIORITIZE_PROMPT = """Analyze and prioritize these tasks intelligently.

Tasks: {tasks}

Return JSON with:
- prioritizedTasks: Tasks with "aiPriority" and "reasoning"
- insights: Strategic insights about the task list
- recommendations: Productivity recommendations

Respond only with valid JSON."""

CONTEXTUAL_SUGGESTIONS_PROMPT = """Provide contextual suggestions for this task.

Task: "{user_input}"
Context: {context}

Return JSON with:
- suggestions: Array of helpful suggestions
- category: The task category
- relatedActions: Recommended follow-up actions
- bestPractices: Relevant best practices

Respond only with valid JSON."""

SMART_SCHEDULING_PROMPT = """Provide smart scheduling recommendations.

Task: "{user_input}"
Context: {context}

Return JSON with:
- optimalTime: Best time to do this task
- duration: Recommended duration
- preparation: Prep time needed
- bufferTime: Recommended buffer
- conflicts: Potential scheduling conflicts
- alternatives: Alternative time slots
- reminders: Suggested reminders

Respond only with valid JSON."""


def _default_templates() -> Dict[Feature, str]:
    return {
        Feature.SMART_PARSE: SMART_PARSE_PROMPT,
        Feature.TASK_BREAKDOWN: TASK_BREAKDOWN_PROMPT,
        Feature.SMART_PRIORITIZE: SMART_PRIORITIZE_PROMPT,
        Feature.CONTEXTUAL_SUGGESTIONS: CONTEXTUAL_SUGGESTIONS_PROMPT,
        Feature.SMART_SCHEDULING: SMART_SCHEDULING_PROMPT,
    }


@dataclass
class PromptTemplates:
    """Per-feature prompt templates.

    Templates are `str.format` strings; available fields are `user_input`,
    `context` (JSON) and `tasks` (JSON, the task list for prioritization).
    """

    system: str = SYSTEM_PROMPT
    templates: Dict[Feature, str] = field(default_factory=_default_templates)

    def render(self, feature: Feature, user_input: str, context: Optional[Dict[str, Any]] = None) -> str:
        context = context or {}
        template = self.templates.get(feature) or self.templates[Feature.SMART_PARSE]
        tasks = context.get("tasks") or [user_input]
        return template.format(
            user_input=user_input,
            context=json.dumps(context, default=str),
            tasks=json.dumps(tasks, default=str),
        )
