from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from extraction.heuristics import generate_suggestions
from smart_todo.models import Feature, ParsedTask

logger = logging.getLogger(__name__)

QUICK_MATCH_CONFIDENCE = 0.9

QuickRule = Tuple[str, Dict[str, Any]]

# Ordered; the first matching prefix wins.
DEFAULT_RULES: Tuple[QuickRule, ...] = (
    ("buy ", {"category": "shopping", "tags": ["shopping"], "estimated_duration": "15 minutes"}),
    ("purchase ", {"category": "shopping", "tags": ["shopping"], "estimated_duration": "15 minutes"}),
    ("call ", {"category": "personal", "tags": ["meeting"], "estimated_duration": "30 minutes"}),
    ("email ", {"category": "work", "tags": ["communication"], "estimated_duration": "15 minutes"}),
    ("meeting ", {"category": "work", "tags": ["meeting"], "estimated_duration": "1 hour"}),
    ("pay ", {"category": "finance", "tags": ["finance"], "priority": "high", "estimated_duration": "15 minutes"}),
)


class QuickMatcher:
    """Literal-prefix shortcut that answers common inputs without any model call."""

    def __init__(self, rules: Sequence[QuickRule] = DEFAULT_RULES):
        self.rules = tuple((prefix.lower(), dict(defaults)) for prefix, defaults in rules)

    def try_match(self, text: str, feature: Union[Feature, str] = Feature.SMART_PARSE) -> Optional[ParsedTask]:
        if Feature.coerce(feature) is not Feature.SMART_PARSE or not text:
            return None

        stripped = text.strip()
        lower = stripped.lower()
        for prefix, defaults in self.rules:
            if not lower.startswith(prefix):
                continue
            task_name = stripped[len(prefix):].strip()
            if not task_name:
                continue

            category = defaults.get("category", "general")
            logger.debug(f"Quick match on prefix {prefix!r}")
            return ParsedTask(
                task_name=task_name,
                priority=defaults.get("priority", "medium"),
                category=category,
                tags=list(defaults.get("tags", [])),
                estimated_duration=defaults.get("estimated_duration"),
                suggestions=generate_suggestions(task_name, category),
                confidence=QUICK_MATCH_CONFIDENCE,
                fast_response=True,
            )
        return None
