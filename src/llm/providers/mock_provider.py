from __future__ import annotations
import json
import re
from extraction.heuristics import HeuristicParser
from .base import LLMProvider

_QUOTED = re.compile(r'(?:User input|Task): "(.*)"')

class MockProvider(LLMProvider):
    name = "mock"

    def generate(self, *, system: str, user: str) -> str:
        """
        Returns dummy JSON responses based on the prompt content.
        """
        m = _QUOTED.search(user)
        text = m.group(1) if m else ""

        # Parse requests: answer like a model would, from the local rules
        if "expert task parser" in user:
            parsed = HeuristicParser().parse(text).to_wire()
            for key in ("modelBacked", "cached", "fastResponse"):
                parsed.pop(key, None)
            return json.dumps(parsed)

        if "Break down this complex task" in user:
            return json.dumps({
                "breakdown": [
                    {"task": f"Outline the steps for {text}", "priority": "high", "estimatedTime": "30 minutes"},
                    {"task": f"Do the main work for {text}", "priority": "medium", "estimatedTime": "2 hours"},
                    {"task": f"Wrap up {text}", "priority": "low", "estimatedTime": "15 minutes"},
                ],
                "totalEstimatedTime": "3 hours",
                "recommendations": ["Start with the riskiest step"],
            })

        if "contextual suggestions" in user:
            return json.dumps({
                "suggestions": ["Write down the goal", "Block time in your calendar"],
                "category": "general",
                "relatedActions": ["Set reminder"],
                "bestPractices": ["Keep the first step small"],
            })

        # Default fallback
        return "{}"
