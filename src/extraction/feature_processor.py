import logging
from typing import Any, Dict, Optional

from extraction.features import run_heuristic_feature
from extraction.heuristics import HeuristicParser
from llm.llm_client import LLMClient
from llm.schemas import BreakdownResult, PrioritizeResult, SchedulingResult, SuggestionsResult
from smart_todo.errors import ModelError
from smart_todo.models import Feature

logger = logging.getLogger(__name__)


def _strip_flags(wire: Dict[str, Any]) -> Dict[str, Any]:
    wire.pop("cached", None)
    wire.pop("aiPowered", None)
    return wire


class FeatureProcessor:
    """Server side of the task processor endpoint.

    Uses the model when one is configured; any model failure is logged and
    answered from the local rules instead.
    """

    def __init__(self, llm_client: Optional[LLMClient] = None, parser: Optional[HeuristicParser] = None):
        self.llm_client = llm_client
        self.parser = parser or HeuristicParser()

    @property
    def model_configured(self) -> bool:
        return self.llm_client is not None

    def process(self, user_input: str, feature: Any, context: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        feature = Feature.coerce(feature)
        context = context or {}

        if self.llm_client is not None:
            try:
                response = self._process_with_model(user_input, feature, context)
                response["aiPowered"] = True
                return response
            except ModelError as e:
                logger.warning(f"Model call failed for {feature.value} ({e.kind.value}), using local rules: {e}")
            except Exception:
                logger.exception(f"Unexpected model failure for {feature.value}, using local rules")

        return run_heuristic_feature(feature, user_input, context, self.parser)

    def _process_with_model(self, user_input: str, feature: Feature, context: Dict[str, Any]) -> Dict[str, Any]:
        if feature is Feature.SMART_PARSE:
            parsed = self.llm_client.parse_task(user_input, context)
            wire = parsed.to_wire()
            confidence = wire.pop("confidence")
            for key in ("modelBacked", "cached", "fastResponse"):
                wire.pop(key, None)
            return {"success": True, "parsed": wire, "confidence": confidence}

        data = self.llm_client.complete(feature, user_input, context)

        if feature is Feature.TASK_BREAKDOWN:
            result = BreakdownResult.from_wire(data, user_input)
            return {"success": True, **_strip_flags(result.to_wire())}

        if feature is Feature.SMART_PRIORITIZE:
            result = PrioritizeResult.from_wire(data)
            return {"success": True, **_strip_flags(result.to_wire())}

        if feature is Feature.CONTEXTUAL_SUGGESTIONS:
            result = SuggestionsResult.from_wire(data)
            return {"success": True, **_strip_flags(result.to_wire())}

        # smart-scheduling: the model answers flat, the wire format is nested
        result = SchedulingResult(
            optimal_time=data.get("optimalTime"),
            duration=data.get("duration"),
            preparation=data.get("preparation"),
            alternatives=data.get("alternatives"),
            conflicts=data.get("conflicts"),
            buffer_time=data.get("bufferTime"),
            reminders=data.get("reminders"),
        )
        return {
            "success": True,
            "recommendations": {
                "bestTime": result.optimal_time,
                "duration": result.duration,
                "preparation": result.preparation,
                "reminders": result.reminders,
            },
            "scheduling": {
                "conflicts": result.conflicts,
                "alternatives": result.alternatives,
                "bufferTime": result.buffer_time,
            },
        }
