import logging
from typing import Any, Dict, Optional, Protocol

from pydantic import BaseModel

from extraction.features import run_heuristic_feature
from extraction.heuristics import HeuristicParser
from extraction.quick_match import QuickMatcher
from llm.schemas import BreakdownResult, PrioritizeResult, SchedulingResult, SuggestionsResult
from smart_todo.errors import AIErrorKind, ModelError
from smart_todo.models import Feature, ParsedTask
from storage.response_cache import ResponseCache

logger = logging.getLogger(__name__)

PARSE_TIMEOUT_S = 5.0
FEATURE_TIMEOUT_S = 30.0


class ModelParser(Protocol):
    async def smart_parse(
        self, user_input: str, *, context: Optional[Dict[str, Any]] = None, timeout_s: float = PARSE_TIMEOUT_S
    ) -> ParsedTask: ...

    async def process(
        self, feature: Feature, text: str, context: Optional[Dict[str, Any]] = None, timeout_s: float = FEATURE_TIMEOUT_S
    ) -> BaseModel: ...


def _local_feature(feature: Feature, text: str, context: Dict[str, Any], parser: HeuristicParser) -> BaseModel:
    data = run_heuristic_feature(feature, text, context, parser)
    if feature is Feature.TASK_BREAKDOWN:
        return BreakdownResult.from_wire(data, text)
    if feature is Feature.SMART_PRIORITIZE:
        return PrioritizeResult.from_wire(data)
    if feature is Feature.CONTEXTUAL_SUGGESTIONS:
        return SuggestionsResult.from_wire(data)
    return SchedulingResult.from_wire(data)


class SmartParser:
    """Client-side parse pipeline: response cache, quick match, model, local rules."""

    def __init__(
        self,
        model: Optional[ModelParser] = None,
        heuristics: Optional[HeuristicParser] = None,
        quick_matcher: Optional[QuickMatcher] = None,
        cache: Optional[ResponseCache] = None,
    ):
        self.model = model
        self.heuristics = heuristics or HeuristicParser()
        self.quick_matcher = quick_matcher or QuickMatcher()
        self.cache = cache if cache is not None else ResponseCache()

    async def parse(
        self,
        text: str,
        context: Optional[Dict[str, Any]] = None,
        timeout_s: float = PARSE_TIMEOUT_S,
        explicit: bool = False,
        degrade_on_timeout: bool = True,
    ) -> ParsedTask:
        """Parse free text into a ParsedTask.

        Background (typing-triggered) parses degrade to the local rules on any
        model failure. Explicit parses only swallow timeouts. With
        `degrade_on_timeout=False` a timeout is re-raised so the caller can
        drop the preview altogether.
        """
        if not text or not text.strip():
            return self.heuristics.parse(text)

        hit = self.cache.get(Feature.SMART_PARSE, text)
        if hit is not None:
            logger.debug("Response cache hit for smart-parse")
            return hit

        quick = self.quick_matcher.try_match(text, Feature.SMART_PARSE)
        if quick is not None:
            return quick

        if self.model is None:
            return self.heuristics.parse(text)

        try:
            result = await self.model.smart_parse(text, context=context, timeout_s=timeout_s)
        except ModelError as e:
            if e.kind is AIErrorKind.TIMEOUT_ERROR:
                if not degrade_on_timeout:
                    raise
                logger.info("AI request timeout - continuing with local parsing")
                return self.heuristics.parse(text)
            if explicit:
                raise
            logger.warning(f"AI parse failed ({e.kind.value}) - continuing with local parsing: {e}")
            return self.heuristics.parse(text)

        if result.model_backed:
            self.cache.put(Feature.SMART_PARSE, text, result)
        return result

    async def run_feature(
        self,
        feature: Feature,
        text: str,
        context: Optional[Dict[str, Any]] = None,
        timeout_s: float = FEATURE_TIMEOUT_S,
    ) -> BaseModel:
        """Run one of the secondary features; failures propagate to the caller."""
        feature = Feature.coerce(feature)
        if feature is Feature.SMART_PARSE:
            return await self.parse(text, context, timeout_s, explicit=True)

        hit = self.cache.get(feature, text)
        if hit is not None:
            return hit

        if self.model is None:
            return _local_feature(feature, text, context or {}, self.heuristics)

        result = await self.model.process(feature, text, context, timeout_s)
        self.cache.put(feature, text, result)
        return result
