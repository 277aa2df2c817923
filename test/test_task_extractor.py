import asyncio

import pytest

from conftest import FakeModel
from extraction.task_extractor import SmartParser
from llm.schemas import BreakdownResult, SuggestionsResult
from smart_todo.errors import AIErrorKind, ModelError
from smart_todo.models import Feature


def test_without_model_uses_local_rules():
    parsed = asyncio.run(SmartParser().parse("Call Sarah tomorrow at 3pm"))
    assert parsed.task_name == "Call Sarah"
    assert parsed.model_backed is False


def test_quick_match_needs_no_model_call():
    model = FakeModel()
    parsed = asyncio.run(SmartParser(model=model).parse("buy milk"))
    assert parsed.fast_response is True
    assert model.calls == []


def test_model_results_are_cached():
    model = FakeModel()
    parser = SmartParser(model=model)

    async def scenario():
        first = await parser.parse("finish quarterly report")
        second = await parser.parse("  Finish Quarterly Report ")
        return first, second

    first, second = asyncio.run(scenario())
    assert first.model_backed is True and first.cached is False
    assert second.cached is True
    assert model.calls == ["finish quarterly report"]


def test_background_failure_degrades_to_local_rules():
    model = FakeModel(error=ModelError("boom", AIErrorKind.API_ERROR, status=500))
    parser = SmartParser(model=model)
    parsed = asyncio.run(parser.parse("urgent: finish report"))
    assert parsed.priority == "high"
    assert parsed.model_backed is False
    # local answers are not cached
    assert len(parser.cache) == 0


def test_explicit_parse_propagates_non_timeout_errors():
    model = FakeModel(error=ModelError("slow down", AIErrorKind.RATE_LIMIT_ERROR, status=429))
    with pytest.raises(ModelError) as exc:
        asyncio.run(SmartParser(model=model).parse("finish the report", explicit=True))
    assert exc.value.kind is AIErrorKind.RATE_LIMIT_ERROR


def test_timeout_is_swallowed_even_when_explicit():
    model = FakeModel(error=ModelError("Request timeout", AIErrorKind.TIMEOUT_ERROR))
    parsed = asyncio.run(SmartParser(model=model).parse("finish the report", explicit=True))
    assert parsed.task_name == "finish the report"


def test_timeout_can_be_reraised():
    model = FakeModel(error=ModelError("Request timeout", AIErrorKind.TIMEOUT_ERROR))
    with pytest.raises(ModelError):
        asyncio.run(SmartParser(model=model).parse("finish the report", degrade_on_timeout=False))


def test_features_without_model_are_answered_locally():
    result = asyncio.run(SmartParser().run_feature(Feature.TASK_BREAKDOWN, "launch product"))
    assert isinstance(result, BreakdownResult)
    assert len(result.breakdown) == 6
    assert result.ai_powered is False

    result = asyncio.run(SmartParser().run_feature("contextual-suggestions", "write a blog post"))
    assert isinstance(result, SuggestionsResult)
    assert result.category == "blog post"


def test_feature_errors_propagate():
    model = FakeModel(error=ModelError("Request timeout", AIErrorKind.TIMEOUT_ERROR))
    with pytest.raises(ModelError):
        asyncio.run(SmartParser(model=model).run_feature(Feature.TASK_BREAKDOWN, "launch product"))


def test_feature_results_are_cached():
    model = FakeModel()
    parser = SmartParser(model=model)

    async def scenario():
        await parser.run_feature(Feature.TASK_BREAKDOWN, "launch product")
        return await parser.run_feature(Feature.TASK_BREAKDOWN, "launch product")

    assert asyncio.run(scenario()).cached is True
    assert model.calls == ["launch product"]
