import json

from extraction.feature_processor import FeatureProcessor
from llm.llm_client import LLMClient
from llm.providers.mock_provider import MockProvider


def test_local_smart_parse():
    out = FeatureProcessor().process("Call Sarah tomorrow at 3pm", "smart-parse")
    assert out["success"] is True
    assert out["aiPowered"] is False
    assert out["parsed"]["taskName"] == "Call Sarah"
    assert out["parsed"]["people"] == ["Sarah"]
    assert out["confidence"] >= 0.8
    assert "modelBacked" not in out["parsed"]


def test_unknown_feature_is_treated_as_smart_parse():
    out = FeatureProcessor().process("urgent: finish report", "does-not-exist")
    assert out["parsed"]["priority"] == "high"


def test_local_breakdown_known_and_generic():
    processor = FeatureProcessor()
    known = processor.process("Organize team retreat", "task-breakdown")
    assert len(known["breakdown"]) == 6
    assert known["totalEstimatedTime"] == "1-2 days"

    generic = processor.process("repaint the fence", "task-breakdown")
    assert [b["priority"] for b in generic["breakdown"]] == ["medium", "high", "low"]
    assert generic["originalTask"] == "repaint the fence"


def test_local_prioritize_uses_context_tasks():
    out = FeatureProcessor().process(
        "prioritize", "smart-prioritize", {"tasks": [{"title": "Client presentation"}, "someday clean attic"]}
    )
    assert [t["aiPriority"] for t in out["prioritizedTasks"]] == ["high", "low"]
    assert out["insights"][0].startswith("2 tasks analyzed")


def test_local_scheduling_reports_conflicts():
    busy = {"existingTasks": [{}] * 6}
    out = FeatureProcessor().process("team meeting", "smart-scheduling", busy)
    assert out["recommendations"]["bestTime"].startswith("10:00 AM")
    assert out["recommendations"]["duration"] == "1 hour"
    assert "busy" in out["scheduling"]["conflicts"]
    assert out["scheduling"]["bufferTime"] == "15 minutes before and after"


def test_model_smart_parse(fake_provider_factory):
    provider = fake_provider_factory(json.dumps({"taskName": "Book flights", "priority": "high", "confidence": 0.95}))
    out = FeatureProcessor(llm_client=LLMClient(provider)).process("book flights asap", "smart-parse")
    assert out["aiPowered"] is True
    assert out["parsed"]["taskName"] == "Book flights"
    assert out["confidence"] == 0.95


def test_model_failure_falls_back_to_local_rules(fake_provider_factory):
    provider = fake_provider_factory("the model rambled instead of answering")
    out = FeatureProcessor(llm_client=LLMClient(provider)).process("urgent: finish report", "smart-parse")
    assert out["aiPowered"] is False
    assert out["parsed"]["priority"] == "high"
    assert provider.calls == 1


def test_unexpected_model_failure_falls_back(fake_provider_factory):
    provider = fake_provider_factory(error=RuntimeError("socket exploded"))
    out = FeatureProcessor(llm_client=LLMClient(provider)).process("launch product", "task-breakdown")
    assert out["aiPowered"] is False
    assert len(out["breakdown"]) == 6


def test_model_scheduling_is_nested(fake_provider_factory):
    provider = fake_provider_factory(
        json.dumps({"optimalTime": "9 AM", "duration": "45 minutes", "alternatives": ["Thursday"], "bufferTime": "10m"})
    )
    out = FeatureProcessor(llm_client=LLMClient(provider)).process("dentist", "smart-scheduling")
    assert out["aiPowered"] is True
    assert out["recommendations"]["bestTime"] == "9 AM"
    assert out["scheduling"]["alternatives"] == ["Thursday"]
    assert out["scheduling"]["bufferTime"] == "10m"


def test_mock_provider_breakdown():
    out = FeatureProcessor(llm_client=LLMClient(MockProvider())).process("move house", "task-breakdown")
    assert out["aiPowered"] is True
    assert len(out["breakdown"]) == 3
    assert out["originalTask"] == "move house"
