import pytest

from smart_todo.models import Feature, ParsedTask, SubtaskDraft, TaskDraft


def test_parsed_task_defaults():
    p = ParsedTask(task_name="Test")
    assert p.priority == "medium"
    assert p.category == "general"
    assert p.estimated_duration == "30 minutes"
    assert p.people == [] and p.tags == [] and p.suggestions == []


def test_confidence_is_clamped():
    assert ParsedTask(task_name="x", confidence=7).confidence == 1.0
    assert ParsedTask(task_name="x", confidence=-2).confidence == 0.0
    assert ParsedTask(task_name="x", confidence="nonsense").confidence == 0.5


def test_unknown_priority_becomes_medium():
    assert ParsedTask(task_name="x", priority="whenever").priority == "medium"
    assert ParsedTask(task_name="x", priority="HIGH").priority == "high"


def test_from_payload_fills_missing_fields():
    p = ParsedTask.from_payload(
        {"taskName": "", "people": None, "tags": None, "category": None, "estimatedDuration": 45},
        "  water plants ",
    )
    assert p.task_name == "water plants"
    assert p.people == []
    assert p.category == "general"
    assert p.estimated_duration == "45 minutes"


def test_suggestion_objects_are_flattened():
    p = ParsedTask.from_payload({"taskName": "Launch", "suggestions": [{"task": "Draft plan"}, "Book room", None]}, "Launch")
    assert p.suggestions == ["Draft plan", "Book room"]


def test_wire_format_is_camel_case():
    wire = ParsedTask(task_name="x", fast_response=True).to_wire()
    assert wire["taskName"] == "x"
    assert wire["fastResponse"] is True


def test_task_draft_rejects_blank_task():
    with pytest.raises(Exception):
        TaskDraft(task="   ")


def test_subtask_draft_defaults():
    d = SubtaskDraft(task="Book venue")
    assert d.priority == "low"
    assert d.ai_enhanced is True
    assert d.is_resolved is False


def test_unknown_feature_is_smart_parse():
    assert Feature.coerce("summarize") is Feature.SMART_PARSE
    assert Feature.coerce("task-breakdown") is Feature.TASK_BREAKDOWN
