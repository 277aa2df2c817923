import pytest

from extraction.heuristics import HeuristicParser, calculate_confidence, clean_task_name, infer_category


def test_call_sarah_tomorrow_at_3pm():
    parsed = HeuristicParser().parse("Call Sarah tomorrow at 3pm")
    assert parsed.task_name == "Call Sarah"
    assert parsed.date == "tomorrow"
    assert parsed.time == "3pm"
    assert parsed.people == ["Sarah"]
    assert parsed.category == "personal"
    assert parsed.priority == "medium"
    assert parsed.confidence >= 0.8
    assert parsed.model_backed is False


def test_urgent_prefix_sets_high_priority_and_tag():
    parsed = HeuristicParser().parse("urgent: finish report")
    assert parsed.priority == "high"
    assert "urgent" in parsed.tags
    assert parsed.category == "work"


def test_meeting_with_person_on_weekday():
    parsed = HeuristicParser().parse("Meet with John on Friday morning")
    assert parsed.date == "Friday"
    assert parsed.time == "morning"
    assert parsed.people == ["John"]
    assert parsed.task_name == "Meet"


def test_person_followed_by_capitalised_date_is_removed_from_name():
    parsed = HeuristicParser().parse("Lunch with Sarah Friday")
    assert parsed.people == ["Sarah"]
    assert parsed.date == "Friday"
    assert parsed.task_name == "Lunch"


def test_low_priority_keyword():
    parsed = HeuristicParser().parse("clean the garage when possible")
    assert parsed.priority == "low"


def test_parse_is_pure():
    parser = HeuristicParser()
    text = "Email the client about the project deadline next week"
    assert parser.parse(text) == parser.parse(text)


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "x",
        "buy",
        "URGENT ASAP critical important high priority",
        "Lunch with Anna and Bob Smith and me on 12/24 at 12:30pm",
        "pay taxes by April 15th",
        "someday maybe learn the piano eventually",
    ],
)
def test_confidence_and_priority_stay_in_range(text):
    parsed = HeuristicParser().parse(text)
    assert 0.0 <= parsed.confidence <= 1.0
    assert parsed.priority in {"low", "medium", "high"}
    assert parsed.people is not None
    assert parsed.tags is not None


def test_empty_input_keeps_text_and_base_confidence():
    parsed = HeuristicParser().parse("")
    assert parsed.task_name == ""
    assert parsed.confidence == 0.5


def test_confidence_is_capped():
    assert calculate_confidence("a long enough text", "today", "9am", 3) == 1.0
    assert calculate_confidence("short", None, None, 0) == 0.5


def test_clean_task_name_strips_dangling_words_and_leading_verb():
    assert clean_task_name("Call Sarah   at ") == "Call Sarah"
    assert clean_task_name("Schedule dentist appointment on") == "dentist appointment"


def test_unknown_words_fall_back_to_general():
    assert infer_category("water the plants") == "general"
