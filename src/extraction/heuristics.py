"""
Rule-based task parser.

Used whenever no model is configured or the model call fails. Pure: the same
text always yields the same ParsedTask, and nothing here touches the network.
"""

from __future__ import annotations

import re
from typing import Dict, List, Optional, Sequence, Tuple

from smart_todo.models import DEFAULT_CATEGORY, DEFAULT_DURATION, ParsedTask

_WEEKDAYS = "monday|tuesday|wednesday|thursday|friday|saturday|sunday"
_MONTHS = (
    "january|february|march|april|may|june|july|august|"
    "september|october|november|december"
)

# Tried in order; the first pattern class that matches anywhere wins.
DATE_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\b(?:today|tomorrow|next week|next month)\b", re.I),
    re.compile(rf"\b(?:(?:next|this)\s+)?(?:{_WEEKDAYS})\b", re.I),
    re.compile(r"\b\d{1,2}/\d{1,2}(?:/\d{2,4})?\b"),
    re.compile(rf"\b(?:{_MONTHS})\s+\d{{1,2}}(?:st|nd|rd|th)?\b", re.I),
)

TIME_PATTERNS: Tuple[re.Pattern, ...] = (
    re.compile(r"\b(?:\d{1,2}:\d{2}\s?(?:am|pm)?|\d{1,2}\s?(?:am|pm))\b", re.I),
    re.compile(r"\b(?:morning|afternoon|evening|night)\b", re.I),
)

HIGH_PRIORITY = re.compile(r"\b(?:urgent|asap|important|high priority|critical)\b", re.I)
LOW_PRIORITY = re.compile(r"\b(?:low priority|when possible|eventually)\b", re.I)

_NAME = r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)*"
# Each pattern pairs with the span removed from the task name once the
# captured name has been trimmed to the person.
PERSON_PATTERNS: Tuple[Tuple[re.Pattern, str], ...] = (
    (re.compile(rf"\bwith\s+({_NAME})\b"), r"\bwith\s+{}\b"),
    (re.compile(rf"\b({_NAME})\s+and\s+me\b"), r"\b{}\s+and\s+me\b"),
)
# "Call Sarah": the name is the object of the task, so it stays in the name.
CONTACT_PATTERN = re.compile(
    r"\b(?:[Cc]all|[Ee]mail|[Tt]ext|[Mm]eet|[Mm]essage|[Vv]isit|[Aa]sk|[Rr]emind)\s+([A-Z][a-z]+)\b"
)

_NOT_NAMES = set(_WEEKDAYS.split("|")) | set(_MONTHS.split("|")) | {
    "today", "tomorrow", "tonight", "next", "this", "me", "the", "my", "team",
}

CATEGORY_KEYWORDS: Dict[str, Tuple[str, ...]] = {
    "work": ("meeting", "project", "presentation", "email", "deadline", "report", "client", "office", "standup"),
    "personal": ("call", "family", "friend", "home", "mom", "dad", "birthday", "hobby", "party"),
    "shopping": ("buy", "purchase", "shop", "grocery", "groceries", "store"),
    "health": ("doctor", "dentist", "appointment", "exercise", "gym", "medicine", "workout"),
    "finance": ("pay", "bill", "budget", "bank", "tax", "money", "invoice"),
}

TAG_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("urgent", ("urgent", "asap")),
    ("meeting", ("meeting", "call")),
    ("communication", ("email", "message")),
    ("shopping", ("buy", "purchase")),
)

DURATION_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("15 minutes", ("quick", "brief", "short")),
    ("30 minutes", ("call", "standup", "check-in")),
    ("1 hour", ("meeting", "appointment", "review")),
    ("2 hours", ("project work", "deep work", "analysis")),
    ("4 hours", ("workshop", "training", "major task")),
    ("1 day", ("project", "research", "planning")),
)

KEYWORD_SUGGESTIONS: Tuple[Tuple[str, List[str]], ...] = (
    ("meeting", ["Prepare agenda", "Send calendar invites", "Book a meeting room"]),
    ("presentation", ["Draft slides", "Rehearse the talk", "Share deck with attendees"]),
    ("call", ["Note talking points", "Confirm the phone number", "Set reminder 15 minutes before"]),
    ("email", ["Draft the key points", "Attach relevant files", "Follow up in two days"]),
    ("report", ["Collect the data", "Write a first draft", "Ask for a review"]),
)

CATEGORY_SUGGESTIONS: Dict[str, List[str]] = {
    "work": ["Set reminder 1 day before", "Prepare agenda", "Block calendar time"],
    "personal": ["Set location reminder", "Share with family", "Add to calendar"],
    "shopping": ["Add to shopping list", "Compare prices", "Check store opening hours"],
    "health": ["Set recurring reminder", "Add to calendar", "Prepare insurance info"],
    "finance": ["Check account balance", "Set payment reminder", "Save the receipt"],
}

GENERIC_SUGGESTIONS = ["Set reminder", "Add notes", "Set priority"]

LEADING_VERB = re.compile(r"^(?:plan|schedule|organize|prepare|do|complete)\s+", re.I)
DANGLING_WORDS = re.compile(r"(?:^|\s+)(?:at|on|by|for|in|from|to|this|next)$", re.I)


def _has_keyword(lower_text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}", lower_text) is not None


def _first_match(patterns: Sequence[re.Pattern], text: str) -> Optional[re.Match]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def _clean_person(name: str) -> Optional[str]:
    kept: List[str] = []
    for token in name.split():
        if token.lower() in _NOT_NAMES:
            break
        kept.append(token)
    return " ".join(kept) or None


def infer_category(text: str) -> str:
    lower = text.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(_has_keyword(lower, k) for k in keywords):
            return category
    return DEFAULT_CATEGORY


def generate_tags(text: str) -> List[str]:
    lower = text.lower()
    return [tag for tag, keywords in TAG_KEYWORDS if any(_has_keyword(lower, k) for k in keywords)]


def estimate_duration(text: str) -> str:
    lower = text.lower()
    for duration, keywords in DURATION_KEYWORDS:
        if any(_has_keyword(lower, k) for k in keywords):
            return duration
    return DEFAULT_DURATION


def generate_suggestions(task_name: str, category: str) -> List[str]:
    lower = task_name.lower()
    for keyword, suggestions in KEYWORD_SUGGESTIONS:
        if _has_keyword(lower, keyword):
            return list(suggestions)
    return list(CATEGORY_SUGGESTIONS.get(category, GENERIC_SUGGESTIONS))


def calculate_confidence(text: str, date: Optional[str], time: Optional[str], people_count: int) -> float:
    confidence = 0.5
    if date:
        confidence += 0.2
    if time:
        confidence += 0.1
    if people_count > 0:
        confidence += 0.1
    if len(text) > 10:
        confidence += 0.1
    return round(min(confidence, 1.0), 2)


def clean_task_name(name: str) -> str:
    name = re.sub(r"\s+", " ", name).strip(" ,;:-")
    while True:
        trimmed = DANGLING_WORDS.sub("", name).strip(" ,;:-")
        if trimmed == name:
            break
        name = trimmed
    return LEADING_VERB.sub("", name)


class HeuristicParser:
    def parse(self, text: str) -> ParsedTask:
        if not text or not text.strip():
            return ParsedTask(task_name=text or "", confidence=0.5)

        name = text
        date = time = None

        match = _first_match(DATE_PATTERNS, text)
        if match:
            date = match.group(0)
            name = name.replace(date, " ", 1)

        match = _first_match(TIME_PATTERNS, text)
        if match:
            time = match.group(0)
            name = name.replace(time, " ", 1)

        if HIGH_PRIORITY.search(text):
            priority = "high"
        elif LOW_PRIORITY.search(text):
            priority = "low"
        else:
            priority = "medium"

        people: List[str] = []
        for pattern, span in PERSON_PATTERNS:
            for m in pattern.finditer(text):
                person = _clean_person(m.group(1))
                if person and person not in people:
                    people.append(person)
                    name = re.sub(span.format(re.escape(person)), " ", name, count=1)
        for m in CONTACT_PATTERN.finditer(text):
            person = _clean_person(m.group(1))
            if person and person not in people:
                people.append(person)

        category = infer_category(text)
        task_name = clean_task_name(name) or text.strip()

        return ParsedTask(
            task_name=task_name,
            date=date,
            time=time,
            priority=priority,
            people=people,
            category=category,
            tags=generate_tags(text),
            estimated_duration=estimate_duration(text),
            suggestions=generate_suggestions(task_name, category),
            confidence=calculate_confidence(text, date, time, len(people)),
        )
