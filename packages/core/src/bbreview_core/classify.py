"""Classification of free-text requests addressed to the assistant."""

from __future__ import annotations

import enum
import re


class RequestType(enum.Enum):
    ACTIONABLE = "actionable"
    INFORMATIONAL = "informational"


# Checked in order, actionable first: "can you explain and fix this?" must
# grant write access even though it also reads like a question.
ACTIONABLE_PATTERNS = (
    re.compile(r"\b(fix|change|update|add|remove|delete|modify|refactor|implement|create)\b"),
    re.compile(r"\b(make it|can you|please|could you).*(change|fix|add|update)"),
    re.compile(r"\b(this should|it should|needs to)\b"),
)

INFORMATIONAL_PATTERNS = (
    re.compile(r"\b(what|why|how|explain|review|check|look at|analyze)\b"),
    re.compile(r"\b(does this|is this|are there)\b"),
    re.compile(r"\?$"),
)


def classify_request(text: str) -> RequestType:
    """Return ACTIONABLE for requests that ask for code changes, else INFORMATIONAL.

    Anything that matches neither pattern set is treated as informational, so
    an ambiguous request never gets write access.
    """
    lowered = text.lower()
    if any(p.search(lowered) for p in ACTIONABLE_PATTERNS):
        return RequestType.ACTIONABLE
    if any(p.search(lowered) for p in INFORMATIONAL_PATTERNS):
        return RequestType.INFORMATIONAL
    return RequestType.INFORMATIONAL


def extract_request(comment_text: str, trigger_phrase: str) -> str:
    """Return the text following the first (case-insensitive) trigger phrase.

    Falls back to the whole comment when the trigger is missing or nothing
    follows it, so the result is never empty for a non-empty comment.
    """
    match = re.search(re.escape(trigger_phrase), comment_text, re.IGNORECASE)
    if match is None:
        return comment_text
    remainder = comment_text[match.end() :].strip()
    return remainder or comment_text
