"""Tests for request classification and trigger extraction."""

import pytest

from bbreview_core.classify import RequestType, classify_request, extract_request

ACTIONABLE = RequestType.ACTIONABLE
INFORMATIONAL = RequestType.INFORMATIONAL


class TestClassifyRequest:
    @pytest.mark.parametrize(
        "text",
        [
            "fix this bug",
            "please fix the error",
            "change this to use async",
            "update the function signature",
            "add error handling",
            "remove this unused variable",
            "delete the dead branch",
            "modify the query",
            "refactor this function",
            "implement the interface",
            "create a new helper function",
            "can you make it change colour",
            "could you please tidy up and fix",
            "this should return early",
            "it should not log the token",
            "the loop needs to stop at n",
        ],
    )
    def test_actionable(self, text):
        assert classify_request(text) is ACTIONABLE

    @pytest.mark.parametrize(
        "text",
        [
            "what does this function do",
            "why is this async",
            "how does this work",
            "explain this code",
            "review this code",
            "check the error paths",
            "look at the migration",
            "analyze the complexity",
            "does this handle errors",
            "is this thread safe",
            "are there tests for it",
            "is this correct?",
            "thoughts?",
        ],
    )
    def test_informational(self, text):
        assert classify_request(text) is INFORMATIONAL

    def test_actionable_wins_when_both_match(self):
        assert classify_request("why is this slow? please fix it") is ACTIONABLE
        assert classify_request("explain the bug and then fix it") is ACTIONABLE
        assert classify_request("can you add a test?") is ACTIONABLE

    def test_case_insensitive(self):
        assert classify_request("FIX THIS") is ACTIONABLE
        assert classify_request("WHY is this here") is INFORMATIONAL

    def test_words_must_be_whole(self):
        # "prefix" and "address" contain "fix" / "add" but are not requests to change code
        assert classify_request("prefix address") is INFORMATIONAL

    @pytest.mark.parametrize("text", ["hello", "thanks", "", "lgtm 👍"])
    def test_defaults_to_informational(self, text):
        assert classify_request(text) is INFORMATIONAL


class TestExtractRequest:
    def test_text_after_trigger(self):
        assert extract_request("@claude fix this bug", "@claude") == "fix this bug"

    def test_trigger_in_middle(self):
        assert extract_request("Hey @claude can you help", "@claude") == "can you help"

    def test_case_insensitive_trigger(self):
        assert extract_request("@CLAUDE fix this", "@claude") == "fix this"

    def test_trigger_absent_returns_original(self):
        assert extract_request("fix this bug", "@claude") == "fix this bug"

    def test_trims_whitespace(self):
        assert extract_request("@claude   fix this  ", "@claude") == "fix this"

    def test_only_trigger_returns_original(self):
        assert extract_request("@claude", "@claude") == "@claude"
        assert extract_request("  @claude   ", "@claude") == "  @claude   "

    def test_first_occurrence_used(self):
        assert extract_request("@claude ask @claude twice", "@claude") == "ask @claude twice"

    def test_multiline_request(self):
        assert extract_request("@claude\nwhy is\nthis here?", "@claude") == "why is\nthis here?"

    def test_text_whose_lowercase_changes_length(self):
        assert extract_request("İİ @claude fix this", "@claude") == "fix this"

    def test_trigger_with_regex_characters(self):
        assert extract_request("hey bot+ why?", "bot+") == "why?"
