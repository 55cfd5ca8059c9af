"""
Tests for PatternMatchEvaluator and ExactMatchEvaluator
"""

import re

import pytest

from prompt_tracker_core.domain.entities import LlmResponse
from prompt_tracker_core.evaluators.matching import ExactMatchEvaluator, PatternMatchEvaluator


def _response(text: str) -> LlmResponse:
    response = LlmResponse(prompt_version_id=1, rendered_prompt="Answer", provider="openai", model="gpt-4o", id=1)
    response.mark_success(text, 100)
    return response


class TestPatternMatchEvaluator:

    def test_all_patterns_match(self):
        evaluation = PatternMatchEvaluator(
            _response("Order #1234 confirmed"), {"patterns": [r"/#\d+/", "confirmed"]}
        ).evaluate()
        assert evaluation.score == 100
        assert evaluation.passed is True
        assert evaluation.feedback == "All 2 patterns matched successfully"
        assert evaluation.metadata["matched_patterns"] == [r"/#\d+/", "confirmed"]

    def test_match_all_fails_on_one_miss(self):
        evaluation = PatternMatchEvaluator(
            _response("Order confirmed"), {"patterns": [r"/#\d+/", "confirmed"]}
        ).evaluate()
        assert evaluation.score == 0
        assert evaluation.passed is False
        assert evaluation.feedback == r"Failed to match 1 pattern: /#\d+/"

    def test_match_any(self):
        evaluation = PatternMatchEvaluator(
            _response("Order confirmed"),
            {"patterns": [r"/#\d+/", "confirmed"], "match_all": False},
        ).evaluate()
        assert evaluation.passed is True
        assert evaluation.feedback == "Matched 1 of 2 patterns: confirmed"

    def test_match_any_with_no_match(self):
        evaluation = PatternMatchEvaluator(
            _response("nothing here"), {"patterns": ["foo", "bar"], "match_all": False}
        ).evaluate()
        assert evaluation.passed is False
        assert evaluation.feedback == "No patterns matched. Tried: foo, bar"

    def test_single_string_pattern(self):
        evaluation = PatternMatchEvaluator(_response("HELLO"), {"patterns": "/hello/i"}).evaluate()
        assert evaluation.passed is True
        assert evaluation.feedback == "All 1 pattern matched successfully"

    def test_no_patterns_never_passes(self):
        evaluation = PatternMatchEvaluator(_response("anything")).evaluate()
        assert evaluation.passed is False
        assert evaluation.feedback == "No patterns configured"

    def test_invalid_regex_fails_at_construction(self):
        with pytest.raises(re.error):
            PatternMatchEvaluator(_response("x"), {"patterns": ["/(unclosed/"]})


class TestExactMatchEvaluator:

    def test_match_ignores_case_and_whitespace_by_default(self):
        evaluation = ExactMatchEvaluator(_response("  Paris \n"), {"expected_text": "paris"}).evaluate()
        assert evaluation.score == 100
        assert evaluation.passed is True
        assert evaluation.feedback == "Response exactly matches expected output"

    def test_case_sensitive(self):
        evaluation = ExactMatchEvaluator(
            _response("paris"), {"expected_text": "Paris", "case_sensitive": True}
        ).evaluate()
        assert evaluation.passed is False

    def test_whitespace_kept(self):
        evaluation = ExactMatchEvaluator(
            _response("Paris "), {"expected_text": "Paris", "trim_whitespace": False}
        ).evaluate()
        assert evaluation.passed is False

    def test_mismatch_feedback_shows_previews(self):
        evaluation = ExactMatchEvaluator(_response("London"), {"expected_text": "Paris"}).evaluate()
        assert evaluation.score == 0
        assert 'Expected: "paris"' in evaluation.feedback
        assert 'Actual: "london"' in evaluation.feedback

    def test_long_values_are_truncated(self):
        evaluation = ExactMatchEvaluator(_response("b" * 150), {"expected_text": "a" * 150}).evaluate()
        assert f'Expected: "{"a" * 100}..."' in evaluation.feedback
