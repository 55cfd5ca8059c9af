"""
Tests for LengthEvaluator
"""

from prompt_tracker_core.domain.entities import LlmResponse
from prompt_tracker_core.evaluators.length import LengthEvaluator


def _response(text: str) -> LlmResponse:
    response = LlmResponse(prompt_version_id=1, rendered_prompt="Write something", provider="openai", model="gpt-4o", id=1)
    response.mark_success(text, 100)
    return response


class TestLengthEvaluator:

    def test_within_ideal_range(self):
        evaluation = LengthEvaluator(_response("x" * 100)).evaluate()
        assert evaluation.score == 100
        assert evaluation.passed is True
        assert evaluation.evaluator_key == "length"
        assert evaluation.feedback == "Response length is acceptable (100 chars). Range: 10-2000 chars."

    def test_outside_ideal_range_mentions_it(self):
        evaluation = LengthEvaluator(_response("x" * 20)).evaluate()
        assert evaluation.passed is True
        assert evaluation.feedback.endswith("Ideal range: 50-500 chars.")

    def test_too_short(self):
        evaluation = LengthEvaluator(_response("short")).evaluate()
        assert evaluation.score == 0
        assert evaluation.passed is False
        assert evaluation.feedback == "Response is too short (5 chars). Minimum: 10 chars."

    def test_too_long(self):
        evaluation = LengthEvaluator(_response("x" * 60), {"max_length": 50}).evaluate()
        assert evaluation.score == 0
        assert evaluation.passed is False
        assert evaluation.feedback == "Response is too long (60 chars). Maximum: 50 chars."

    def test_boundaries_are_inclusive(self):
        config = {"min_length": 5, "max_length": 10}
        assert LengthEvaluator(_response("x" * 5), config).evaluate().passed
        assert LengthEvaluator(_response("x" * 10), config).evaluate().passed

    def test_metadata(self):
        evaluation = LengthEvaluator(_response("x" * 42), {"min_length": 1}).evaluate()
        assert evaluation.metadata["response_length"] == 42
        assert evaluation.metadata["min_length"] == 1
        assert evaluation.metadata["max_length"] == 2000
        assert evaluation.metadata["config"]["ideal_min"] == 50

    def test_internal_keys_not_in_metadata_config(self):
        evaluator = LengthEvaluator(
            _response("x" * 42),
            {"evaluator_config_id": 9, "evaluation_context": "manual", "prompt_test_run_id": None},
        )
        evaluation = evaluator.evaluate()
        assert evaluation.evaluation_context == "manual"
        assert "evaluator_config_id" not in evaluation.metadata["config"]
