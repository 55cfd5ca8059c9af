"""
Length evaluator
"""

from __future__ import annotations

from prompt_tracker_core.evaluators.base import BaseEvaluator


class LengthEvaluator(BaseEvaluator):
    """
    Pass when the response length is within [min_length, max_length]

    The score is binary (100 / 0). The ideal range only shapes the feedback.
    """

    name = "Length Validator"
    description = "Validates response length against min/max ranges"
    icon = "rulers"
    default_config = {
        "min_length": 10,
        "max_length": 2000,
        "ideal_min": 50,
        "ideal_max": 500,
    }

    @property
    def length(self) -> int:
        return len(self.response_text)

    def _within_range(self) -> bool:
        return self.config["min_length"] <= self.length <= self.config["max_length"]

    def evaluate_score(self) -> float:
        return 100 if self._within_range() else 0

    def passed(self, score: float) -> bool:
        return self._within_range()

    def generate_feedback(self) -> str:
        length = self.length
        min_length = self.config["min_length"]
        max_length = self.config["max_length"]

        if length < min_length:
            return f"Response is too short ({length} chars). Minimum: {min_length} chars."
        if length > max_length:
            return f"Response is too long ({length} chars). Maximum: {max_length} chars."

        feedback = f"Response length is acceptable ({length} chars). Range: {min_length}-{max_length} chars."
        ideal_min = self.config.get("ideal_min")
        ideal_max = self.config.get("ideal_max")
        if ideal_min is not None and ideal_max is not None and not ideal_min <= length <= ideal_max:
            feedback += f" Ideal range: {ideal_min}-{ideal_max} chars."
        return feedback

    def metadata(self) -> dict:
        return {
            **super().metadata(),
            "response_length": self.length,
            "min_length": self.config["min_length"],
            "max_length": self.config["max_length"],
        }
