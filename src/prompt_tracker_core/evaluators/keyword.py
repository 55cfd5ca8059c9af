"""
Keyword evaluator
"""

from __future__ import annotations

from prompt_tracker_core.evaluators.base import BaseEvaluator
from prompt_tracker_core.scoring.text_matching import partition_keywords

# Weights when both required and forbidden keywords are configured
_REQUIRED_WEIGHT = 0.7
_FORBIDDEN_WEIGHT = 0.3


class KeywordEvaluator(BaseEvaluator):
    """
    Check for required and forbidden keywords

    The score is partial credit (70% required coverage, 30% forbidden avoidance);
    passing requires every required keyword present and no forbidden keyword.
    """

    name = "Keyword Checker"
    description = "Checks for required and forbidden keywords in the response"
    icon = "search"
    default_config = {
        "required_keywords": [],
        "forbidden_keywords": [],
        "case_sensitive": False,
    }

    def __init__(self, llm_response, config=None):
        super().__init__(llm_response, config)
        case_sensitive = bool(self.config["case_sensitive"])
        self.required = list(self.config.get("required_keywords") or [])
        self.forbidden = list(self.config.get("forbidden_keywords") or [])
        _, self.missing_required = partition_keywords(
            self.response_text, self.required, case_sensitive=case_sensitive
        )
        self.found_forbidden, _ = partition_keywords(
            self.response_text, self.forbidden, case_sensitive=case_sensitive
        )

    def evaluate_score(self) -> float:
        if not self.required and not self.forbidden:
            return 100

        required_score = 0.0
        if self.required:
            required_score = (len(self.required) - len(self.missing_required)) / len(self.required) * 100
        forbidden_penalty = 0.0
        if self.forbidden:
            forbidden_penalty = len(self.found_forbidden) / len(self.forbidden) * 100

        if not self.required:
            return round(100 - forbidden_penalty)
        if not self.forbidden:
            return round(required_score)
        return round(required_score * _REQUIRED_WEIGHT + (100 - forbidden_penalty) * _FORBIDDEN_WEIGHT)

    def passed(self, score: float) -> bool:
        return not self.missing_required and not self.found_forbidden

    def generate_feedback(self) -> str:
        parts = []
        if self.missing_required:
            parts.append(f"Missing required keywords: {', '.join(self.missing_required)}")
        if self.found_forbidden:
            parts.append(f"Contains forbidden keywords: {', '.join(self.found_forbidden)}")
        return ". ".join(parts) if parts else "All keyword requirements met."

    def metadata(self) -> dict:
        return {
            **super().metadata(),
            "missing_required": self.missing_required,
            "found_forbidden": self.found_forbidden,
        }
