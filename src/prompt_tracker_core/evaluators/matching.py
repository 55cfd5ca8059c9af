"""
Binary matching evaluators: regex pattern match and exact match
"""

from __future__ import annotations

from prompt_tracker_core.evaluators.base import BaseEvaluator
from prompt_tracker_core.scoring.text_matching import normalize_text, parse_pattern

_PREVIEW_LENGTH = 100


def _preview(text: str) -> str:
    return f"{text[:_PREVIEW_LENGTH]}..." if len(text) > _PREVIEW_LENGTH else text


class PatternMatchEvaluator(BaseEvaluator):
    """
    Pass when all (match_all=True) or any (match_all=False) patterns match

    Patterns use "/body/flags" notation for regular expressions; plain strings
    are matched literally. No configured patterns never passes.
    """

    name = "Pattern Match"
    description = "Checks if response matches regex patterns"
    icon = "regex"
    default_config = {
        "patterns": [],
        "match_all": True,
    }

    def __init__(self, llm_response, config=None):
        super().__init__(llm_response, config)
        patterns = self.config.get("patterns") or []
        self.patterns: list[str] = [patterns] if isinstance(patterns, str) else list(patterns)
        # Compile up front so an invalid regex fails at construction
        compiled = [(p, parse_pattern(p)) for p in self.patterns]
        self.matched = [p for p, regex in compiled if regex.search(self.response_text)]
        self.unmatched = [p for p in self.patterns if p not in self.matched]

    def _passes(self) -> bool:
        if not self.patterns:
            return False
        if self.config["match_all"]:
            return not self.unmatched
        return bool(self.matched)

    def evaluate_score(self) -> float:
        return 100 if self._passes() else 0

    def passed(self, score: float) -> bool:
        return self._passes()

    def generate_feedback(self) -> str:
        if not self.patterns:
            return "No patterns configured"
        if not self.unmatched:
            plural = "s" if len(self.patterns) > 1 else ""
            return f"All {len(self.patterns)} pattern{plural} matched successfully"
        if self.config["match_all"]:
            plural = "s" if len(self.unmatched) > 1 else ""
            return f"Failed to match {len(self.unmatched)} pattern{plural}: {', '.join(self.unmatched)}"
        if self.matched:
            return f"Matched {len(self.matched)} of {len(self.patterns)} patterns: {', '.join(self.matched)}"
        return f"No patterns matched. Tried: {', '.join(self.patterns)}"

    def metadata(self) -> dict:
        return {**super().metadata(), "matched_patterns": self.matched}


class ExactMatchEvaluator(BaseEvaluator):
    """Pass when the response equals expected_text after optional trimming and case folding"""

    name = "Exact Match"
    description = "Checks if response exactly matches expected text"
    icon = "check-circle"
    default_config = {
        "expected_text": "",
        "case_sensitive": False,
        "trim_whitespace": True,
    }

    def _normalize(self, text: str | None) -> str:
        return normalize_text(
            text,
            trim_whitespace=bool(self.config["trim_whitespace"]),
            case_sensitive=bool(self.config["case_sensitive"]),
        )

    @property
    def expected(self) -> str:
        return self._normalize(self.config.get("expected_text"))

    @property
    def actual(self) -> str:
        return self._normalize(self.response_text)

    def evaluate_score(self) -> float:
        return 100 if self.expected == self.actual else 0

    def passed(self, score: float) -> bool:
        return self.expected == self.actual

    def generate_feedback(self) -> str:
        if self.expected == self.actual:
            return "Response exactly matches expected output"
        return (
            "Response does not match expected output.\n\n"
            f'Expected: "{_preview(self.expected)}"\n\n'
            f'Actual: "{_preview(self.actual)}"'
        )
