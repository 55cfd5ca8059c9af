"""
Evaluator base class

Every evaluator is built from a generated response and a configuration map and
exposes evaluate(), which returns an unsaved Evaluation.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from prompt_tracker_core.domain.constants import DEFAULT_PASS_THRESHOLD
from prompt_tracker_core.domain.entities import Evaluation, LlmResponse
from prompt_tracker_core.scoring.normalizer import normalize_score

# Keys the pipeline adds to an evaluator's configuration; not part of the user-facing config
INTERNAL_CONFIG_KEYS = ("evaluator_config_id", "evaluation_context", "prompt_test_run_id")

_CAMEL_BOUNDARY_RE = re.compile(r"(?<!^)(?=[A-Z])")


class BaseEvaluator(ABC):
    """
    Abstract base class for evaluators

    Subclasses declare registry metadata as class attributes (name, description,
    icon, default_config) and implement evaluate_score(). They may override
    passed(), generate_feedback(), evaluate_criteria() and metadata().
    """

    # Registry metadata (required)
    name: ClassVar[str | None] = None
    description: ClassVar[str | None] = None
    icon: ClassVar[str | None] = None
    default_config: ClassVar[dict | None] = None

    # Optional registry metadata
    form_template: ClassVar[str | None] = None
    evaluator_type: ClassVar[str] = "automated"

    score_min: ClassVar[float] = 0
    score_max: ClassVar[float] = 100

    def __init__(self, llm_response: LlmResponse, config: dict | None = None) -> None:
        self.llm_response = llm_response
        self.config: dict[str, Any] = {**(self.default_config or {}), **(config or {})}

    @classmethod
    def key(cls) -> str:
        """Registry key derived from the class name (PatternMatchEvaluator -> "pattern_match")"""
        snake = _CAMEL_BOUNDARY_RE.sub("_", cls.__name__).lower()
        return snake.removesuffix("_evaluator")

    def evaluate(self) -> Evaluation:
        """
        Score the response

        Returns:
            Evaluation (not yet persisted)
        """
        score = self.evaluate_score()
        return Evaluation(
            llm_response_id=self.llm_response.id,
            evaluator_key=self.key(),
            evaluator_type=self.evaluator_type,
            score=score,
            score_min=self.score_min,
            score_max=self.score_max,
            passed=self.passed(score),
            feedback=self.generate_feedback(),
            evaluation_context=self.config.get("evaluation_context", "tracked_call"),
            prompt_test_run_id=self.config.get("prompt_test_run_id"),
            criteria_scores=self.evaluate_criteria(),
            metadata=self.metadata(),
        )

    @abstractmethod
    def evaluate_score(self) -> float:
        """Calculate the overall score on [score_min, score_max]"""
        pass

    def passed(self, score: float) -> bool:
        """Pass when the score reaches the configured threshold percentage"""
        return normalize_score(score, self.score_min, self.score_max, target_max=100) >= self.threshold

    def generate_feedback(self) -> str | None:
        return None

    def evaluate_criteria(self) -> dict:
        return {}

    def metadata(self) -> dict:
        return {"config": self.user_config}

    @property
    def threshold(self) -> float:
        return float(self.config.get("threshold", DEFAULT_PASS_THRESHOLD))

    @property
    def user_config(self) -> dict:
        return {k: v for k, v in self.config.items() if k not in INTERNAL_CONFIG_KEYS}

    @property
    def response_text(self) -> str:
        return self.llm_response.response_text or ""

    @property
    def rendered_prompt(self) -> str:
        return self.llm_response.rendered_prompt or ""
