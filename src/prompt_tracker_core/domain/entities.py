"""
Domain Entities

Defines the records the engine operates on: prompts, versions, experiments,
generated responses, evaluator configurations and evaluations.

Entities validate their own invariants; persistence-level constraints
(uniqueness across records) live in the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from prompt_tracker_core.domain.constants import (
    CONFIG_OWNER_TYPES,
    DEFAULT_CONFIDENCE_LEVEL,
    DEFAULT_MINIMUM_DETECTABLE_EFFECT,
    DEFAULT_MINIMUM_SAMPLE_SIZE,
    DEFAULT_PASS_THRESHOLD,
    EVALUATION_CONTEXTS,
    EVALUATOR_TYPES,
    EXPERIMENT_METRICS,
    EXPERIMENT_STATUSES,
    FAILED_RESPONSE_STATUSES,
    OPTIMIZATION_DIRECTIONS,
    RESPONSE_STATUSES,
    RUN_MODES,
)
from prompt_tracker_core.scoring.normalizer import normalize_score

if TYPE_CHECKING:
    from prompt_tracker_core.domain.value_objects import ExperimentAnalysis


class ExperimentConfigError(ValueError):
    """Experiment definition violates its invariants"""
    pass


class InvalidTransitionError(ValueError):
    """Lifecycle transition not allowed from the current status"""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def canonical_evaluator_key(key: Any) -> str:
    """Normalize an evaluator key to its canonical symbolic form ("Pattern-Match " -> "pattern_match")"""
    return str(key).strip().lower().replace("-", "_").replace(" ", "_")


@dataclass
class Prompt:
    """A named prompt with one designated active version"""
    name: str
    id: int | None = None
    description: str = ""
    active_version_id: int | None = None


@dataclass
class PromptVersion:
    """One immutable revision of a prompt template"""
    prompt_id: int
    version_number: int
    template: str = ""
    id: int | None = None
    status: str = "draft"  # draft / active / deprecated
    model_config: dict = field(default_factory=dict)


@dataclass
class Variant:
    """One named alternative within an experiment"""
    name: str
    version_id: int
    description: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "Variant":
        return cls(
            name=str(data["name"]),
            version_id=int(data["version_id"]),
            description=data.get("description", ""),
        )


@dataclass
class Experiment:
    """
    A traffic-split experiment (A/B test) over versions of one prompt

    Lifecycle: draft -> running <-> paused, then completed or cancelled.
    """

    prompt_id: int
    name: str
    metric_to_optimize: str
    traffic_split: dict[str, int]
    variants: list[Variant]
    optimization_direction: str = "minimize"
    id: int | None = None
    status: str = "draft"
    hypothesis: str = ""
    confidence_level: float = DEFAULT_CONFIDENCE_LEVEL
    minimum_detectable_effect: float = DEFAULT_MINIMUM_DETECTABLE_EFFECT
    minimum_sample_size: int | None = DEFAULT_MINIMUM_SAMPLE_SIZE
    results: dict = field(default_factory=dict)
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.variants = [
            v if isinstance(v, Variant) else Variant.from_dict(v) for v in self.variants
        ]
        self.validate()

    def validate(self) -> None:
        """
        Check the experiment's invariants

        Raises:
            ExperimentConfigError: When any invariant is violated
        """
        if self.status not in EXPERIMENT_STATUSES:
            raise ExperimentConfigError(f"Invalid status: {self.status} (available: {EXPERIMENT_STATUSES})")
        if self.metric_to_optimize not in EXPERIMENT_METRICS:
            raise ExperimentConfigError(
                f"Invalid metric: {self.metric_to_optimize} (available: {EXPERIMENT_METRICS})"
            )
        if self.optimization_direction not in OPTIMIZATION_DIRECTIONS:
            raise ExperimentConfigError(
                f"Invalid optimization direction: {self.optimization_direction} "
                f"(available: {OPTIMIZATION_DIRECTIONS})"
            )
        if not self.traffic_split:
            raise ExperimentConfigError("traffic_split must not be empty")
        if any(not isinstance(p, int) or isinstance(p, bool) or p < 0 for p in self.traffic_split.values()):
            raise ExperimentConfigError("traffic_split percentages must be non-negative integers")
        total = sum(self.traffic_split.values())
        if total != 100:
            raise ExperimentConfigError(f"traffic_split percentages must sum to 100 (currently {total})")
        if not self.variants:
            raise ExperimentConfigError("variants must not be empty")

        names = [v.name for v in self.variants]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ExperimentConfigError(f"variants contains duplicate names: {', '.join(duplicates)}")
        if set(names) != set(self.traffic_split):
            raise ExperimentConfigError(
                f"traffic_split keys {sorted(self.traffic_split)} do not match variant names {sorted(names)}"
            )

        if self.confidence_level is not None and not 0 < self.confidence_level < 1:
            raise ExperimentConfigError("confidence_level must be between 0 and 1 (exclusive)")
        if self.minimum_detectable_effect is not None and not 0 < self.minimum_detectable_effect < 1:
            raise ExperimentConfigError("minimum_detectable_effect must be between 0 and 1 (exclusive)")
        if self.minimum_sample_size is not None and (
            not isinstance(self.minimum_sample_size, int) or self.minimum_sample_size <= 0
        ):
            raise ExperimentConfigError("minimum_sample_size must be a positive integer")

    # --- status predicates -------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self.status == "running"

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"

    @property
    def variant_names(self) -> list[str]:
        return [v.name for v in self.variants]

    def version_id_for_variant(self, variant_name: str) -> int | None:
        for variant in self.variants:
            if variant.name == variant_name:
                return variant.version_id
        return None

    # --- lifecycle ---------------------------------------------------------

    def _transition(self, allowed_from: tuple[str, ...], target: str) -> None:
        if self.status not in allowed_from:
            raise InvalidTransitionError(
                f"Cannot move experiment '{self.name}' from {self.status} to {target}"
            )
        self.status = target

    def start(self, now: datetime | None = None) -> None:
        """Start the experiment (sets the start time)"""
        self._transition(("draft",), "running")
        self.started_at = now or utcnow()

    def pause(self) -> None:
        self._transition(("running",), "paused")

    def resume(self) -> None:
        self._transition(("paused",), "running")

    def complete(self, winner: str, now: datetime | None = None) -> None:
        """Complete the experiment with a declared winner"""
        if winner not in self.variant_names:
            raise ExperimentConfigError(f"Unknown winner variant: {winner}")
        self._transition(("running", "paused"), "completed")
        self.completed_at = now or utcnow()
        self.results = {**self.results, "winner": winner}

    def cancel(self, now: datetime | None = None) -> None:
        self._transition(("draft", "running", "paused"), "cancelled")
        self.cancelled_at = now or utcnow()

    def duration_days(self, now: datetime | None = None) -> float | None:
        """Duration in days (None if never started)"""
        if self.started_at is None:
            return None
        end_time = self.completed_at or self.cancelled_at or now or utcnow()
        return round((end_time - self.started_at).total_seconds() / 86400, 1)

    def record_results(self, analysis: ExperimentAnalysis) -> None:
        """Cache the headline numbers of an analysis on the experiment"""
        self.results = {
            **self.results,
            "winner": analysis.winner,
            "p_value": analysis.p_value,
            "confidence": analysis.confidence,
            "improvement": analysis.improvement,
            "significant": analysis.significant,
            "analyzed_at": analysis.analyzed_at.isoformat(),
        }


@dataclass
class LlmResponse:
    """
    One LLM invocation result

    Created pending and mutated exactly once to a terminal status.
    """

    prompt_version_id: int
    rendered_prompt: str
    provider: str
    model: str
    id: int | None = None
    status: str = "pending"
    response_text: str | None = None
    response_time_ms: int | None = None
    tokens_prompt: int | None = None
    tokens_completion: int | None = None
    tokens_total: int | None = None
    cost_usd: float | None = None
    error_type: str | None = None
    error_message: str | None = None
    experiment_id: int | None = None
    ab_variant: str | None = None
    is_test_run: bool = False
    response_metadata: dict = field(default_factory=dict)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.status not in RESPONSE_STATUSES:
            raise ValueError(f"Invalid response status: {self.status} (available: {RESPONSE_STATUSES})")

    def _finish(self, status: str) -> None:
        if self.status != "pending":
            raise InvalidTransitionError(f"Response {self.id} is already {self.status}")
        self.status = status

    def mark_success(
        self,
        response_text: str,
        response_time_ms: int,
        tokens_total: int | None = None,
        cost_usd: float | None = None,
        tokens_prompt: int | None = None,
        tokens_completion: int | None = None,
        response_metadata: dict | None = None,
    ) -> None:
        self._finish("success")
        self.response_text = response_text
        self.response_time_ms = response_time_ms
        self.tokens_prompt = tokens_prompt
        self.tokens_completion = tokens_completion
        self.tokens_total = tokens_total
        self.cost_usd = cost_usd
        self.response_metadata = response_metadata or {}

    def mark_error(self, error_type: str, error_message: str, response_time_ms: int | None = None) -> None:
        self._finish("error")
        self.error_type = error_type
        self.error_message = error_message
        self.response_time_ms = response_time_ms

    def mark_timeout(self, response_time_ms: int, error_message: str = "Request timed out") -> None:
        self._finish("timeout")
        self.error_type = "Timeout"
        self.error_message = error_message
        self.response_time_ms = response_time_ms

    @property
    def is_success(self) -> bool:
        return self.status == "success"

    @property
    def is_failed(self) -> bool:
        return self.status in FAILED_RESPONSE_STATUSES

    def cost_per_token(self) -> float | None:
        if self.cost_usd is None or not self.tokens_total:
            return None
        return self.cost_usd / self.tokens_total

    @staticmethod
    def average_evaluation_score(evaluations: list[Evaluation]) -> float | None:
        """Mean raw score across a response's evaluations (None if there are none)"""
        if not evaluations:
            return None
        return sum(e.score for e in evaluations) / len(evaluations)

    @staticmethod
    def passes_all_evaluations(evaluations: list[Evaluation]) -> bool:
        return bool(evaluations) and all(e.passed for e in evaluations)


@dataclass
class EvaluatorConfig:
    """
    Evaluator attached to an owner (a prompt version or a single test case)

    One configuration per (owner, evaluator key); enforced by the store.
    """

    owner_type: str
    owner_id: int
    evaluator_key: str
    config: dict = field(default_factory=dict)
    enabled: bool = True
    run_mode: str = "sync"
    depends_on: str | None = None
    min_dependency_score: float | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        self.evaluator_key = canonical_evaluator_key(self.evaluator_key)
        if self.depends_on is not None:
            self.depends_on = canonical_evaluator_key(self.depends_on)
            if self.depends_on == self.evaluator_key:
                raise ValueError(f"Evaluator '{self.evaluator_key}' cannot depend on itself")
        if self.owner_type not in CONFIG_OWNER_TYPES:
            raise ValueError(f"Invalid owner type: {self.owner_type} (available: {CONFIG_OWNER_TYPES})")
        if self.run_mode not in RUN_MODES:
            raise ValueError(f"Invalid run mode: {self.run_mode} (available: {RUN_MODES})")

    @property
    def is_async(self) -> bool:
        return self.run_mode == "async"

    @property
    def has_dependency(self) -> bool:
        return self.depends_on is not None


@dataclass
class Evaluation:
    """Verdict of running one evaluator against one generated response"""
    llm_response_id: int | None
    evaluator_key: str
    score: float
    passed: bool
    score_min: float = 0
    score_max: float = 100
    evaluator_type: str = "automated"
    feedback: str | None = None
    evaluation_context: str = "tracked_call"
    criteria_scores: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)
    prompt_test_run_id: int | None = None
    id: int | None = None
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.evaluator_type not in EVALUATOR_TYPES:
            raise ValueError(f"Invalid evaluator type: {self.evaluator_type} (available: {EVALUATOR_TYPES})")
        if self.evaluation_context not in EVALUATION_CONTEXTS:
            raise ValueError(
                f"Invalid evaluation context: {self.evaluation_context} (available: {EVALUATION_CONTEXTS})"
            )
        if not self.score_min <= self.score <= self.score_max:
            raise ValueError(
                f"score must be within [{self.score_min}, {self.score_max}] (got {self.score})"
            )

    def normalized_score(self) -> float:
        """Score on a 0-1 scale"""
        return normalize_score(self.score, self.score_min, self.score_max)

    def score_percentage(self) -> float:
        return normalize_score(self.score, self.score_min, self.score_max, target_max=100)

    def passing(self, threshold: float = DEFAULT_PASS_THRESHOLD) -> bool:
        """Whether the score reaches `threshold` percent"""
        return self.score_percentage() >= threshold

    def summary(self) -> str:
        type_label = self.evaluator_type.replace("_", " ").capitalize()
        return f"{type_label}: {self.score:g}/{self.score_max:g} ({self.score_percentage():.1f}%)"
