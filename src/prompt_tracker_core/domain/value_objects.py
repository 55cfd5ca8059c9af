"""
Domain Value Objects

Defines immutable data structures representing values such as model responses,
judge verdicts, variant selections, and experiment analysis results.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from prompt_tracker_core.domain.entities import Experiment, PromptVersion


@dataclass
class ModelResponse:
    """Model response"""
    output: str
    latency_ms: int
    model_name: str
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class JudgeVerdict:
    """Structured output of an LLM judge ({overall_score, feedback})"""

    overall_score: float
    feedback: str
    criteria_scores: dict[str, float] = field(default_factory=dict)


@dataclass
class VariantSelection:
    """Which version to use for the next call, and why"""
    version: PromptVersion | None
    experiment: Experiment | None = None
    variant: str | None = None

    @property
    def in_experiment(self) -> bool:
        return self.experiment is not None


@dataclass
class VariantStats:
    """Descriptive statistics of one variant's metric values"""
    count: int
    mean: float
    std_dev: float
    min: float
    max: float
    median: float


@dataclass
class ExperimentAnalysis:
    """
    Result of a two-variant significance analysis

    `winner` is None when fewer than two variants have data.
    """

    variants: dict[str, VariantStats]
    winner: str | None
    p_value: float
    confidence: float
    improvement: float
    significant: bool
    sample_size_met: bool
    analyzed_at: datetime
    t_statistic: float | None = None
    degrees_of_freedom: float | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary"""
        data = asdict(self)
        data["analyzed_at"] = self.analyzed_at.isoformat()
        return data
