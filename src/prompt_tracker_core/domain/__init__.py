"""
Domain Layer

Defines constants, entities, and value objects that form the core of the engine.
Has no dependencies on external libraries.
"""

from prompt_tracker_core.domain.constants import (
    DEFAULT_PASS_THRESHOLD,
    EVALUATION_CONTEXTS,
    EXPERIMENT_METRICS,
    EXPERIMENT_STATUSES,
    MIN_RESPONSES_FOR_ANALYSIS,
    OPTIMIZATION_DIRECTIONS,
)
from prompt_tracker_core.domain.entities import (
    Evaluation,
    EvaluatorConfig,
    Experiment,
    ExperimentConfigError,
    InvalidTransitionError,
    LlmResponse,
    Prompt,
    PromptVersion,
    Variant,
    canonical_evaluator_key,
)
from prompt_tracker_core.domain.value_objects import (
    ExperimentAnalysis,
    JudgeVerdict,
    ModelResponse,
    VariantSelection,
    VariantStats,
)

__all__ = [
    # constants
    "DEFAULT_PASS_THRESHOLD",
    "EVALUATION_CONTEXTS",
    "EXPERIMENT_METRICS",
    "EXPERIMENT_STATUSES",
    "MIN_RESPONSES_FOR_ANALYSIS",
    "OPTIMIZATION_DIRECTIONS",
    # entities
    "Evaluation",
    "EvaluatorConfig",
    "Experiment",
    "ExperimentConfigError",
    "InvalidTransitionError",
    "LlmResponse",
    "Prompt",
    "PromptVersion",
    "Variant",
    "canonical_evaluator_key",
    # value objects
    "ExperimentAnalysis",
    "JudgeVerdict",
    "ModelResponse",
    "VariantSelection",
    "VariantStats",
]
