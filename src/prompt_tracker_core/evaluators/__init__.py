"""
Evaluators sub-package

Pluggable scoring strategies behind a shared evaluate() contract, and the
registry that maps evaluator keys to them.
"""

from prompt_tracker_core.evaluators.base import BaseEvaluator
from prompt_tracker_core.evaluators.format import FormatEvaluator
from prompt_tracker_core.evaluators.keyword import KeywordEvaluator
from prompt_tracker_core.evaluators.length import LengthEvaluator
from prompt_tracker_core.evaluators.llm_judge import LLMJudgeError, LlmJudgeEvaluator
from prompt_tracker_core.evaluators.matching import ExactMatchEvaluator, PatternMatchEvaluator
from prompt_tracker_core.evaluators.registry import (
    BUILTIN_EVALUATORS,
    EvaluatorMetadataError,
    EvaluatorRegistry,
    RegistryEntry,
    UnknownEvaluatorError,
)

__all__ = [
    # base
    "BaseEvaluator",
    # evaluators
    "ExactMatchEvaluator",
    "FormatEvaluator",
    "KeywordEvaluator",
    "LengthEvaluator",
    "LlmJudgeEvaluator",
    "PatternMatchEvaluator",
    # registry
    "BUILTIN_EVALUATORS",
    "EvaluatorRegistry",
    "RegistryEntry",
    # errors
    "EvaluatorMetadataError",
    "LLMJudgeError",
    "UnknownEvaluatorError",
]
