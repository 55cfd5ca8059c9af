"""
Evaluator registry

Maps a canonical evaluator key to its implementation and metadata. A registry is
an ordinary object: construct one and pass it to the pipeline.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from prompt_tracker_core.domain.entities import LlmResponse, canonical_evaluator_key
from prompt_tracker_core.evaluators.base import BaseEvaluator
from prompt_tracker_core.evaluators.format import FormatEvaluator
from prompt_tracker_core.evaluators.keyword import KeywordEvaluator
from prompt_tracker_core.evaluators.length import LengthEvaluator
from prompt_tracker_core.evaluators.llm_judge import LlmJudgeEvaluator
from prompt_tracker_core.evaluators.matching import ExactMatchEvaluator, PatternMatchEvaluator

logger = logging.getLogger(__name__)

BUILTIN_EVALUATORS: tuple[type[BaseEvaluator], ...] = (
    LengthEvaluator,
    KeywordEvaluator,
    PatternMatchEvaluator,
    ExactMatchEvaluator,
    FormatEvaluator,
    LlmJudgeEvaluator,
)

REQUIRED_METADATA = ("name", "description", "icon", "default_config")


class UnknownEvaluatorError(LookupError):
    """No evaluator is registered under the requested key"""
    pass


class EvaluatorMetadataError(ValueError):
    """An evaluator class does not declare the metadata the registry needs"""
    pass


@dataclass
class RegistryEntry:
    """One registered evaluator"""
    key: str
    name: str
    description: str
    evaluator_class: Callable[..., BaseEvaluator]
    icon: str
    default_config: dict = field(default_factory=dict)
    form_template: str | None = None

    def build(self, llm_response: LlmResponse, config: dict | None = None, **options: Any) -> BaseEvaluator:
        return self.evaluator_class(llm_response, {**self.default_config, **(config or {})}, **options)


def entry_for(evaluator_class: type[BaseEvaluator]) -> RegistryEntry:
    """
    Build a registry entry from the metadata declared on an evaluator class

    Raises:
        EvaluatorMetadataError: When a required attribute is missing
    """
    missing = [attr for attr in REQUIRED_METADATA if getattr(evaluator_class, attr, None) is None]
    if missing:
        raise EvaluatorMetadataError(
            f"{evaluator_class.__name__} is missing required metadata: {', '.join(missing)}"
        )
    return RegistryEntry(
        key=evaluator_class.key(),
        name=evaluator_class.name,
        description=evaluator_class.description,
        evaluator_class=evaluator_class,
        icon=evaluator_class.icon,
        default_config=dict(evaluator_class.default_config),
        form_template=evaluator_class.form_template,
    )


class EvaluatorRegistry:
    """
    Catalog of evaluators keyed by canonical key

    Usage:
        registry = EvaluatorRegistry()
        evaluator = registry.build("keyword", response, {"required_keywords": ["hello"]})
    """

    def __init__(self, builtins: tuple[type[BaseEvaluator], ...] = BUILTIN_EVALUATORS) -> None:
        self._builtins = builtins
        self._entries: dict[str, RegistryEntry] = {}
        self._register_builtins()

    def _register_builtins(self) -> None:
        for evaluator_class in self._builtins:
            try:
                entry = entry_for(evaluator_class)
            except EvaluatorMetadataError as e:
                logger.warning("Skipping evaluator %s: %s", evaluator_class.__name__, e)
                continue
            self._entries[entry.key] = entry

    def get(self, key: str) -> RegistryEntry | None:
        return self._entries.get(canonical_evaluator_key(key))

    def get_or_raise(self, key: str) -> RegistryEntry:
        entry = self.get(key)
        if entry is None:
            raise UnknownEvaluatorError(f"Evaluator '{key}' not found in registry")
        return entry

    def exists(self, key: str) -> bool:
        return canonical_evaluator_key(key) in self._entries

    def build(
        self,
        key: str,
        llm_response: LlmResponse,
        config: dict | None = None,
        **options: Any,
    ) -> BaseEvaluator:
        """
        Instantiate the evaluator registered under key

        Args:
            key: Evaluator key (case-insensitive)
            llm_response: Response to evaluate
            config: Evaluator configuration
            **options: Extra constructor arguments (e.g. a judge client)

        Raises:
            UnknownEvaluatorError: When key is not registered
        """
        return self.get_or_raise(key).build(llm_response, config, **options)

    def register(
        self,
        key: str,
        name: str,
        description: str,
        evaluator_class: Callable[..., BaseEvaluator],
        icon: str,
        default_config: dict | None = None,
        form_template: str | None = None,
    ) -> RegistryEntry:
        """Insert or overwrite an entry"""
        canonical = canonical_evaluator_key(key)
        if not canonical:
            raise ValueError("Evaluator key must not be empty")
        entry = RegistryEntry(
            key=canonical,
            name=name,
            description=description,
            evaluator_class=evaluator_class,
            icon=icon,
            default_config=dict(default_config or {}),
            form_template=form_template,
        )
        self._entries[canonical] = entry
        logger.debug("Registered evaluator %s", canonical)
        return entry

    def register_class(self, evaluator_class: type[BaseEvaluator]) -> RegistryEntry:
        """Register an evaluator class from its own metadata (fails loudly on missing metadata)"""
        entry = entry_for(evaluator_class)
        self._entries[entry.key] = entry
        return entry

    def unregister(self, key: str) -> None:
        self._entries.pop(canonical_evaluator_key(key), None)

    def reset(self) -> None:
        """Restore exactly the built-in entries"""
        self._entries.clear()
        self._register_builtins()

    def keys(self) -> list[str]:
        return list(self._entries)

    def entries(self) -> list[RegistryEntry]:
        return list(self._entries.values())

    def __contains__(self, key: str) -> bool:
        return self.exists(key)

    def __len__(self) -> int:
        return len(self._entries)
