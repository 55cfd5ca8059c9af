"""
Auto-evaluation pipeline

Runs every enabled evaluator configuration of a response's owner, in
dependency order, isolating per-evaluator failures.
"""

from __future__ import annotations

import heapq
import logging
from functools import partial

from prompt_tracker_core.domain.entities import Evaluation, EvaluatorConfig, LlmResponse
from prompt_tracker_core.engine_config import EngineConfig, load_config
from prompt_tracker_core.evaluators.registry import EvaluatorRegistry
from prompt_tracker_core.infrastructure.store import InMemoryStore
from prompt_tracker_core.use_cases.evaluation_job import (
    EvaluationJob,
    EvaluationScheduler,
    ThreadPoolScheduler,
    dependency_met,
    execute_config,
    run_evaluation_job,
)

logger = logging.getLogger(__name__)


def order_by_dependencies(
    configs: list[EvaluatorConfig],
) -> tuple[list[EvaluatorConfig], list[EvaluatorConfig]]:
    """
    Topologically order configurations by their depends_on key (Kahn's algorithm)

    Ties are broken by position in `configs`, so without dependencies the
    result is the input order.

    Returns:
        (ordered, skipped): skipped holds configurations whose dependency is
        unknown or that sit on (or behind) a cycle
    """
    index = {c.evaluator_key: i for i, c in enumerate(configs)}
    dependents: dict[str, list[str]] = {c.evaluator_key: [] for c in configs}
    indegree: dict[str, int] = {c.evaluator_key: 0 for c in configs}
    unknown: set[str] = set()

    for c in configs:
        if not c.has_dependency:
            continue
        if c.depends_on not in index:
            unknown.add(c.evaluator_key)
            continue
        dependents[c.depends_on].append(c.evaluator_key)
        indegree[c.evaluator_key] += 1

    ready = [(index[key], key) for key, degree in indegree.items() if degree == 0 and key not in unknown]
    heapq.heapify(ready)
    ordered_keys: list[str] = []
    while ready:
        _, key = heapq.heappop(ready)
        ordered_keys.append(key)
        for dependent in dependents[key]:
            indegree[dependent] -= 1
            if indegree[dependent] == 0:
                heapq.heappush(ready, (index[dependent], dependent))

    emitted = set(ordered_keys)
    ordered = [configs[index[key]] for key in ordered_keys]
    skipped = [c for c in configs if c.evaluator_key not in emitted]
    return ordered, skipped


class AutoEvaluationService:
    """
    Evaluator pipeline

    Usage:
        service = AutoEvaluationService(store, EvaluatorRegistry())
        evaluations = service.evaluate(response)

    The pipeline never raises: a failing evaluator is logged and produces no
    Evaluation; the others still run. Async configurations are handed to the
    scheduler and not waited on.
    """

    def __init__(
        self,
        store: InMemoryStore,
        registry: EvaluatorRegistry,
        scheduler: EvaluationScheduler | None = None,
        evaluator_options: dict[str, dict] | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        """
        Args:
            store: Persistence for configurations and evaluations
            registry: Evaluator registry
            scheduler: Receiver of async runs (a thread-pool scheduler if not provided)
            evaluator_options: Extra constructor arguments per evaluator key
                (e.g. {"llm_judge": {"client": judge_client}})
            config: EngineConfig (loads from env if not provided)
        """
        self.store = store
        self.registry = registry
        self.evaluator_options = evaluator_options or {}
        self._config = config
        self._scheduler = scheduler
        self._owns_scheduler = False

    @property
    def scheduler(self) -> EvaluationScheduler:
        if self._scheduler is None:
            config = self._config or load_config()
            self._scheduler = ThreadPoolScheduler(
                partial(
                    run_evaluation_job,
                    store=self.store,
                    registry=self.registry,
                    evaluator_options=self.evaluator_options,
                ),
                max_workers=config.evaluation.async_workers,
            )
            self._owns_scheduler = True
        return self._scheduler

    def close(self, wait: bool = True) -> None:
        """Shut down the scheduler this service created; injected schedulers are left running"""
        if self._owns_scheduler and self._scheduler is not None:
            self._scheduler.shutdown(wait=wait)
            self._scheduler = None
            self._owns_scheduler = False

    def evaluate(
        self,
        llm_response: LlmResponse,
        evaluation_context: str = "tracked_call",
        owner: tuple[str, int] | None = None,
        prompt_test_run_id: int | None = None,
    ) -> list[Evaluation]:
        """
        Run the owner's enabled evaluators against a response

        Args:
            llm_response: Response to evaluate
            evaluation_context: "tracked_call", "test_run" or "manual"
            owner: (owner_type, owner_id); defaults to the response's prompt version
            prompt_test_run_id: Test run the evaluation belongs to (test_run context)

        Returns:
            Evaluations created synchronously by this call
        """
        owner_type, owner_id = owner or ("prompt_version", llm_response.prompt_version_id)
        try:
            configs = self.store.evaluator_configs(owner_type, owner_id)
        except Exception:
            logger.exception("Could not load evaluator configurations for %s %s", owner_type, owner_id)
            return []

        ordered, skipped = order_by_dependencies(configs)
        for config in skipped:
            logger.warning(
                "Skipping evaluator %s: dependency %s is unknown or cyclic",
                config.evaluator_key, config.depends_on,
            )

        evaluations: list[Evaluation] = []
        for config in ordered:
            if config.is_async:
                self._hand_off(llm_response, config, evaluation_context, prompt_test_run_id)
                continue
            if not dependency_met(self.store, llm_response, config):
                logger.info(
                    "Skipping evaluator %s for response %s: dependency %s not met",
                    config.evaluator_key, llm_response.id, config.depends_on,
                )
                continue
            evaluation = execute_config(
                self.store,
                self.registry,
                llm_response,
                config,
                evaluation_context=evaluation_context,
                prompt_test_run_id=prompt_test_run_id,
                evaluator_options=self.evaluator_options,
            )
            if evaluation is not None:
                evaluations.append(evaluation)

        logger.debug(
            "Response %s: %d evaluation(s) from %d configuration(s)",
            llm_response.id, len(evaluations), len(configs),
        )
        return evaluations

    def _hand_off(
        self,
        llm_response: LlmResponse,
        config: EvaluatorConfig,
        evaluation_context: str,
        prompt_test_run_id: int | None,
    ) -> None:
        job = EvaluationJob(
            llm_response_id=llm_response.id,
            evaluator_config_id=config.id,
            evaluation_context=evaluation_context,
            prompt_test_run_id=prompt_test_run_id,
        )
        try:
            self.scheduler.schedule(job)
        except Exception:
            logger.exception("Could not schedule evaluator %s for response %s", config.evaluator_key, llm_response.id)
            return
        logger.info("Scheduled async evaluator %s for response %s", config.evaluator_key, llm_response.id)

    def evaluate_test_run(
        self,
        llm_response: LlmResponse,
        prompt_test_id: int,
        prompt_test_run_id: int,
    ) -> list[Evaluation]:
        """Evaluate a response against a single test case's evaluators"""
        return self.evaluate(
            llm_response,
            evaluation_context="test_run",
            owner=("prompt_test", prompt_test_id),
            prompt_test_run_id=prompt_test_run_id,
        )
