"""
Evaluator execution and async hand-off

Runs one evaluator configuration against one response. Used inline by the
pipeline for sync configurations and by a scheduler's worker for async ones.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait as wait_futures
from dataclasses import dataclass, field
from typing import Callable, Protocol

from prompt_tracker_core.domain.entities import Evaluation, EvaluatorConfig, LlmResponse, utcnow
from prompt_tracker_core.evaluators.registry import EvaluatorRegistry
from prompt_tracker_core.infrastructure.store import InMemoryStore

logger = logging.getLogger(__name__)


@dataclass
class EvaluationJob:
    """An async evaluator run waiting for a worker"""
    llm_response_id: int
    evaluator_config_id: int
    evaluation_context: str = "tracked_call"
    prompt_test_run_id: int | None = None
    enqueued_at: str = field(default_factory=lambda: utcnow().isoformat())


class EvaluationScheduler(Protocol):
    """Receives async evaluator runs; must not block the caller"""

    def schedule(self, job: EvaluationJob) -> None:
        ...


class ThreadPoolScheduler:
    """
    Fire-and-forget scheduler backed by a thread pool

    Args:
        runner: Callable executing one job
        max_workers: Number of worker threads
    """

    def __init__(self, runner: Callable[[EvaluationJob], object], max_workers: int = 4) -> None:
        self._runner = runner
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="evaluation-job")
        self._lock = threading.Lock()
        self._futures: set[Future] = set()

    @property
    def pending(self) -> int:
        """Number of jobs scheduled and not yet finished"""
        with self._lock:
            return len(self._futures)

    def schedule(self, job: EvaluationJob) -> None:
        future = self._executor.submit(self._runner, job)
        with self._lock:
            self._futures.add(future)
        # Runs immediately when the job already finished
        future.add_done_callback(lambda f, job=job: self._finished(f, job))

    def _finished(self, future: Future, job: EvaluationJob) -> None:
        with self._lock:
            self._futures.discard(future)
        error = future.exception()
        if error is not None:
            logger.error(
                "Evaluation job for config %s on response %s failed: %s",
                job.evaluator_config_id, job.llm_response_id, error,
            )

    def wait(self, timeout: float | None = None) -> None:
        """Block until every scheduled job has finished"""
        with self._lock:
            futures = list(self._futures)
        done, _ = wait_futures(futures, timeout=timeout)
        # Waiters wake before done callbacks run
        with self._lock:
            self._futures.difference_update(done)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


def dependency_met(store: InMemoryStore, llm_response: LlmResponse, config: EvaluatorConfig) -> bool:
    """
    Whether config's dependency gate is open for this response

    The gate uses the latest evaluation of the dependency key: its percentage
    must reach min_dependency_score, or it must have passed when no minimum is set.
    """
    if not config.has_dependency:
        return True
    dependency = store.latest_evaluation(llm_response.id, config.depends_on)
    if dependency is None:
        return False
    if config.min_dependency_score is not None:
        return dependency.score_percentage() >= config.min_dependency_score
    return dependency.passed


def execute_config(
    store: InMemoryStore,
    registry: EvaluatorRegistry,
    llm_response: LlmResponse,
    config: EvaluatorConfig,
    evaluation_context: str = "tracked_call",
    prompt_test_run_id: int | None = None,
    evaluator_options: dict[str, dict] | None = None,
    extra_metadata: dict | None = None,
) -> Evaluation | None:
    """
    Build, run and persist one evaluator

    Failures are logged and reported as None; they never propagate.

    Returns:
        The saved Evaluation, or None if the evaluator failed
    """
    evaluator_config = {
        **config.config,
        "evaluator_config_id": config.id,
        "evaluation_context": evaluation_context,
        "prompt_test_run_id": prompt_test_run_id,
    }
    options = (evaluator_options or {}).get(config.evaluator_key, {})
    try:
        evaluator = registry.build(config.evaluator_key, llm_response, evaluator_config, **options)
        evaluation = evaluator.evaluate()
    except Exception:
        logger.exception("Evaluator %s failed for response %s", config.evaluator_key, llm_response.id)
        return None

    evaluation.evaluator_key = config.evaluator_key
    evaluation.metadata = {
        **evaluation.metadata,
        **(extra_metadata or {}),
        "evaluator_config_id": config.id,
        "evaluation_context": evaluation_context,
    }
    if prompt_test_run_id is not None:
        evaluation.metadata["prompt_test_run_id"] = prompt_test_run_id
    return store.add_evaluation(evaluation)


def run_evaluation_job(
    job: EvaluationJob,
    *,
    store: InMemoryStore,
    registry: EvaluatorRegistry,
    evaluator_options: dict[str, dict] | None = None,
) -> Evaluation | None:
    """
    Worker side of an async hand-off

    Re-checks that the configuration is still enabled and its dependency gate
    is open, then runs it.

    Returns:
        The saved Evaluation, or None when skipped or failed
    """
    llm_response = store.get_response(job.llm_response_id)
    config = store.get_evaluator_config(job.evaluator_config_id)
    if not config.enabled:
        logger.info("Skipping disabled evaluator %s for response %s", config.evaluator_key, llm_response.id)
        return None
    if not dependency_met(store, llm_response, config):
        logger.info(
            "Skipping evaluator %s for response %s: dependency %s not met",
            config.evaluator_key, llm_response.id, config.depends_on,
        )
        return None
    return execute_config(
        store,
        registry,
        llm_response,
        config,
        evaluation_context=job.evaluation_context,
        prompt_test_run_id=job.prompt_test_run_id,
        evaluator_options=evaluator_options,
        extra_metadata={
            "run_mode": "async",
            "enqueued_at": job.enqueued_at,
            "executed_at": utcnow().isoformat(),
        },
    )
