"""
Tests for evaluator execution and the async hand-off
"""

from functools import partial
from unittest.mock import MagicMock

from prompt_tracker_core.domain.entities import Evaluation, EvaluatorConfig, LlmResponse
from prompt_tracker_core.evaluators.registry import EvaluatorRegistry
from prompt_tracker_core.infrastructure.store import InMemoryStore
from prompt_tracker_core.use_cases.evaluation_job import (
    EvaluationJob,
    ThreadPoolScheduler,
    dependency_met,
    execute_config,
    run_evaluation_job,
)


def _setup(config: EvaluatorConfig):
    store = InMemoryStore()
    store.add_evaluator_config(config)
    response = store.add_response(LlmResponse(1, "Greet the user", "openai", "gpt-4o"))
    response.mark_success("Hello there, how are you doing today?", 80)
    return store, response


class TestDependencyMet:

    def test_no_dependency(self):
        store, response = _setup(EvaluatorConfig("prompt_version", 1, "length"))
        assert dependency_met(store, response, store.evaluator_configs("prompt_version", 1)[0])

    def test_dependency_not_evaluated_yet(self):
        config = EvaluatorConfig("prompt_version", 1, "keyword", depends_on="length")
        store, response = _setup(config)
        assert not dependency_met(store, response, config)

    def test_uses_latest_dependency_evaluation(self):
        config = EvaluatorConfig("prompt_version", 1, "keyword", depends_on="length")
        store, response = _setup(config)
        store.add_evaluation(Evaluation(llm_response_id=response.id, evaluator_key="length", score=100, passed=True))
        assert dependency_met(store, response, config)
        store.add_evaluation(Evaluation(llm_response_id=response.id, evaluator_key="length", score=0, passed=False))
        assert not dependency_met(store, response, config)

    def test_min_dependency_score_overrides_passed(self):
        config = EvaluatorConfig("prompt_version", 1, "keyword", depends_on="llm_judge", min_dependency_score=40)
        store, response = _setup(config)
        store.add_evaluation(Evaluation(llm_response_id=response.id, evaluator_key="llm_judge", score=45, passed=False))
        assert dependency_met(store, response, config)


class TestExecuteConfig:

    def test_persists_evaluation(self):
        config = EvaluatorConfig("prompt_version", 1, "Length")
        store, response = _setup(config)

        evaluation = execute_config(store, EvaluatorRegistry(), response, config, evaluation_context="manual")

        assert evaluation.id is not None
        assert evaluation.evaluator_key == "length"
        assert evaluation.evaluation_context == "manual"
        assert evaluation.metadata["evaluator_config_id"] == config.id
        assert "prompt_test_run_id" not in evaluation.metadata
        assert store.evaluations() == [evaluation]

    def test_failure_returns_none(self):
        config = EvaluatorConfig("prompt_version", 1, "format", config={"format": "xml"})
        store, response = _setup(config)

        assert execute_config(store, EvaluatorRegistry(), response, config) is None
        assert store.evaluations() == []


class TestRunEvaluationJob:

    def test_runs_and_marks_async(self):
        config = EvaluatorConfig("prompt_version", 1, "length", run_mode="async")
        store, response = _setup(config)
        job = EvaluationJob(llm_response_id=response.id, evaluator_config_id=config.id)

        evaluation = run_evaluation_job(job, store=store, registry=EvaluatorRegistry())

        assert evaluation.passed is True
        assert evaluation.metadata["run_mode"] == "async"
        assert evaluation.metadata["enqueued_at"] == job.enqueued_at
        assert "executed_at" in evaluation.metadata

    def test_disabled_after_enqueue_is_skipped(self):
        config = EvaluatorConfig("prompt_version", 1, "length", run_mode="async")
        store, response = _setup(config)
        job = EvaluationJob(llm_response_id=response.id, evaluator_config_id=config.id)
        config.enabled = False

        assert run_evaluation_job(job, store=store, registry=EvaluatorRegistry()) is None
        assert store.evaluations() == []

    def test_unmet_dependency_is_skipped(self):
        config = EvaluatorConfig("prompt_version", 1, "keyword", run_mode="async", depends_on="length")
        store, response = _setup(config)
        job = EvaluationJob(llm_response_id=response.id, evaluator_config_id=config.id)

        assert run_evaluation_job(job, store=store, registry=EvaluatorRegistry()) is None


class TestThreadPoolScheduler:

    def test_runs_scheduled_jobs(self):
        config = EvaluatorConfig("prompt_version", 1, "length", run_mode="async")
        store, response = _setup(config)
        scheduler = ThreadPoolScheduler(
            partial(run_evaluation_job, store=store, registry=EvaluatorRegistry()),
            max_workers=2,
        )

        scheduler.schedule(EvaluationJob(llm_response_id=response.id, evaluator_config_id=config.id))
        scheduler.wait(timeout=10)
        scheduler.shutdown()

        assert len(store.evaluations_for(response.id, "length")) == 1

    def test_runner_failure_is_contained(self):
        runner = MagicMock(side_effect=RuntimeError("worker crashed"))
        scheduler = ThreadPoolScheduler(runner, max_workers=1)

        scheduler.schedule(EvaluationJob(llm_response_id=1, evaluator_config_id=2))
        scheduler.wait(timeout=10)
        scheduler.shutdown()

        runner.assert_called_once()

    def test_finished_jobs_are_released(self):
        scheduler = ThreadPoolScheduler(lambda job: None, max_workers=4)

        for i in range(1000):
            scheduler.schedule(EvaluationJob(llm_response_id=i, evaluator_config_id=1))
        scheduler.wait(timeout=30)
        scheduler.shutdown()

        assert scheduler.pending == 0
