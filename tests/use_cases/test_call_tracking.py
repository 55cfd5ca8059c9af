"""
Tests for call tracking
"""

import random

import pytest

from prompt_tracker_core.domain.entities import EvaluatorConfig, Experiment, Prompt, PromptVersion
from prompt_tracker_core.domain.value_objects import ModelResponse
from prompt_tracker_core.evaluators.registry import EvaluatorRegistry
from prompt_tracker_core.infrastructure.store import InMemoryStore
from prompt_tracker_core.use_cases.auto_evaluation import AutoEvaluationService
from prompt_tracker_core.use_cases.call_tracking import CallTracker, provider_for
from prompt_tracker_core.use_cases.experiments import ExperimentCoordinator


class MockModelClient:
    """Model client for tests"""

    def __init__(self, output="Hello! How can I help you today?", error=None):
        self.output = output
        self.error = error
        self.prompts = []

    def generate(self, prompt: str) -> ModelResponse:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return ModelResponse(output=self.output, latency_ms=250, model_name="gpt-4o", input_tokens=12, output_tokens=8)


class RecordingScheduler:
    def __init__(self):
        self.jobs = []

    def schedule(self, job):
        self.jobs.append(job)


def _setup(client=None):
    store = InMemoryStore()
    prompt = store.add_prompt(Prompt(name="greeting"))
    v1 = store.add_version(PromptVersion(prompt_id=prompt.id, version_number=1, status="active",
                                         model_config={"model": "gpt-4o"}))
    v2 = store.add_version(PromptVersion(prompt_id=prompt.id, version_number=2,
                                         model_config={"model": "gpt-4o-mini"}))
    prompt.active_version_id = v1.id
    store.add_evaluator_config(EvaluatorConfig("prompt_version", v1.id, "length"))

    client = client or MockModelClient()
    models = []

    def factory(model):
        models.append(model)
        return client

    coordinator = ExperimentCoordinator(store, rng=random.Random(0))
    pipeline = AutoEvaluationService(store, EvaluatorRegistry(), scheduler=RecordingScheduler())
    tracker = CallTracker(store, coordinator, pipeline, client_factory=factory)
    return store, prompt, v1, v2, tracker, models


class TestProviderFor:

    @pytest.mark.parametrize("model, provider", [
        ("gpt-4o", "openai"),
        ("claude-sonnet-4-5", "anthropic"),
        ("gemini-2.5-flash", "google"),
        ("lmstudio/qwen2.5-7b", "lmstudio"),
    ])
    def test_inferred(self, model, provider):
        assert provider_for(model) == provider


class TestCallTracker:

    def test_successful_call_is_recorded_and_evaluated(self):
        store, prompt, v1, _, tracker, models = _setup()

        response = tracker.track("greeting", "Say hello to Ada")

        assert response.status == "success"
        assert response.prompt_version_id == v1.id
        assert response.response_text == "Hello! How can I help you today?"
        assert response.response_time_ms == 250
        assert response.tokens_total == 20
        assert response.provider == "openai"
        assert response.experiment_id is None
        assert models == ["gpt-4o"]
        evaluations = store.evaluations_for(response.id)
        assert [e.evaluator_key for e in evaluations] == ["length"]
        assert evaluations[0].evaluation_context == "tracked_call"

    def test_explicit_model(self):
        _, _, _, _, tracker, models = _setup()
        response = tracker.track("greeting", "Hi", model="claude-haiku-4-5")
        assert models == ["claude-haiku-4-5"]
        assert response.provider == "anthropic"

    def test_error_is_recorded_without_evaluation(self):
        store, *_, tracker, _ = _setup(MockModelClient(error=ConnectionError("refused")))

        response = tracker.track("greeting", "Hi")

        assert response.status == "error"
        assert response.error_type == "ConnectionError"
        assert response.error_message == "refused"
        assert store.evaluations_for(response.id) == []

    def test_timeout_is_recorded(self):
        store, *_, tracker, _ = _setup(MockModelClient(error=TimeoutError()))

        response = tracker.track("greeting", "Hi")

        assert response.status == "timeout"
        assert response.error_message == "Request timed out"
        assert store.evaluations_for(response.id) == []

    def test_running_experiment_tags_response(self):
        store, prompt, v1, v2, tracker, models = _setup()
        experiment = store.add_experiment(Experiment(
            prompt_id=prompt.id,
            name="Mini test",
            metric_to_optimize="cost",
            traffic_split={"control": 0, "mini": 100},
            variants=[{"name": "control", "version_id": v1.id}, {"name": "mini", "version_id": v2.id}],
        ))
        tracker.coordinator.start(experiment)

        response = tracker.track("greeting", "Hi")

        assert response.experiment_id == experiment.id
        assert response.ab_variant == "mini"
        assert response.prompt_version_id == v2.id
        assert models == ["gpt-4o-mini"]

    def test_unknown_prompt(self):
        *_, tracker, _ = _setup()
        with pytest.raises(LookupError, match="not found"):
            tracker.track("farewell", "Bye")

    def test_no_active_version(self):
        store, *_, tracker, _ = _setup()
        store.add_prompt(Prompt(name="draft-only"))
        with pytest.raises(ValueError, match="no active version"):
            tracker.track("draft-only", "Hi")
