"""
In-memory persistence

Holds prompts, versions, experiments, generated responses, evaluator
configurations and evaluations, assigns ids, and enforces the cross-record
uniqueness constraints (one running experiment per prompt, one evaluator
configuration per owner and key).
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from prompt_tracker_core.domain.entities import (
    Evaluation,
    EvaluatorConfig,
    Experiment,
    LlmResponse,
    Prompt,
    PromptVersion,
    canonical_evaluator_key,
)


class DuplicateRunningExperimentError(ValueError):
    """Another experiment is already running for the same prompt"""
    pass


class DuplicateEvaluatorConfigError(ValueError):
    """The owner already has a configuration for this evaluator key"""
    pass


class RecordNotFoundError(LookupError):
    """No record with the requested id"""
    pass


class InMemoryStore:
    """
    Thread-safe in-memory store

    Reads copy a table under the lock before filtering it.

    Records are kept by reference: mutating an entity returned by the store
    mutates the stored record. Call save_experiment() after a lifecycle
    transition so the running-experiment constraint is re-checked.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._next_id = 1
        self._prompts: dict[int, Prompt] = {}
        self._versions: dict[int, PromptVersion] = {}
        self._experiments: dict[int, Experiment] = {}
        self._responses: dict[int, LlmResponse] = {}
        self._configs: dict[int, EvaluatorConfig] = {}
        self._evaluations: dict[int, Evaluation] = {}

    def _assign_id(self, record) -> None:
        # Ids are unique across tables; explicit ids push the counter past them
        if record.id is None:
            record.id = self._next_id
            self._next_id += 1
        else:
            self._next_id = max(self._next_id, int(record.id) + 1)

    def _values(self, table: dict) -> list:
        with self._lock:
            return list(table.values())

    @staticmethod
    def _get(table: dict, record_id: int, label: str):
        try:
            return table[record_id]
        except KeyError:
            raise RecordNotFoundError(f"{label} {record_id} not found")

    # ---- prompts / versions ----

    def add_prompt(self, prompt: Prompt) -> Prompt:
        with self._lock:
            if any(p.name == prompt.name for p in self._prompts.values() if p is not prompt):
                raise ValueError(f"Prompt '{prompt.name}' already exists")
            self._assign_id(prompt)
            self._prompts[prompt.id] = prompt
        return prompt

    def get_prompt(self, prompt_id: int) -> Prompt:
        return self._get(self._prompts, prompt_id, "Prompt")

    def find_prompt(self, name: str) -> Prompt | None:
        return next((p for p in self._values(self._prompts) if p.name == name), None)

    def prompts(self) -> list[Prompt]:
        return self._values(self._prompts)

    def add_version(self, version: PromptVersion) -> PromptVersion:
        self.get_prompt(version.prompt_id)
        with self._lock:
            self._assign_id(version)
            self._versions[version.id] = version
        return version

    def get_version(self, version_id: int) -> PromptVersion:
        return self._get(self._versions, version_id, "PromptVersion")

    def versions_for(self, prompt_id: int) -> list[PromptVersion]:
        return sorted(
            (v for v in self._values(self._versions) if v.prompt_id == prompt_id),
            key=lambda v: v.version_number,
        )

    def activate_version(self, version: PromptVersion) -> Prompt:
        """Make version the prompt's active version and deprecate the previously active one"""
        prompt = self.get_prompt(version.prompt_id)
        with self._lock:
            for other in self._versions.values():
                if other.prompt_id == prompt.id and other.status == "active" and other is not version:
                    other.status = "deprecated"
            version.status = "active"
            prompt.active_version_id = version.id
        return prompt

    # ---- experiments ----

    def _check_single_running(self, experiment: Experiment, starting: bool = False) -> None:
        # Caller holds the lock
        if experiment.status != "running" and not starting:
            return
        for other in self._experiments.values():
            if other is experiment or (experiment.id is not None and other.id == experiment.id):
                continue
            if other.prompt_id == experiment.prompt_id and other.status == "running":
                raise DuplicateRunningExperimentError(
                    f"Experiment '{other.name}' is already running for prompt {experiment.prompt_id}"
                )

    def add_experiment(self, experiment: Experiment) -> Experiment:
        self.get_prompt(experiment.prompt_id)
        with self._lock:
            self._check_single_running(experiment)
            self._assign_id(experiment)
            self._experiments[experiment.id] = experiment
        return experiment

    def save_experiment(self, experiment: Experiment) -> Experiment:
        """
        Persist changes to an experiment

        Raises:
            DuplicateRunningExperimentError: When another experiment of the prompt is running
        """
        with self._lock:
            self._check_single_running(experiment)
            self._assign_id(experiment)
            self._experiments[experiment.id] = experiment
        return experiment

    def ensure_can_run(self, experiment: Experiment) -> None:
        """Raise DuplicateRunningExperimentError if starting experiment would break the constraint"""
        with self._lock:
            self._check_single_running(experiment, starting=True)

    def get_experiment(self, experiment_id: int) -> Experiment:
        return self._get(self._experiments, experiment_id, "Experiment")

    def find_experiment(self, name: str) -> Experiment | None:
        return next((e for e in self._values(self._experiments) if e.name == name), None)

    def experiments(self, prompt_id: int | None = None) -> list[Experiment]:
        return [e for e in self._values(self._experiments) if prompt_id is None or e.prompt_id == prompt_id]

    def running_experiment(self, prompt_id: int) -> Experiment | None:
        return next(
            (e for e in self._values(self._experiments) if e.prompt_id == prompt_id and e.status == "running"),
            None,
        )

    # ---- responses ----

    def add_response(self, response: LlmResponse) -> LlmResponse:
        with self._lock:
            self._assign_id(response)
            self._responses[response.id] = response
        return response

    def get_response(self, response_id: int) -> LlmResponse:
        return self._get(self._responses, response_id, "LlmResponse")

    def responses(
        self,
        *,
        experiment_id: int | None = None,
        variant: str | None = None,
        status: str | None = None,
        prompt_version_id: int | None = None,
    ) -> list[LlmResponse]:
        """Responses in creation order, filtered by any of the given fields"""
        result = []
        for r in self._values(self._responses):
            if experiment_id is not None and r.experiment_id != experiment_id:
                continue
            if variant is not None and r.ab_variant != variant:
                continue
            if status is not None and r.status != status:
                continue
            if prompt_version_id is not None and r.prompt_version_id != prompt_version_id:
                continue
            result.append(r)
        return result

    # ---- evaluator configurations ----

    def add_evaluator_config(self, config: EvaluatorConfig) -> EvaluatorConfig:
        """
        Raises:
            DuplicateEvaluatorConfigError: When the owner already has this evaluator key
        """
        with self._lock:
            for other in self._configs.values():
                if (
                    other is not config
                    and other.owner_type == config.owner_type
                    and other.owner_id == config.owner_id
                    and other.evaluator_key == config.evaluator_key
                ):
                    raise DuplicateEvaluatorConfigError(
                        f"{config.owner_type} {config.owner_id} already has an evaluator '{config.evaluator_key}'"
                    )
            self._assign_id(config)
            self._configs[config.id] = config
        return config

    def get_evaluator_config(self, config_id: int) -> EvaluatorConfig:
        return self._get(self._configs, config_id, "EvaluatorConfig")

    def evaluator_configs(
        self,
        owner_type: str,
        owner_id: int,
        *,
        enabled_only: bool = True,
    ) -> list[EvaluatorConfig]:
        """Configurations of one owner in creation order"""
        configs = [
            c for c in self._values(self._configs)
            if c.owner_type == owner_type and c.owner_id == owner_id and (c.enabled or not enabled_only)
        ]
        return sorted(configs, key=lambda c: (c.created_at, c.id))

    # ---- evaluations ----

    def add_evaluation(self, evaluation: Evaluation) -> Evaluation:
        with self._lock:
            self._assign_id(evaluation)
            self._evaluations[evaluation.id] = evaluation
        return evaluation

    def add_evaluations(self, evaluations: Iterable[Evaluation]) -> list[Evaluation]:
        return [self.add_evaluation(e) for e in evaluations]

    def evaluations_for(self, response_id: int, evaluator_key: str | None = None) -> list[Evaluation]:
        key = canonical_evaluator_key(evaluator_key) if evaluator_key is not None else None
        return [
            e for e in self._values(self._evaluations)
            if e.llm_response_id == response_id and (key is None or e.evaluator_key == key)
        ]

    def latest_evaluation(self, response_id: int, evaluator_key: str) -> Evaluation | None:
        evaluations = self.evaluations_for(response_id, evaluator_key)
        return evaluations[-1] if evaluations else None

    def evaluations(self) -> list[Evaluation]:
        return self._values(self._evaluations)
