"""
Snapshot Loader

Loads prompts, versions, experiments, responses, evaluator configurations and
evaluations from a JSON snapshot into an InMemoryStore.

Snapshot format:
    {
      "prompts": [{"id": 1, "name": "greeting", "active_version_id": 1}],
      "versions": [{"id": 1, "prompt_id": 1, "version_number": 1, "template": "..."}],
      "experiments": [{"id": 1, "prompt_id": 1, "name": "...", "metric_to_optimize": "response_time",
                       "traffic_split": {"A": 50, "B": 50},
                       "variants": [{"name": "A", "version_id": 1}, {"name": "B", "version_id": 2}]}],
      "responses": [...],
      "evaluator_configs": [...],
      "evaluations": [...]
    }

Only "prompts" is required; every other section defaults to empty.
"""

import json
from dataclasses import fields
from datetime import datetime, timezone

from prompt_tracker_core.domain.entities import (
    Evaluation,
    EvaluatorConfig,
    Experiment,
    LlmResponse,
    Prompt,
    PromptVersion,
)
from prompt_tracker_core.infrastructure.store import InMemoryStore

DATETIME_FIELDS = ("created_at", "started_at", "completed_at", "cancelled_at")


def _parse_datetime(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC"""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _build(cls, data: dict):
    """
    Create a dataclass entity from dictionary data

    Unknown keys are ignored and timestamp fields are parsed.
    """
    names = {f.name for f in fields(cls)}
    kwargs = {k: v for k, v in data.items() if k in names}
    for key in DATETIME_FIELDS:
        if key in kwargs:
            kwargs[key] = _parse_datetime(kwargs[key])
    return cls(**kwargs)


def load_snapshot(file_path: str) -> InMemoryStore:
    """
    Load a JSON snapshot

    Args:
        file_path: Path to the snapshot JSON file

    Returns:
        InMemoryStore: Store holding every record of the snapshot

    Raises:
        FileNotFoundError: If the file does not exist
        KeyError: If a required field is missing
        ValueError: If a record violates an entity or store invariant
    """
    with open(file_path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if "prompts" not in data:
        raise KeyError(f"Required field 'prompts' is missing: {file_path}")

    store = InMemoryStore()
    # Order matters: children reference their parents
    for item in data["prompts"]:
        store.add_prompt(_build(Prompt, item))
    for item in data.get("versions", []):
        store.add_version(_build(PromptVersion, item))
    for item in data.get("experiments", []):
        store.add_experiment(_build(Experiment, item))
    for item in data.get("responses", []):
        store.add_response(_build(LlmResponse, item))
    for item in data.get("evaluator_configs", []):
        store.add_evaluator_config(_build(EvaluatorConfig, item))
    for item in data.get("evaluations", []):
        store.add_evaluation(_build(Evaluation, item))
    return store
