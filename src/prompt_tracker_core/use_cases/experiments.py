"""
Variant selection and experiment coordination

Decides, per call, which prompt version to use: the prompt's active version,
or a variant's version drawn by traffic split when an experiment is running.
"""

from __future__ import annotations

import hashlib
import logging
import random

from prompt_tracker_core.domain.entities import Experiment, InvalidTransitionError, Prompt, utcnow
from prompt_tracker_core.domain.value_objects import VariantSelection
from prompt_tracker_core.infrastructure.store import InMemoryStore

logger = logging.getLogger(__name__)


def sticky_bucket(experiment_id, assignment_key: str) -> int:
    """Stable bucket in [0, 100) for an assignment key within one experiment"""
    digest = hashlib.sha256(f"{experiment_id}:{assignment_key}".encode("utf-8")).hexdigest()
    return int(digest, 16) % 100


def select_variant(
    traffic_split: dict[str, int],
    rng: random.Random | None = None,
    draw: int | None = None,
) -> str:
    """
    Weighted random selection of a variant name

    Args:
        traffic_split: Variant name -> percentage, in declared order
        rng: Randomness source (a fresh module-level draw if not provided)
        draw: Precomputed draw in [0, 100) (e.g. a sticky bucket); overrides rng

    Returns:
        The first variant whose cumulative percentage exceeds the draw,
        or the first declared variant if none does
    """
    if not traffic_split:
        raise ValueError("traffic_split must not be empty")
    if draw is None:
        draw = (rng or random).randrange(100)

    cumulative = 0
    for name, percentage in traffic_split.items():
        cumulative += percentage
        if draw < cumulative:
            return name

    first = next(iter(traffic_split))
    logger.warning("Traffic split %s does not cover draw %d; falling back to %s", traffic_split, draw, first)
    return first


class ExperimentCoordinator:
    """
    Resolves the version to use for the next call of a prompt

    Also drives the experiment lifecycle through the store so the
    one-running-experiment-per-prompt constraint is enforced.
    """

    def __init__(self, store: InMemoryStore, rng: random.Random | None = None) -> None:
        self.store = store
        self.rng = rng or random.Random()

    def running_experiment(self, prompt: Prompt) -> Experiment | None:
        return self.store.running_experiment(prompt.id)

    def is_running(self, prompt: Prompt) -> bool:
        return self.running_experiment(prompt) is not None

    @staticmethod
    def valid_variant(experiment: Experiment, variant_name: str) -> bool:
        return variant_name in experiment.variant_names

    def select_version_for(self, prompt: Prompt, assignment_key: str | None = None) -> VariantSelection:
        """
        Pick the version for the next call

        Args:
            prompt: Prompt being called
            assignment_key: Optional stable key (user or session id); when given,
                the same key always lands in the same variant of an experiment

        Returns:
            VariantSelection (experiment and variant are None outside an experiment)
        """
        experiment = self.running_experiment(prompt)
        if experiment is None:
            version = self.store.get_version(prompt.active_version_id) if prompt.active_version_id else None
            return VariantSelection(version=version)

        draw = sticky_bucket(experiment.id, assignment_key) if assignment_key is not None else None
        variant = select_variant(experiment.traffic_split, rng=self.rng, draw=draw)
        version_id = experiment.version_id_for_variant(variant)
        version = self.store.get_version(version_id) if version_id is not None else None
        logger.debug("Prompt %s: experiment %s selected variant %s", prompt.name, experiment.name, variant)
        return VariantSelection(version=version, experiment=experiment, variant=variant)

    # ---- lifecycle ----

    def start(self, experiment: Experiment) -> Experiment:
        """
        Raises:
            DuplicateRunningExperimentError: When another experiment of the prompt is running
            InvalidTransitionError: When the experiment is not a draft
        """
        self.store.ensure_can_run(experiment)
        experiment.start()
        logger.info("Started experiment %s", experiment.name)
        return self.store.save_experiment(experiment)

    def pause(self, experiment: Experiment) -> Experiment:
        experiment.pause()
        return self.store.save_experiment(experiment)

    def resume(self, experiment: Experiment) -> Experiment:
        self.store.ensure_can_run(experiment)
        experiment.resume()
        return self.store.save_experiment(experiment)

    def complete(self, experiment: Experiment, winner: str) -> Experiment:
        experiment.complete(winner)
        logger.info("Completed experiment %s with winner %s", experiment.name, winner)
        return self.store.save_experiment(experiment)

    def cancel(self, experiment: Experiment) -> Experiment:
        experiment.cancel()
        return self.store.save_experiment(experiment)

    def promote_winner(self, experiment: Experiment) -> Prompt:
        """
        Activate the winning variant's version on the prompt

        Raises:
            InvalidTransitionError: When the experiment is not completed or has no winner
        """
        winner = experiment.results.get("winner")
        if not experiment.is_completed or not winner:
            raise InvalidTransitionError(
                f"Experiment {experiment.name} must be completed with a winner before promotion"
            )
        version_id = experiment.version_id_for_variant(winner)
        version = self.store.get_version(version_id)
        experiment.results["promoted_at"] = utcnow().isoformat()
        logger.info("Promoting version %s of prompt %s", version.version_number, experiment.prompt_id)
        return self.store.activate_version(version)
