"""
Call tracking

Entry point for one tracked LLM call: pick the version (experiment-aware),
record the response, call the model, and evaluate the result.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from prompt_tracker_core.domain.entities import LlmResponse
from prompt_tracker_core.infrastructure.model_clients.base import ModelClient
from prompt_tracker_core.infrastructure.store import InMemoryStore
from prompt_tracker_core.use_cases.auto_evaluation import AutoEvaluationService
from prompt_tracker_core.use_cases.experiments import ExperimentCoordinator

logger = logging.getLogger(__name__)


def provider_for(model_name: str) -> str:
    """Provider label inferred from a model name"""
    if model_name.startswith("lmstudio/"):
        return "lmstudio"
    if model_name.startswith("claude"):
        return "anthropic"
    if model_name.startswith("gemini"):
        return "google"
    return "openai"


class CallTracker:
    """
    Tracks LLM calls of named prompts

    Args:
        store: Persistence
        coordinator: Experiment coordinator used to pick the version
        pipeline: Auto-evaluation pipeline run after a successful call
        client_factory: Builds a model client from a model name
    """

    def __init__(
        self,
        store: InMemoryStore,
        coordinator: ExperimentCoordinator,
        pipeline: AutoEvaluationService,
        client_factory: Callable[[str], ModelClient] | None = None,
    ) -> None:
        if client_factory is None:
            from prompt_tracker_core.infrastructure.model_clients.factory import create_client

            client_factory = create_client
        self.store = store
        self.coordinator = coordinator
        self.pipeline = pipeline
        self.client_factory = client_factory

    def track(
        self,
        prompt_name: str,
        rendered_prompt: str,
        model: str | None = None,
        assignment_key: str | None = None,
    ) -> LlmResponse:
        """
        Run and record one call

        Args:
            prompt_name: Name of the prompt being called
            rendered_prompt: Prompt text sent to the model
            model: Model name (the version's model_config["model"] if not provided)
            assignment_key: Optional sticky assignment key for experiments

        Returns:
            The recorded LlmResponse (success, error or timeout)

        Raises:
            LookupError: When the prompt does not exist
            ValueError: When no version can be selected or no model is known
        """
        prompt = self.store.find_prompt(prompt_name)
        if prompt is None:
            raise LookupError(f"Prompt '{prompt_name}' not found")

        selection = self.coordinator.select_version_for(prompt, assignment_key=assignment_key)
        if selection.version is None:
            raise ValueError(f"Prompt '{prompt_name}' has no active version")
        version = selection.version

        model = model or version.model_config.get("model")
        if not model:
            raise ValueError(f"No model configured for version {version.version_number} of '{prompt_name}'")

        response = self.store.add_response(
            LlmResponse(
                prompt_version_id=version.id,
                rendered_prompt=rendered_prompt,
                provider=version.model_config.get("provider") or provider_for(model),
                model=model,
                experiment_id=selection.experiment.id if selection.experiment else None,
                ab_variant=selection.variant,
            )
        )

        start_time = time.time()
        try:
            result = self.client_factory(model).generate(rendered_prompt)
        except TimeoutError as e:
            response.mark_timeout(int((time.time() - start_time) * 1000), str(e) or "Request timed out")
            logger.warning("Call to %s for prompt %s timed out", model, prompt_name)
            return response
        except Exception as e:
            response.mark_error(type(e).__name__, str(e), int((time.time() - start_time) * 1000))
            logger.warning("Call to %s for prompt %s failed: %s", model, prompt_name, e)
            return response

        response.mark_success(
            response_text=result.output,
            response_time_ms=result.latency_ms,
            tokens_prompt=result.input_tokens,
            tokens_completion=result.output_tokens,
            tokens_total=result.input_tokens + result.output_tokens,
        )
        self.pipeline.evaluate(response, evaluation_context="tracked_call")
        return response
