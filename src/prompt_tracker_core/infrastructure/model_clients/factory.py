"""
Model client factory

Creates the appropriate client instance based on the model name.
"""

from __future__ import annotations

from prompt_tracker_core.engine_config import EngineConfig, load_config
from prompt_tracker_core.infrastructure.model_clients.base import ModelClient
from prompt_tracker_core.infrastructure.model_clients.claude import ClaudeClient
from prompt_tracker_core.infrastructure.model_clients.openai_compatible import (
    LMSTUDIO_PREFIX,
    OpenAICompatibleClient,
)
from prompt_tracker_core.infrastructure.model_clients.vertex_ai import VertexAIClient


def create_client(
    model_name: str,
    config: EngineConfig | None = None,
    *,
    timeout_seconds: int | None = None,
    max_retries: int | None = None,
) -> ModelClient:
    """
    Create the appropriate client based on the model name

    lmstudio/* -> local OpenAI-compatible server, claude* -> Anthropic,
    gemini* -> Vertex AI, anything else -> OpenAI.

    Args:
        model_name: Model name
        config: EngineConfig (loads from env if not provided)
        timeout_seconds: Overrides config.client.timeout_seconds
        max_retries: Overrides config.client.max_retries

    Returns:
        ModelClient: The appropriate client instance
    """
    if config is None:
        config = load_config()

    timeout = timeout_seconds if timeout_seconds is not None else config.client.timeout_seconds
    retries = max_retries if max_retries is not None else config.client.max_retries
    retry_delay = config.client.retry_delay_seconds

    if model_name.startswith(LMSTUDIO_PREFIX):
        return OpenAICompatibleClient(
            model_name,
            base_url=config.lmstudio.base_url,
            api_key=config.lmstudio.api_key,
            timeout_seconds=timeout,
            max_retries=retries,
            retry_delay_seconds=retry_delay,
        )
    elif model_name.startswith("claude"):
        return ClaudeClient(model_name, timeout_seconds=timeout, max_retries=retries, retry_delay_seconds=retry_delay)
    elif model_name.startswith("gemini"):
        return VertexAIClient(model_name, timeout_seconds=timeout, max_retries=retries, retry_delay_seconds=retry_delay)
    else:
        return OpenAICompatibleClient(model_name, timeout_seconds=timeout, max_retries=retries, retry_delay_seconds=retry_delay)
