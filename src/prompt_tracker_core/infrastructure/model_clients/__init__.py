"""
Model client package

Provides a unified interface to each LLM provider.
"""

from prompt_tracker_core.domain.value_objects import ModelResponse
from prompt_tracker_core.infrastructure.model_clients.base import ModelClient, RetryMixin
from prompt_tracker_core.infrastructure.model_clients.factory import create_client

__all__ = ["ModelClient", "ModelResponse", "RetryMixin", "create_client"]
