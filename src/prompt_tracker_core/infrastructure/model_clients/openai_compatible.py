"""
OpenAI and OpenAI-compatible (LMStudio) model client
"""

import os
import time

import openai
from openai import OpenAI

from prompt_tracker_core.domain.value_objects import ModelResponse
from prompt_tracker_core.infrastructure.model_clients.base import ModelClient, RetryMixin

LMSTUDIO_PREFIX = "lmstudio/"


class OpenAICompatibleClient(RetryMixin, ModelClient):
    """
    Client for the OpenAI chat completions API

    Model names prefixed with "lmstudio/" are sent to a local OpenAI-compatible
    server (LMStudio) with the prefix stripped; all others go to OpenAI.
    """

    def __init__(
        self,
        model_name: str,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout_seconds: int = 120,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
        max_tokens: int = 1024,
    ):
        """
        Args:
            model_name: Model name (e.g. gpt-4o, lmstudio/qwen2.5-7b)
            base_url: API endpoint (LMSTUDIO_BASE_URL for lmstudio/ models, the OpenAI default otherwise)
            api_key: API key (LMSTUDIO_API_KEY or OPENAI_API_KEY)
            timeout_seconds: Request timeout in seconds
            max_retries: Maximum number of attempts
            retry_delay_seconds: Base delay for exponential backoff
            max_tokens: Maximum number of output tokens
        """
        self.model_name = model_name
        self.is_local = model_name.startswith(LMSTUDIO_PREFIX)
        self.api_model_name = model_name.removeprefix(LMSTUDIO_PREFIX)
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds
        self.max_tokens = max_tokens

        # Configuration priority: argument > environment variable > default value
        if self.is_local:
            base_url = base_url or os.environ.get("LMSTUDIO_BASE_URL", "http://localhost:1234/v1")
            api_key = api_key or os.environ.get("LMSTUDIO_API_KEY", "lm-studio")
        else:
            api_key = api_key or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ValueError("OPENAI_API_KEY is not set")

        self.base_url = base_url
        self.client = OpenAI(base_url=base_url, api_key=api_key, timeout=timeout_seconds, max_retries=0)

    def generate(self, prompt: str) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        Raises:
            Exception: If the maximum number of retries is exceeded
        """
        def _call():
            start_time = time.time()
            response = self.client.chat.completions.create(
                model=self.api_model_name,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.0,
                max_tokens=self.max_tokens,
            )
            latency_ms = int((time.time() - start_time) * 1000)

            input_tokens = 0
            output_tokens = 0
            if response.usage:
                input_tokens = response.usage.prompt_tokens or 0
                output_tokens = response.usage.completion_tokens or 0

            return ModelResponse(
                output=(response.choices[0].message.content or "").strip(),
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        return self._with_retry(
            _call,
            retryable_exceptions=(
                openai.APIConnectionError,
                openai.RateLimitError,
                openai.APIStatusError,
            ),
        )
