"""
Vertex AI (Google GenAI SDK) model client
"""

import os
import time

from google import genai
from google.api_core import exceptions as google_exceptions
from google.genai.types import GenerateContentConfig, HttpOptions

from prompt_tracker_core.domain.value_objects import ModelResponse
from prompt_tracker_core.infrastructure.model_clients.base import ModelClient, RetryMixin


class VertexAIClient(RetryMixin, ModelClient):
    """Gemini client using the Google GenAI SDK (via Vertex AI)"""

    def __init__(
        self,
        model_name: str,
        project_id: str | None = None,
        location: str | None = None,
        timeout_seconds: int = 120,
        max_retries: int = 3,
        retry_delay_seconds: float = 1.0,
    ):
        """
        Args:
            model_name: Model name (e.g. gemini-2.5-flash)
            project_id: GCP project ID (falls back to GCP_PROJECT_ID if not specified)
            location: Region (falls back to GCP_LOCATION, then "global")
            timeout_seconds: Request timeout in seconds
            max_retries: Maximum number of attempts
            retry_delay_seconds: Base delay for exponential backoff
        """
        self.model_name = model_name
        self.project_id = project_id or os.environ.get("GCP_PROJECT_ID")
        self.location = location or os.environ.get("GCP_LOCATION", "global")
        self.max_retries = max_retries
        self.retry_delay_seconds = retry_delay_seconds

        if not self.project_id:
            raise ValueError("GCP_PROJECT_ID is not set")

        # Timeout is configured in milliseconds via HttpOptions
        self.client = genai.Client(
            vertexai=True,
            project=self.project_id,
            location=self.location,
            http_options=HttpOptions(timeout=timeout_seconds * 1000),
        )
        self.generation_config = GenerateContentConfig(temperature=0.0)

    def generate(self, prompt: str) -> ModelResponse:
        """
        Send a prompt and retrieve the response

        Raises:
            Exception: If the maximum number of retries is exceeded
        """
        def _call():
            start_time = time.time()
            response = self.client.models.generate_content(
                model=self.model_name,
                contents=prompt,
                config=self.generation_config,
            )
            latency_ms = int((time.time() - start_time) * 1000)

            input_tokens = 0
            output_tokens = 0
            usage = getattr(response, "usage_metadata", None)
            if usage:
                input_tokens = getattr(usage, "prompt_token_count", 0) or 0
                output_tokens = getattr(usage, "candidates_token_count", 0) or 0

            return ModelResponse(
                output=(response.text or "").strip(),
                latency_ms=latency_ms,
                model_name=self.model_name,
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        return self._with_retry(
            _call,
            retryable_exceptions=(
                google_exceptions.DeadlineExceeded,
                google_exceptions.ServiceUnavailable,
                google_exceptions.ResourceExhausted,
            ),
        )
