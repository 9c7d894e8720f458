"""
LLM Client - thin wrapper over an OpenAI-compatible chat completions API.

Works with vLLM, Ollama, OpenAI and any other backend speaking the same
protocol; the backend is chosen by LLMConfig. The agent only needs text in
and text out, so tool-calling fields are ignored here.

Includes timeout and retry logic for resilience against API hangs.
"""

import logging
import time
from typing import Any

import httpx

from splunk_query_agent.config import LLMConfig

logger = logging.getLogger(__name__)

# Default timeout configuration (in seconds)
DEFAULT_CONNECT_TIMEOUT = 10.0
DEFAULT_READ_TIMEOUT = 120.0
DEFAULT_WRITE_TIMEOUT = 10.0
DEFAULT_POOL_TIMEOUT = 10.0

DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 5.0


class LLMError(Exception):
    """Error from the LLM client."""
    pass


class ChatResponse:
    """Response from a chat completion request."""

    def __init__(
        self,
        content: str | None,
        finish_reason: str,
        raw_response: dict[str, Any],
    ) -> None:
        self.content = content or ""
        self.finish_reason = finish_reason
        self.raw_response = raw_response

    @classmethod
    def from_api_response(cls, data: dict[str, Any]) -> "ChatResponse":
        """Parse an API response into a ChatResponse."""
        try:
            choice = data["choices"][0]
            message = choice["message"]
        except (KeyError, IndexError, TypeError) as e:
            raise LLMError(f"Malformed completion response: {e}") from e

        return cls(
            content=message.get("content"),
            finish_reason=choice.get("finish_reason", "stop"),
            raw_response=data,
        )


class LLMClient:
    """
    Synchronous client for OpenAI-compatible LLM APIs.

    Timeouts, 429 and 503 responses, and network errors are retried up to
    max_retries times; anything else raises LLMError immediately.
    """

    def __init__(
        self,
        config: LLMConfig | None = None,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client with configuration.

        Args:
            config: LLM configuration (model, API key, etc.)
            max_retries: Maximum number of retries for retryable errors
            retry_delay: Seconds to wait before retrying
            transport: Optional httpx transport, used by tests
        """
        self.config = config or LLMConfig.from_env()
        self.max_retries = max_retries
        self.retry_delay = retry_delay

        timeout = httpx.Timeout(
            connect=DEFAULT_CONNECT_TIMEOUT,
            read=DEFAULT_READ_TIMEOUT,
            write=DEFAULT_WRITE_TIMEOUT,
            pool=DEFAULT_POOL_TIMEOUT,
        )

        self._client = httpx.Client(
            base_url=self.config.base_url,
            headers={
                "Authorization": f"Bearer {self.config.api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def chat(self, messages: list[dict[str, Any]]) -> ChatResponse:
        """
        Send a chat completion request with automatic retry.

        Raises:
            LLMError: If all retries are exhausted or a non-retryable error occurs
        """
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

        last_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                logger.info(f"Retry attempt {attempt}/{self.max_retries} after {self.retry_delay}s delay...")
                time.sleep(self.retry_delay)

            logger.debug(f"Sending chat request with {len(messages)} messages (attempt {attempt + 1})")

            try:
                response = self._client.post("/chat/completions", json=payload)
                response.raise_for_status()
                return ChatResponse.from_api_response(response.json())

            except httpx.TimeoutException as e:
                logger.warning(f"Request timed out (attempt {attempt + 1}): {e}")
                last_error = e
                continue

            except httpx.HTTPStatusError as e:
                if e.response.status_code in (429, 503):
                    logger.warning(f"Retryable status {e.response.status_code} (attempt {attempt + 1})")
                    last_error = e
                    continue

                logger.error(f"HTTP error: {e.response.status_code} - {e.response.text}")
                raise LLMError(f"HTTP {e.response.status_code}: {e.response.text}") from e

            except httpx.RequestError as e:
                logger.warning(f"Request error (attempt {attempt + 1}): {e}")
                last_error = e
                continue

            except ValueError as e:
                raise LLMError(f"Invalid JSON in completion response: {e}") from e

        logger.error(f"All {self.max_retries + 1} attempts failed. Last error: {last_error}")
        raise LLMError(f"Request failed after {self.max_retries + 1} attempts: {last_error}") from last_error

    def complete(self, messages: list[dict[str, Any]]) -> str:
        """Text content of a chat completion."""
        return self.chat(messages).content

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> "LLMClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
