"""
OpenAI chat completions HTTP client used to generate tool output.
"""

from typing import Any, Dict, Optional

import httpx
from loguru import logger

from medsuite.errors import UpstreamError
from medsuite.models import CompletionRequest
from medsuite.utils.parsers import extract_completion_text, extract_error_message


class OpenAIClient:
    """
    HTTP client for an OpenAI-compatible chat completions API.

    One completion request per call: no retries, no streaming. Failures are
    raised as UpstreamError carrying the upstream message when there is one.

    Attributes:
        base_url: Base URL of the API (e.g. https://api.openai.com/v1)
        timeout: Request timeout in seconds
        client: Async HTTP client instance
    """

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the completion client.

        Args:
            api_key: Bearer credential; requests are refused while it is unset
            base_url: Base URL of the API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used to mock the API in tests)
        """
        self._api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        logger.info(f"Initialized OpenAIClient with base_url={self.base_url}, timeout={timeout}s")

    async def close(self):
        """Close the HTTP client connection."""
        await self.client.aclose()
        logger.debug("OpenAIClient connection closed")

    async def chat_completions(self, request: CompletionRequest) -> Dict[str, Any]:
        """
        Call the chat completions API.

        Args:
            request: Model, messages and sampling parameters

        Returns:
            API response as dictionary with 'choices', 'usage', etc.

        Raises:
            UpstreamError: If the API is unreachable, times out or returns an
                error status

        Example:
            >>> client = OpenAIClient(api_key="sk-...")
            >>> result = await client.chat_completions(request)
            >>> print(result["choices"][0]["message"]["content"])
        """
        if not self._api_key:
            raise UpstreamError("OpenAI API key not configured")

        logger.debug(
            f"Calling chat completions API: model={request.model}, "
            f"max_tokens={request.max_tokens}, temp={request.temperature}"
        )

        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions",
                json=request.model_dump(),
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
        except httpx.TimeoutException as e:
            logger.error(f"Chat completions API timed out after {self.timeout}s: {e}")
            raise UpstreamError(f"OpenAI API request timed out after {self.timeout:g}s") from e
        except httpx.HTTPError as e:
            logger.error(f"Chat completions API failed: {e}")
            raise UpstreamError(f"OpenAI API request failed: {e}") from e

        if response.is_error:
            logger.error(
                f"Chat completions API HTTP error: {response.status_code} - {response.text}"
            )
            raise UpstreamError(
                extract_error_message(response) or "OpenAI API error",
                upstream_status=response.status_code,
            )

        try:
            result = response.json()
        except ValueError as e:
            logger.error(f"Chat completions API returned non-JSON body: {e}")
            raise UpstreamError("OpenAI API returned an invalid response") from e

        usage = result.get("usage") if isinstance(result, dict) else None
        tokens_used = usage.get("total_tokens", 0) if isinstance(usage, dict) else 0
        logger.info(f"Chat completions API success: {tokens_used} tokens used")

        return result

    async def complete(self, request: CompletionRequest) -> str:
        """
        Call the chat completions API and return only the generated text.

        Raises:
            UpstreamError: On any API failure or a response without text
        """
        result = await self.chat_completions(request)
        text = extract_completion_text(result)
        if text is None:
            logger.error("Chat completions API response has no message content")
            raise UpstreamError("OpenAI API returned no completion")
        return text
