"""
Completion API response parsing utilities.

- extract_completion_text: Generated text from a chat completion body
- extract_error_message: Human-readable message from an error response
"""

from typing import Any, Optional

import httpx
from loguru import logger


def extract_completion_text(result: Any) -> Optional[str]:
    """
    Extract the generated text from a chat completion response.

    Args:
        result: Parsed JSON body of a successful chat completions call

    Returns:
        choices[0].message.content, or None if the body does not carry it

    Example:
        >>> extract_completion_text({"choices": [{"message": {"content": "Plan"}}]})
        'Plan'
    """
    try:
        content = result["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        logger.warning("Completion response missing choices[0].message.content")
        return None

    if not isinstance(content, str):
        logger.warning(f"Completion content has unexpected type {type(content).__name__}")
        return None

    return content


def extract_error_message(response: httpx.Response) -> Optional[str]:
    """
    Extract the upstream error message from an error response.

    OpenAI-compatible APIs answer errors with {"error": {"message": "..."}};
    some proxies use {"error": "..."} or {"message": "..."} instead.

    Args:
        response: Non-success HTTP response from the completion API

    Returns:
        The upstream message verbatim, or None if the body carries none

    Example:
        >>> response = httpx.Response(401, json={"error": {"message": "Incorrect API key"}})
        >>> extract_error_message(response)
        'Incorrect API key'
    """
    try:
        body = response.json()
    except ValueError:
        return None

    if not isinstance(body, dict):
        return None

    error = body.get("error")
    if isinstance(error, dict) and isinstance(error.get("message"), str) and error["message"]:
        return error["message"]
    if isinstance(error, str) and error:
        return error

    message = body.get("message")
    if isinstance(message, str) and message:
        return message

    return None
