"""
Request dispatcher for the tool endpoint.

Turns one inbound call (HTTP method + parsed JSON body) into a status code
and JSON payload. Each call is an independent linear pipeline:

    method gate -> validate -> registry lookup -> credential check
    -> compile prompt -> one completion call -> response

Every failure is converted to a JSON error payload here; nothing raised
below this layer reaches the HTTP framework.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Optional

from loguru import logger
from pydantic import ValidationError

from medsuite import __version__
from medsuite.config import Settings
from medsuite.errors import (
    BadRequestError,
    GatewayError,
    MethodNotAllowedError,
    ServerMisconfigurationError,
)
from medsuite.models import (
    CompletionRequest,
    ErrorResponse,
    StatusResponse,
    SubmitRequest,
    SubmitResponse,
)
from medsuite.registry import ToolRegistry
from medsuite.services.openai_client import OpenAIClient
from medsuite.utils.prompts import compile_prompt

STATUS_MESSAGE = "Medical Assistant Suite API is running!"
REQUIRED_FIELDS = ("toolType", "inputData")


class Operation(str, Enum):
    """Operations supported by the tool endpoint, keyed by HTTP method."""

    PREFLIGHT = "OPTIONS"
    PROBE = "GET"
    SUBMIT = "POST"

    @classmethod
    def from_method(cls, method: str) -> "Operation":
        """
        Map an HTTP method to an operation.

        Raises:
            MethodNotAllowedError: For any method other than OPTIONS, GET, POST
        """
        try:
            return cls(method.upper())
        except ValueError:
            raise MethodNotAllowedError(method) from None


@dataclass(frozen=True)
class DispatchResult:
    """Status code and JSON payload for one call; payload None means empty body."""

    status_code: int
    payload: Optional[Dict[str, Any]] = None


def isoformat_timestamp(moment: datetime) -> str:
    """
    Format a moment as ISO-8601 UTC with millisecond precision.

    Example:
        >>> isoformat_timestamp(datetime(2025, 7, 1, 9, 30, tzinfo=timezone.utc))
        '2025-07-01T09:30:00.000Z'
    """
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_missing(value: Any) -> bool:
    # Empty containers ({} and []) are valid input; scalar falsy values are not
    if value is None or value is False or value == "":
        return True
    return isinstance(value, (int, float)) and value == 0


class RequestDispatcher:
    """
    Stateless translation layer between callers and the completion API.

    Holds only read-only collaborators, so one instance serves every
    concurrent request.

    Attributes:
        registry: Tool registry used for lookups and capability listing
        settings: Process settings (credential presence is checked per call)
        client: Completion API client
        clock: Returns the current time; injectable for tests
    """

    def __init__(
        self,
        registry: ToolRegistry,
        settings: Settings,
        client: OpenAIClient,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.registry = registry
        self.settings = settings
        self.client = client
        self.clock = clock or _utc_now

    async def dispatch(self, method: str, body: Any = None) -> DispatchResult:
        """
        Handle one call to the tool endpoint.

        Args:
            method: HTTP method of the call
            body: Parsed JSON body (POST only; anything else is ignored)

        Returns:
            DispatchResult with status code and payload
        """
        try:
            operation = Operation.from_method(method)
        except MethodNotAllowedError as e:
            logger.warning(f"Rejected {e.method} request: method not allowed")
            return DispatchResult(e.status_code, {"error": e.message})

        if operation is Operation.PREFLIGHT:
            return DispatchResult(200)
        elif operation is Operation.PROBE:
            return self.probe()
        elif operation is Operation.SUBMIT:
            return await self.submit(body)

        raise AssertionError(f"Unhandled operation: {operation}")

    def probe(self) -> DispatchResult:
        """Report gateway status and the registered tool ids."""
        response = StatusResponse(
            status=STATUS_MESSAGE,
            timestamp=isoformat_timestamp(self.clock()),
            availableTools=list(self.registry.list_ids()),
            version=__version__,
        )
        return DispatchResult(200, response.model_dump())

    async def submit(self, body: Any) -> DispatchResult:
        """
        Run a tool: validate, compile its prompt and relay it to the completion API.

        Args:
            body: Parsed JSON body, expected to be {"toolType": ..., "inputData": ...}

        Returns:
            200 with the generated text, 400 for caller errors, 500 otherwise
        """
        tool_type = body.get("toolType") if isinstance(body, dict) else None
        label = tool_type if isinstance(tool_type, str) and tool_type else "unknown"

        try:
            return await self._submit(body)
        except BadRequestError as e:
            logger.warning(f"Rejected {label} request: {e.message}")
            return self._error(e.status_code, e.message)
        except GatewayError as e:
            logger.error(f"Failed to process {label} request: {e.message}")
            return self._error(e.status_code, f"Failed to process {label} request: {e.message}")
        except Exception as e:
            logger.exception(f"Unexpected error processing {label} request: {e}")
            return self._error(500, f"Failed to process {label} request: {e}")

    async def _submit(self, body: Any) -> DispatchResult:
        request = self._parse_submit(body)

        tool = self.registry.lookup(request.toolType)

        if not self.settings.api_key_configured:
            raise ServerMisconfigurationError("OpenAI API key not configured")

        # {DATE} reflects the server's local calendar date
        prompt = compile_prompt(tool.prompt_template, request.inputData, self.clock().astimezone())

        logger.info(f"Processing {tool.id} request")
        logger.debug(f"Compiled prompt for {tool.id} ({len(prompt)} chars)")

        text = await self.client.complete(CompletionRequest.for_prompt(tool, prompt))

        logger.info(f"Completed {tool.id} request: {len(text)} chars generated")
        response = SubmitResponse(
            result=text,
            toolType=tool.id,
            toolName=tool.name,
            timestamp=isoformat_timestamp(self.clock()),
        )
        return DispatchResult(200, response.model_dump())

    @staticmethod
    def _parse_submit(body: Any) -> SubmitRequest:
        if not isinstance(body, dict):
            body = {}

        missing = [field for field in REQUIRED_FIELDS if _is_missing(body.get(field))]
        if len(missing) == 1:
            raise BadRequestError(f"{missing[0]} is required")
        if missing:
            raise BadRequestError("Tool type and input data are required (toolType, inputData)")

        try:
            return SubmitRequest.model_validate(body)
        except ValidationError as e:
            raise BadRequestError("toolType must be a string") from e

    @staticmethod
    def _error(status_code: int, message: str) -> DispatchResult:
        return DispatchResult(status_code, ErrorResponse(error=message).model_dump())
