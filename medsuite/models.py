"""
Pydantic models for the tool registry, the public API and the completion API.

Defines schemas for:
- ToolDefinition: One registered clinical document generation tool
- SubmitRequest / SubmitResponse / ErrorResponse: POST /api contract
- StatusResponse: GET /api capability listing
- CompletionRequest: Outbound chat completion request body
- HealthCheckResponse: GET /health
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ToolDefinition(BaseModel):
    """
    A clinical document generation tool backed by one prompt template.

    Model parameters are optional in the registry data; ToolRegistry fills in
    process defaults when it loads the entries, so definitions served from a
    registry always carry concrete values.

    Attributes:
        id: Unique, stable tool key (e.g. "mental-health")
        name: Display name echoed to callers
        description: What the tool produces
        prompt_template: Template containing {DATE} and/or {INPUT_DATA}
        model: Completion model name
        temperature: Sampling temperature (0.0-2.0)
        max_tokens: Maximum tokens to generate
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(..., min_length=1, description="Unique tool identifier")
    name: str = Field(..., min_length=1, description="Human-readable tool name")
    description: str = Field(default="", description="What the tool generates")
    prompt_template: str = Field(..., description="Prompt template text")
    model: Optional[str] = Field(default=None, description="Completion model name")
    temperature: Optional[float] = Field(
        default=None, description="Sampling temperature", ge=0.0, le=2.0
    )
    max_tokens: Optional[int] = Field(
        default=None, description="Maximum tokens to generate", ge=1
    )


class SubmitRequest(BaseModel):
    """
    Body of POST /api.

    Both fields are optional at the schema level so that missing values are
    reported with a message naming the field instead of a validation dump.

    Attributes:
        toolType: Registry id of the tool to run
        inputData: Clinical input interpolated into the tool's prompt
    """

    toolType: Optional[str] = Field(default=None, description="Tool identifier")
    inputData: Optional[Any] = Field(default=None, description="Structured clinical input")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "toolType": "mental-health",
                "inputData": {
                    "condition": "anxiety",
                    "goals": "Return to work within 3 months",
                    "currentMedications": "sertraline 50mg",
                },
            }
        }
    )


class SubmitResponse(BaseModel):
    """Successful POST /api response."""

    success: Literal[True] = True
    result: str = Field(..., description="Generated text from the completion API")
    toolType: str = Field(..., description="Tool identifier that was run")
    toolName: str = Field(..., description="Display name of the tool")
    timestamp: str = Field(..., description="ISO-8601 response time")


class ErrorResponse(BaseModel):
    """Failed POST /api response."""

    success: Literal[False] = False
    error: str = Field(..., description="Human-readable error message")


class StatusResponse(BaseModel):
    """
    GET /api response listing the registered tools.

    Attributes:
        status: Gateway status message
        timestamp: ISO-8601 response time
        availableTools: Registered tool ids in registry order
        version: Gateway version
    """

    status: str
    timestamp: str
    availableTools: List[str]
    version: str

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "Medical Assistant Suite API is running!",
                "timestamp": "2025-07-01T00:00:00.000Z",
                "availableTools": [
                    "mental-health",
                    "dexa-interpreter",
                    "spirometry-interpreter",
                ],
                "version": "1.0.0",
            }
        }
    )


class ChatMessage(BaseModel):
    """One chat message sent to the completion API."""

    role: Literal["system", "user", "assistant"]
    content: str


class CompletionRequest(BaseModel):
    """
    Chat completions request body.

    Attributes:
        model: Model name
        messages: Conversation; the gateway always sends one user message
        temperature: Sampling temperature (0.0-2.0)
        max_tokens: Maximum tokens to generate
    """

    model: str
    messages: List[ChatMessage]
    temperature: float = Field(..., ge=0.0, le=2.0)
    max_tokens: int = Field(..., ge=1)

    @classmethod
    def for_prompt(cls, tool: ToolDefinition, prompt: str) -> "CompletionRequest":
        """Build the single-message request for a compiled tool prompt."""
        return cls(
            model=tool.model,
            messages=[ChatMessage(role="user", content=prompt)],
            temperature=tool.temperature,
            max_tokens=tool.max_tokens,
        )


class HealthCheckResponse(BaseModel):
    """
    Health check response schema.

    Attributes:
        status: Health status (healthy/unhealthy)
        api_key_configured: Whether the completion API credential is set
        tool_count: Number of registered tools
        version: Gateway version
    """

    status: str = Field(..., description="Overall health status")
    api_key_configured: bool = Field(..., description="Completion API credential present")
    tool_count: int = Field(..., description="Registered tools", ge=0)
    version: str = Field(..., description="Gateway version")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "api_key_configured": True,
                "tool_count": 3,
                "version": "1.0.0",
            }
        }
    )
