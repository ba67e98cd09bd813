"""
Error taxonomy for the gateway.

Request-time errors carry the HTTP status they map to, so the dispatcher can
turn any of them into a JSON response without per-type branching. Registry
errors are raised at startup and never reach a caller.
"""


class GatewayError(Exception):
    """Base class for errors that are reported to the caller."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(GatewayError):
    """The caller sent a request that cannot be processed."""

    status_code = 400


class ToolNotFoundError(BadRequestError):
    """The requested tool id is not in the registry."""

    def __init__(self, tool_id: str, available: tuple[str, ...]):
        super().__init__(
            f"Unknown tool type: {tool_id}. Available tools: {', '.join(available)}"
        )
        self.tool_id = tool_id
        self.available = available


class MethodNotAllowedError(GatewayError):
    """HTTP method outside of OPTIONS/GET/POST."""

    status_code = 405

    def __init__(self, method: str):
        super().__init__("Method not allowed")
        self.method = method


class ServerMisconfigurationError(GatewayError):
    """Deployment defect: missing credential, malformed registry entry."""

    status_code = 500


class InvalidTemplateError(ServerMisconfigurationError):
    """A tool's prompt template is missing or empty."""


class UpstreamError(GatewayError):
    """The completion API failed or returned a non-success response."""

    status_code = 500

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class RegistryError(Exception):
    """The tool registry data could not be loaded."""


class DuplicateToolError(RegistryError):
    """Two registry entries share the same tool id."""

    def __init__(self, tool_id: str):
        super().__init__(f"Duplicate tool id in registry: {tool_id}")
        self.tool_id = tool_id
