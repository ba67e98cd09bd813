"""
FastAPI gateway for the Medical Assistant Suite.

This gateway runs clinical document generation tools: it compiles the
selected tool's prompt template with the caller's input and relays it to an
OpenAI-compatible chat completions API.

Run with:
    uvicorn medsuite.main:app --host 0.0.0.0 --port 8080
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from medsuite import __version__
from medsuite.config import Settings, get_settings
from medsuite.registry import ToolDefaults, ToolRegistry, load_registry
from medsuite.routers import health, tools
from medsuite.services.dispatcher import RequestDispatcher
from medsuite.services.openai_client import OpenAIClient

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def configure_logging(settings: Settings) -> Optional[int]:
    """
    Add the rotating gateway log file sink.

    Returns:
        loguru sink id, or None when file logging is disabled
    """
    if not settings.log_dir:
        return None
    return logger.add(
        str(Path(settings.log_dir) / "gateway_{time}.log"),
        rotation="100 MB",
        retention="7 days",
        level=settings.log_level,
        format=LOG_FORMAT
    )


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[ToolRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Gateway settings (read from the environment when omitted)
        registry: Tool registry (loaded from the registry file at startup when omitted)
        transport: Optional httpx transport for the completion API client

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app_instance: FastAPI):
        """
        Lifespan context manager for startup and shutdown events.

        Loads the tool registry and opens the completion API client on
        startup; closes the client on shutdown. A malformed registry stops
        the gateway from starting.
        """
        sink_id = configure_logging(settings)

        # Startup: Runs when application starts
        logger.info("🚀 Medical Assistant Suite gateway starting up...")
        logger.info(f"   Version: {__version__}")

        tool_registry = registry
        if tool_registry is None:
            tool_registry = load_registry(
                settings.tools_file,
                ToolDefaults(
                    model=settings.default_model,
                    temperature=settings.default_temperature,
                    max_tokens=settings.default_max_tokens,
                ),
            )

        client = OpenAIClient(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            timeout=settings.openai_timeout,
            transport=transport,
        )
        if not settings.api_key_configured:
            logger.warning("OPENAI_API_KEY is not set; tool requests will fail until it is configured")

        app_instance.state.settings = settings
        app_instance.state.registry = tool_registry
        app_instance.state.dispatcher = RequestDispatcher(tool_registry, settings, client)

        yield  # Application runs here

        # Shutdown: Runs when application stops
        await client.close()
        logger.info("👋 Medical Assistant Suite gateway shutting down...")
        if sink_id is not None:
            logger.remove(sink_id)

    app = FastAPI(
        title="Medical Assistant Suite API",
        description="Clinical document generation tools backed by an LLM completion API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan
    )

    # Every response allows cross-origin GET/POST/OPTIONS, not only preflights
    @app.middleware("http")
    async def add_cors_headers(request: Request, call_next):
        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = settings.allow_origin(request.headers.get("origin"))
        response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
        response.headers["Access-Control-Allow-Headers"] = "Content-Type"
        if settings.allow_origin(None) != "*":
            response.headers["Vary"] = "Origin"
        return response

    # Methods the router never sees still get the {"error": ...} body
    @app.exception_handler(StarletteHTTPException)
    async def method_not_allowed_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 405:
            logger.warning(f"Rejected {request.method} {request.url.path}: method not allowed")
            return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers=exc.headers)
        return await http_exception_handler(request, exc)

    # Include routers
    app.include_router(health.router)
    app.include_router(tools.router)

    return app


app = create_app()
