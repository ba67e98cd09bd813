"""
Process configuration read once from the environment.

Environment variables:
    OPENAI_API_KEY: Completion API credential (required for POST requests)
    OPENAI_BASE_URL: Base URL of the OpenAI-compatible API
    OPENAI_TIMEOUT_SECONDS: Timeout for a single completion call
    DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_MAX_TOKENS: Tool defaults
    CORS_ORIGINS: Comma-separated allowed origins, or "*"
    MEDSUITE_TOOLS_FILE: Path to an alternative tool registry YAML file
    LOG_DIR: Directory for the rotating log file (empty disables it)
    LOG_LEVEL: Minimum level for the log file
"""

import os
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    """
    Immutable gateway settings.

    Attributes:
        openai_api_key: Completion API credential, None when not configured
        openai_base_url: Base URL of the completion API (no trailing slash)
        openai_timeout: Request timeout in seconds for the completion call
        default_model: Model used by tools that do not name one
        default_temperature: Temperature used by tools that do not set one
        default_max_tokens: Output bound used by tools that do not set one
        cors_origins: Allowed origins ("*" allows all)
        tools_file: Optional registry file overriding the packaged one
        log_dir: Log file directory, None disables file logging
        log_level: Log file level
    """

    model_config = ConfigDict(frozen=True)

    openai_api_key: Optional[str] = Field(default=None, repr=False)
    openai_base_url: str = "https://api.openai.com/v1"
    openai_timeout: float = Field(default=60.0, gt=0)
    default_model: str = "gpt-4o-mini"
    default_temperature: float = Field(default=0.3, ge=0.0, le=2.0)
    default_max_tokens: int = Field(default=4000, ge=1)
    cors_origins: tuple[str, ...] = ("*",)
    tools_file: Optional[str] = None
    log_dir: Optional[str] = "logs"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        values = {
            "openai_api_key": os.getenv("OPENAI_API_KEY") or None,
            "openai_base_url": os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1").rstrip("/"),
            "openai_timeout": os.getenv("OPENAI_TIMEOUT_SECONDS", "60"),
            "default_model": os.getenv("DEFAULT_MODEL", "gpt-4o-mini"),
            "default_temperature": os.getenv("DEFAULT_TEMPERATURE", "0.3"),
            "default_max_tokens": os.getenv("DEFAULT_MAX_TOKENS", "4000"),
            "tools_file": os.getenv("MEDSUITE_TOOLS_FILE") or None,
            "log_dir": os.getenv("LOG_DIR", "logs") or None,
            "log_level": os.getenv("LOG_LEVEL", "INFO").upper(),
        }

        # CORS_ORIGINS="https://a.example,https://b.example" or "*"
        allowed_origins = os.getenv("CORS_ORIGINS", "*")
        if allowed_origins == "*":
            values["cors_origins"] = ("*",)
        else:
            values["cors_origins"] = tuple(
                origin.strip() for origin in allowed_origins.split(",") if origin.strip()
            )

        return cls.model_validate(values)

    @property
    def api_key_configured(self) -> bool:
        return bool(self.openai_api_key)

    def allow_origin(self, request_origin: str | None) -> str:
        """
        Pick the Access-Control-Allow-Origin value for a response.

        Args:
            request_origin: Origin header of the incoming request, if any

        Returns:
            "*" when all origins are allowed, the request origin when it is in
            the allow list, otherwise the first configured origin
        """
        if "*" in self.cors_origins or not self.cors_origins:
            return "*"
        if request_origin and request_origin in self.cors_origins:
            return request_origin
        return self.cors_origins[0]


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, reading the environment once."""
    return Settings.from_env()
