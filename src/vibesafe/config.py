from __future__ import annotations

from typing import Literal, Tuple

from pydantic import Field, SecretStr, ValidationError, conint, confloat, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import Limits
from .errors import ConfigError

OPENAI_KEY_PLACEHOLDER = "YOUR_OPENAI_API_KEY_HERE"


class ScanConfig(BaseSettings):
    """Scanner configuration loaded from VIBESAFE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="VIBESAFE_",
        frozen=True,
        extra="ignore",
        protected_namespaces=(),  # Allow fields starting with 'model_'
    )

    # Suggestion generator (optional)
    openai_api_key: SecretStr = Field(
        default="",
        description="OpenAI API key for fix suggestions. Empty disables suggestions.",
    )
    enable_ai_suggestions: bool = Field(default=True)
    model: str = Field(default="gpt-4o-mini")
    model_fallback: str = Field(default="gpt-4.1-mini")
    llm_timeout_seconds: conint(ge=1) = Field(default=60)
    llm_max_tokens: conint(ge=1) = Field(default=350)
    llm_temperature: confloat(ge=0, le=2) = Field(default=0.3)

    # File scanning
    max_concurrency: conint(ge=1) = Field(
        default=8, description="Maximum number of files scanned at the same time"
    )
    max_files: conint(ge=1) = Field(default=Limits.MAX_FILES)
    max_file_size_bytes: conint(ge=1) = Field(default=Limits.MAX_FILE_SIZE)

    # Logger allow-list used by the logging issue scanner
    logger_object_names: Tuple[str, ...] = Field(default=("console", "log", "logger", "logging"))
    logger_method_names: Tuple[str, ...] = Field(
        default=("log", "info", "warn", "warning", "error", "debug", "exception", "critical")
    )

    # Run logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(default="info")

    # Vulnerability database
    osv_api_url: str = Field(default="https://api.osv.dev/v1/query")
    lookup_concurrency: conint(ge=1) = Field(default=8)
    lookup_timeout_seconds: confloat(gt=0) = Field(default=15.0)

    @field_validator("logger_object_names", "logger_method_names", mode="before")
    @classmethod
    def _split_names(cls, value):
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, (list, tuple)):
            return tuple(str(item).strip() for item in value if str(item).strip())
        return value

    @field_validator("model", "model_fallback", mode="before")
    @classmethod
    def _strip(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value

    def openai_key(self) -> str:
        """The configured OpenAI key, or "" when unset or left at the placeholder value."""
        key = self.openai_api_key.get_secret_value().strip()
        if not key or key == OPENAI_KEY_PLACEHOLDER:
            return ""
        return key


def load_config(**overrides) -> ScanConfig:
    """Build a ScanConfig, converting validation failures into ConfigError."""
    try:
        return ScanConfig(**overrides)
    except ValidationError as exc:
        raise ConfigError(str(exc)) from exc
