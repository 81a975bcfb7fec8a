"""
Modifier — Configuration
==========================

What:  Two layers of configuration:
       - Settings: process-level knobs (log level, where to find the
         template configuration, demo service address), read from the
         environment with pydantic-settings.
       - ModifierConfig: the four template groups that drive one
         ModifierMiddleware instance. Immutable once built.
How:   Settings is a module-level singleton. ModifierConfig is either
       constructed directly by the host or loaded from a JSON file with
       load_modifier_config().

ModifierConfig file layout (JSON):
    {
        "request": "{\"question\": \"[[ request.api.body.ask ]]\"}",
        "response": {"200": "{\"answer\": \"[[ response.body.answer ]]\"}"},
        "headers": {"X-Request-ID": "req_[[ context.unixtime ]]"},
        "query": {"question_id": "[[ request.query.ask_id ]]"}
    }

    Every field is optional. A missing field turns its stage into a no-op.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings

from modifier.exceptions import ConfigurationError


class ModifierConfig(BaseModel):
    """
    Template configuration for one middleware instance.

    Attributes:
        request:   Template producing the outbound request body.
        response:  Status code → template producing the response body.
                   Codes are matched exactly; JSON string keys are coerced.
        headers:   Header name → template producing the header value.
        query:     Query key → template producing the parameter value.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    request: Optional[str] = Field(default=None)
    response: Dict[int, str] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    query: Dict[str, str] = Field(default_factory=dict)

    @field_validator("request")
    @classmethod
    def empty_request_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    @field_validator("query", mode="before")
    @classmethod
    def unwrap_query_transform(cls, v: Any) -> Any:
        """Accepts the nested `{"transform": {...}}` layout as well as a flat map."""
        if isinstance(v, dict) and set(v) == {"transform"} and isinstance(v["transform"], dict):
            return v["transform"]
        return v

    @field_validator("headers", "query")
    @classmethod
    def drop_empty_templates(cls, v: Dict[str, str]) -> Dict[str, str]:
        return {name: template for name, template in v.items() if template}

    @property
    def is_empty(self) -> bool:
        return not (self.request or self.response or self.headers or self.query)


def load_modifier_config(path: str) -> ModifierConfig:
    """
    Read a ModifierConfig from a JSON file.

    Raises:
        ConfigurationError: file missing/unreadable or content invalid.
    """
    config_path = Path(path)
    try:
        raw = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(
            message=f"Cannot read modifier configuration file '{path}'",
            context={"path": str(config_path), "os_error": str(e)},
        ) from e

    try:
        return ModifierConfig.model_validate_json(raw)
    except ValidationError as e:
        raise ConfigurationError(
            message=f"Invalid modifier configuration in '{path}': {e.error_count()} error(s)",
            context={"path": str(config_path), "errors": e.errors(include_url=False)},
        ) from e


class Settings(BaseSettings):
    """
    Process settings loaded from environment variables (or a .env file).

    All settings have defaults suitable for local development.
    """

    # ── Logging ───────────────────────────────────────────────────────────
    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Template Configuration ────────────────────────────────────────────
    # Path to a JSON ModifierConfig; unset means the middleware is a no-op
    modifier_config_file: Optional[str] = Field(default=None)

    # ── Demo Service ──────────────────────────────────────────────────────
    service_name: str = Field(default="modifier")
    service_host: str = Field(default="0.0.0.0")
    service_port: int = Field(default=8000, ge=1024, le=65535)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    def load_modifier_config(self) -> ModifierConfig:
        """Returns the configured ModifierConfig, or an empty one if no file is set."""
        if not self.modifier_config_file:
            return ModifierConfig()
        return load_modifier_config(self.modifier_config_file)


settings = Settings()
