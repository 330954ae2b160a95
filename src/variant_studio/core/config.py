"""Configuration settings for Food Variant Studio."""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from variant_studio.core.errors import ConfigurationError

# =============================================================================
# Path Configuration (always relative to project structure)
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
CONFIG_FILE = PROJECT_ROOT / "configs" / "config.yaml"

API_KEY_ENV_VAR = "OPENAI_API_KEY"
BASE_URL_ENV_VAR = "OPENAI_BASE_URL"
CONFIG_FILE_ENV_VAR = "VARIANT_STUDIO_CONFIG"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


# =============================================================================
# Config Loading
# =============================================================================


def _config_path() -> Path:
    override = os.getenv(CONFIG_FILE_ENV_VAR)
    return Path(override) if override else CONFIG_FILE


def load_config() -> dict[str, Any]:
    """Load configuration from config.yaml."""
    config_path = _config_path()
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


def get_config(key: str, default: Any = None) -> Any:
    """Get a config value by dot-notation key (e.g., 'api.port')."""
    config = load_config()
    keys = key.split(".")
    value = config
    for k in keys:
        if isinstance(value, dict):
            value = value.get(k)
        else:
            return default
    return value if value is not None else default


# =============================================================================
# Convenience accessors
# =============================================================================


def get_api_host() -> str:
    return get_config("api.host", "0.0.0.0")


def get_api_port() -> int:
    return get_config("api.port", 8000)


def get_max_edge() -> int:
    return get_config("normalizer.max_edge", 1920)


def get_output_format() -> str:
    return str(get_config("normalizer.output_format", "JPEG")).upper()


def get_jpeg_quality() -> int:
    return get_config("normalizer.jpeg_quality", 85)


def get_max_image_size_mb() -> int:
    return get_config("uploads.max_image_size_mb", 20)


def get_brainstorm_model_id() -> str | None:
    return get_config("brainstorm.model_id")


def get_brainstorm_max_retries() -> int:
    return get_config("brainstorm.max_retries", 3)


def get_session_max_age_hours() -> int:
    return get_config("sessions.max_age_hours", 24)


def get_log_level() -> str:
    return get_config("logging.level", "INFO")


# =============================================================================
# Service settings
# =============================================================================


class ServiceSettings(BaseModel):
    """Endpoints, credentials and model choices for the two AI services.

    Built once at startup and handed to the service clients, so nothing
    reads credentials from the environment mid-request.
    """

    api_key: str = Field(description="Credential for the AI provider")
    base_url: str | None = Field(
        default=None, description="Override for the provider base URL"
    )
    analysis_model: str = Field(default="gpt-4o-mini")
    analysis_max_tokens: int = Field(default=100, ge=1)
    generation_model: str = Field(default="gpt-image-1")
    generation_size: str = Field(default="1024x1024")
    generation_quality: str = Field(default="high")
    timeout_seconds: float | None = Field(
        default=None, description="HTTP timeout; None keeps the client default"
    )


def load_service_settings(api_key: str | None = None) -> ServiceSettings:
    """Build ServiceSettings from config.yaml and the environment.

    Raises:
        ConfigurationError: If no API key is available.
    """
    load_dotenv()

    key = api_key or os.getenv(API_KEY_ENV_VAR)
    if not key:
        raise ConfigurationError(
            f"{API_KEY_ENV_VAR} is not configured; the variant pipeline cannot start"
        )

    return ServiceSettings(
        api_key=key,
        base_url=os.getenv(BASE_URL_ENV_VAR) or get_config("services.base_url"),
        analysis_model=get_config("services.analysis_model", "gpt-4o-mini"),
        analysis_max_tokens=get_config("services.analysis_max_tokens", 100),
        generation_model=get_config("services.generation_model", "gpt-image-1"),
        generation_size=get_config("services.generation_size", "1024x1024"),
        generation_quality=get_config("services.generation_quality", "high"),
        timeout_seconds=get_config("services.timeout_seconds"),
    )


# =============================================================================
# Logging
# =============================================================================


def configure_logging(level: str | None = None) -> None:
    """Initialise stdlib logging for the API and CLI entry points."""
    level_name = (level or get_log_level()).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
