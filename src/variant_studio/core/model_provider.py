"""Model and client construction for the AI providers."""

from __future__ import annotations

from typing import Any

import httpx
from openai import AsyncOpenAI
from strands.models.openai import OpenAIModel

from variant_studio.core.config import ServiceSettings
from variant_studio.core.errors import ConfigurationError

DEFAULT_AGENT_MODEL = "gpt-4o-mini"


def _client_args(settings: ServiceSettings | None) -> dict[str, Any]:
    if settings is None or not settings.api_key:
        raise ConfigurationError(
            "OPENAI_API_KEY is not configured; the AI services cannot be reached"
        )

    args: dict[str, Any] = {"api_key": settings.api_key}
    if settings.base_url:
        args["base_url"] = settings.base_url
    if settings.timeout_seconds is not None:
        args["timeout"] = settings.timeout_seconds
    return args


def get_model(
    settings: ServiceSettings | None, model_id: str | None = None
) -> OpenAIModel:
    """Get a configured OpenAI model for Strands agents.

    The model talks to the same endpoint, with the same credentials and
    timeout, as the variant pipeline client.

    Args:
        settings: Explicit service settings
        model_id: Optional model ID (defaults to gpt-4o-mini)

    Raises:
        ConfigurationError: If settings or the API key are missing
    """
    return OpenAIModel(
        client_args=_client_args(settings),
        model_id=model_id or DEFAULT_AGENT_MODEL,
    )


def create_openai_client(
    settings: ServiceSettings,
    http_client: httpx.AsyncClient | None = None,
) -> AsyncOpenAI:
    """Create the async OpenAI client shared by the analysis and generation services.

    SDK-level retries are disabled; a failed call surfaces to the caller
    immediately.

    Args:
        settings: Explicit service settings (credentials, base URL, timeout)
        http_client: Optional pre-built httpx client (used by tests)
    """
    kwargs = _client_args(settings)
    kwargs["max_retries"] = 0
    if http_client is not None:
        kwargs["http_client"] = http_client

    return AsyncOpenAI(**kwargs)
