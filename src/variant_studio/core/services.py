"""Clients for the external analysis and generation services.

Both services are reached through the OpenAI SDK. Every failure is
translated into the pipeline's own error kinds so the orchestrator never
has to know about SDK exception types.
"""

from __future__ import annotations

import logging
from typing import Protocol

import openai
from openai import AsyncOpenAI

from variant_studio.core.config import ServiceSettings
from variant_studio.core.errors import AnalysisError, GenerationError
from variant_studio.core.prompts.prompt_templates import ANALYSIS_INSTRUCTION
from variant_studio.core.schemas import NormalizedImage

logger = logging.getLogger(__name__)


class AnalysisService(Protocol):
    """Describes the food product shown in an image."""

    async def describe(self, image: NormalizedImage) -> str: ...


class GenerationService(Protocol):
    """Synthesizes a new image from a text prompt; returns base64 PNG."""

    async def generate(self, prompt: str) -> str: ...


def _upstream_message(error: openai.APIStatusError) -> str:
    body = error.response.text if error.response is not None else ""
    return f"{error.status_code} - {body or error.message}"


class OpenAIAnalysisService:
    """Vision chat completion returning a short product description."""

    def __init__(self, client: AsyncOpenAI, settings: ServiceSettings):
        self.client = client
        self.model = settings.analysis_model
        self.max_tokens = settings.analysis_max_tokens

    async def describe(self, image: NormalizedImage) -> str:
        """Ask the vision model for a brief description of the product.

        Raises:
            AnalysisError: Non-success status, transport failure, malformed
                body or an empty description.
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": ANALYSIS_INSTRUCTION},
                            {"type": "image_url", "image_url": {"url": image.data_uri}},
                        ],
                    }
                ],
                max_tokens=self.max_tokens,
            )
        except openai.APIStatusError as e:
            logger.warning("Analysis request rejected: %s", e.status_code)
            raise AnalysisError(
                f"Analysis failed: {_upstream_message(e)}", status_code=e.status_code
            ) from e
        except openai.APIError as e:
            raise AnalysisError(f"Analysis failed: {e}") from e

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise AnalysisError("Invalid response from analysis service") from e

        description = content.strip() if isinstance(content, str) else ""
        if not description:
            raise AnalysisError(
                "Failed to analyze product image - no description returned"
            )
        return description


class OpenAIGenerationService:
    """Image generation returning one square, high-quality PNG."""

    def __init__(self, client: AsyncOpenAI, settings: ServiceSettings):
        self.client = client
        self.model = settings.generation_model
        self.size = settings.generation_size
        self.quality = settings.generation_quality

    async def generate(self, prompt: str) -> str:
        """Generate one image and return its base64 payload.

        Raises:
            GenerationError: Non-success status, transport failure or no
                image in the response.
        """
        try:
            response = await self.client.images.generate(
                model=self.model,
                prompt=prompt,
                n=1,
                size=self.size,
                quality=self.quality,
                output_format="png",
            )
        except openai.APIStatusError as e:
            logger.warning("Generation request rejected: %s", e.status_code)
            raise GenerationError(
                f"Failed to generate image: {_upstream_message(e)}",
                status_code=e.status_code,
            ) from e
        except openai.APIError as e:
            raise GenerationError(f"Failed to generate image: {e}") from e

        try:
            payload = response.data[0].b64_json
        except (AttributeError, IndexError, TypeError) as e:
            raise GenerationError("No image generated") from e

        if not payload:
            raise GenerationError("No image generated")
        return payload
