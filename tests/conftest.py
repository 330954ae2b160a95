"""Pytest fixtures for variant studio tests."""

from __future__ import annotations

import io
from typing import Callable

import pytest
from PIL import Image

from variant_studio.core.config import ServiceSettings
from variant_studio.core.errors import AnalysisError, GenerationError
from variant_studio.core.gallery import ResultGallery
from variant_studio.core.schemas import NormalizedImage, SourceImage

# 1x1 PNG as the generation service would return it
PNG_1X1 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8z8BQDwAEhQGAhKmMIQAAAABJRU5ErkJggg=="
)


def encode_image(
    width: int, height: int, fmt: str = "PNG", mode: str = "RGB"
) -> bytes:
    """Encode a solid-colour image of the given size."""
    color = (200, 120, 40, 128) if mode == "RGBA" else (200, 120, 40)
    image = Image.new(mode, (width, height), color)
    buffer = io.BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeAnalysisService:
    """Records calls and returns a canned description or raises."""

    def __init__(self, description: str = "golden croissant on a white plate"):
        self.description = description
        self.error: Exception | None = None
        self.calls: list[NormalizedImage] = []

    async def describe(self, image: NormalizedImage) -> str:
        self.calls.append(image)
        if self.error is not None:
            raise self.error
        return self.description


class FakeGenerationService:
    """Records prompts and returns a tiny PNG payload or raises."""

    def __init__(self, payload: str = PNG_1X1):
        self.payload = payload
        self.error: Exception | None = None
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def image_factory() -> Callable[..., SourceImage]:
    """Build SourceImages of arbitrary size."""

    def _make(
        width: int = 640,
        height: int = 480,
        fmt: str = "PNG",
        mode: str = "RGB",
        mime_type: str | None = None,
    ) -> SourceImage:
        return SourceImage(
            data=encode_image(width, height, fmt, mode),
            mime_type=mime_type or f"image/{fmt.lower()}",
        )

    return _make


@pytest.fixture
def analysis() -> FakeAnalysisService:
    return FakeAnalysisService()


@pytest.fixture
def generation() -> FakeGenerationService:
    return FakeGenerationService()


@pytest.fixture
def gallery() -> ResultGallery:
    return ResultGallery()


@pytest.fixture
def settings() -> ServiceSettings:
    return ServiceSettings(api_key="sk-test", base_url="https://ai.test/v1")


@pytest.fixture
def analysis_error() -> AnalysisError:
    return AnalysisError("Analysis failed: 500 - upstream exploded", status_code=500)


@pytest.fixture
def generation_error() -> GenerationError:
    return GenerationError("Failed to generate image: 429 - slow down", status_code=429)
