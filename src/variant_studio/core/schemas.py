"""Pydantic models shared by the variant pipeline, API and CLI."""

from __future__ import annotations

import base64
import uuid
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ============================================================================
# Enums
# ============================================================================


class ErrorKind(str, Enum):
    """Machine-readable failure kinds surfaced to callers."""

    INVALID_INPUT = "invalid_input"
    DECODE = "decode"
    ANALYSIS = "analysis"
    GENERATION = "generation"
    CONFIGURATION = "configuration"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


class PipelineStage(str, Enum):
    """Stages of a single variant request."""

    IDLE = "idle"
    NORMALIZING = "normalizing"
    ANALYZING = "analyzing"
    COMPOSING_PROMPT = "composing_prompt"
    GENERATING = "generating"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ============================================================================
# Image Models
# ============================================================================


class SourceImage(BaseModel):
    """Raw upload exactly as the user supplied it."""

    data: bytes = Field(description="Raw file bytes")
    mime_type: str = Field(default="", description="Declared MIME type")
    filename: str | None = Field(default=None, description="Original file name")


class NormalizedImage(BaseModel):
    """Size-capped, re-encoded image used for all downstream processing."""

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(description="Encoded image bytes")
    mime_type: str = Field(description="MIME type of the encoded bytes")
    width: int = Field(ge=1)
    height: int = Field(ge=1)

    @property
    def data_uri(self) -> str:
        payload = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{payload}"


class GeneratedVariant(BaseModel):
    """A generated product image; immutable once produced."""

    model_config = ConfigDict(frozen=True)

    variant_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    image_url: str = Field(description="Self-describing data URI")
    mime_type: str = Field(default="image/png")
    prompt: str = Field(default="", description="Prompt that produced the image")
    created_at: datetime = Field(default_factory=datetime.now)

    def image_bytes(self) -> bytes:
        """Decode the data URI payload."""
        _, _, payload = self.image_url.partition(",")
        return base64.b64decode(payload)


# ============================================================================
# Result Models
# ============================================================================


class VariantFailure(BaseModel):
    """Structured failure value returned instead of raising."""

    kind: ErrorKind
    message: str
    stage: PipelineStage | None = None
    status_code: int | None = Field(
        default=None, description="Upstream HTTP status, when there was one"
    )


class VariantResult(BaseModel):
    """Outcome of a variant request: exactly one of variant/failure is set."""

    request_id: str
    variant: GeneratedVariant | None = None
    failure: VariantFailure | None = None
    prompt: str | None = None

    @model_validator(mode="after")
    def _exactly_one_outcome(self) -> VariantResult:
        if (self.variant is None) == (self.failure is None):
            raise ValueError("VariantResult needs exactly one of variant or failure")
        return self

    @property
    def succeeded(self) -> bool:
        return self.variant is not None


# ============================================================================
# Recipe Models
# ============================================================================


class RecipeDetails(BaseModel):
    """Ingredients, method and tips for a recipe idea."""

    ingredients: list[str] = Field(description="Ingredients with measurements")
    instructions: list[str] = Field(description="Ordered method steps")
    tips: list[str] = Field(default_factory=list, description="Pro tips")


class RecipeIdea(BaseModel):
    """One seasonal recipe idea for the bakery."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    why_seasonable: str = Field(alias="whySeasonable")
    market_differentiator: str = Field(alias="marketDifferentiator")
    recipe: RecipeDetails


class RecipeIdeaResponse(BaseModel):
    """Top-level JSON object the brainstorm model must return."""

    idea: RecipeIdea
