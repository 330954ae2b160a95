"""Pydantic schemas for the web API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from variant_studio.core.schemas import ErrorKind, PipelineStage


class SessionResponse(BaseModel):
    """Response for session creation."""

    session_id: str
    created_at: str


class SessionInfo(BaseModel):
    """Session summary."""

    session_id: str
    created_at: str
    variant_count: int


class VariantItem(BaseModel):
    """One gallery entry."""

    index: int
    variant_id: str
    image_url: str
    mime_type: str
    prompt: str
    created_at: datetime


class VariantResponse(BaseModel):
    """Successful variant generation."""

    request_id: str
    variant: VariantItem


class ErrorResponse(BaseModel):
    """Structured failure body."""

    error: str
    kind: ErrorKind
    stage: PipelineStage | None = None
    status_code: int | None = None


class FoodVariantRequest(BaseModel):
    """Request body for the data-URI based variant endpoint."""

    image: str | None = None
    sceneDescription: str | None = None


class FoodVariantResponse(BaseModel):
    """Response body for the data-URI based variant endpoint."""

    imageUrl: str


class BrainstormRequest(BaseModel):
    """Request for a recipe idea."""

    ingredients: list[str] = Field(default_factory=list)
