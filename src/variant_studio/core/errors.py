"""Error taxonomy for the variant pipeline."""

from __future__ import annotations

from variant_studio.core.schemas import ErrorKind


class VariantError(Exception):
    """Base class for every failure the variant pipeline can report."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class InvalidInputError(VariantError):
    """No image supplied, or the data is not declared as an image."""

    kind = ErrorKind.INVALID_INPUT


class DecodeError(VariantError):
    """Image bytes could not be decoded or re-encoded."""

    kind = ErrorKind.DECODE


class AnalysisError(VariantError):
    """Analysis service failed or returned no usable description."""

    kind = ErrorKind.ANALYSIS


class GenerationError(VariantError):
    """Generation service failed or returned no image payload."""

    kind = ErrorKind.GENERATION


class ConfigurationError(VariantError):
    """Required service credentials are missing."""

    kind = ErrorKind.CONFIGURATION


class VariantCancelledError(VariantError):
    """The caller cancelled the request before it finished."""

    kind = ErrorKind.CANCELLED


class BrainstormError(Exception):
    """Raised when no valid recipe idea could be produced."""

    pass
