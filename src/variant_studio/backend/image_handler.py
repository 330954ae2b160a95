"""Image upload handling and validation."""

from __future__ import annotations

from fastapi import UploadFile

from variant_studio.core.config import get_max_image_size_mb
from variant_studio.core.errors import InvalidInputError
from variant_studio.core.schemas import SourceImage


class ImageHandler:
    """Turns uploads into SourceImages after basic validation.

    Decoding is left to the normalizer; this only checks what can be
    checked without touching the pixels.
    """

    def __init__(self, max_file_size: int | None = None):
        self.max_file_size = (
            max_file_size
            if max_file_size is not None
            else get_max_image_size_mb() * 1024 * 1024
        )

    def validate(self, content: bytes, content_type: str | None) -> None:
        """Validate raw upload content.

        Raises:
            InvalidInputError: Empty file, non-image type or oversized file
        """
        if not content:
            raise InvalidInputError("Please upload a product image first")

        if not content_type or not content_type.startswith("image/"):
            raise InvalidInputError(
                f"MIME type '{content_type or 'unknown'}' is not an image type"
            )

        if len(content) > self.max_file_size:
            raise InvalidInputError(
                f"File size {len(content)} exceeds maximum {self.max_file_size} bytes"
            )

    async def read_upload(self, file: UploadFile | None) -> SourceImage:
        """Read and validate an uploaded file.

        Args:
            file: The uploaded file, or None when the form had no file

        Returns:
            The SourceImage to feed into the pipeline
        """
        if file is None:
            raise InvalidInputError("Please upload a product image first")

        content = await file.read()
        self.validate(content, file.content_type)

        return SourceImage(
            data=content,
            mime_type=file.content_type or "",
            filename=file.filename,
        )
