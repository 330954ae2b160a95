"""Decode, downsample and re-encode uploaded product images."""

from __future__ import annotations

import base64
import binascii
import io

from PIL import Image, ImageOps, UnidentifiedImageError

from variant_studio.core.errors import DecodeError, InvalidInputError
from variant_studio.core.schemas import NormalizedImage, SourceImage

DEFAULT_MAX_EDGE = 1920
DEFAULT_JPEG_QUALITY = 85

OUTPUT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
}


def source_from_data_uri(data_uri: str) -> SourceImage:
    """Build a SourceImage from a ``data:<mime>;base64,<payload>`` string.

    Raises:
        InvalidInputError: If the string is empty, not a data URI or not base64.
    """
    if not data_uri:
        raise InvalidInputError("Image is required")
    if not data_uri.startswith("data:"):
        raise InvalidInputError("Image must be a data URL (data:image/...)")

    header, sep, payload = data_uri.partition(",")
    if not sep or not header.endswith(";base64"):
        raise InvalidInputError("Image data URL must be base64 encoded")

    mime_type = header[len("data:") : -len(";base64")]
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidInputError(f"Image data URL is not valid base64: {e}") from e

    return SourceImage(data=data, mime_type=mime_type)


def target_size(width: int, height: int, max_edge: int) -> tuple[int, int]:
    """Scale (width, height) so the longer edge is at most max_edge."""
    longest = max(width, height)
    if longest <= max_edge:
        return width, height

    scale = max_edge / longest
    if width >= height:
        return max_edge, max(1, round(height * scale))
    return max(1, round(width * scale)), max_edge


class ImageNormalizer:
    """Turns a SourceImage into the canonical NormalizedImage.

    The canonical output is JPEG at quality 85 with any transparency
    flattened onto white. PNG keeps the alpha channel and is available
    through ``output_format="PNG"``.
    """

    def __init__(
        self,
        output_format: str = "JPEG",
        jpeg_quality: int = DEFAULT_JPEG_QUALITY,
    ):
        output_format = output_format.upper()
        if output_format not in OUTPUT_MIME_TYPES:
            raise ValueError(
                f"Unsupported output format '{output_format}'. "
                f"Allowed: {sorted(OUTPUT_MIME_TYPES)}"
            )
        self.output_format = output_format
        self.jpeg_quality = jpeg_quality

    @property
    def mime_type(self) -> str:
        return OUTPUT_MIME_TYPES[self.output_format]

    def normalize(
        self, source: SourceImage, max_edge: int = DEFAULT_MAX_EDGE
    ) -> NormalizedImage:
        """Decode, cap the longest edge at max_edge and re-encode.

        Raises:
            InvalidInputError: Missing bytes or a non-image MIME type.
            DecodeError: The bytes cannot be parsed as an image.
        """
        if max_edge < 1:
            raise ValueError("max_edge must be positive")
        if not source.mime_type.startswith("image/"):
            raise InvalidInputError(
                f"Expected an image, got MIME type '{source.mime_type or 'unknown'}'"
            )
        if not source.data:
            raise InvalidInputError("Image is required")

        try:
            with Image.open(io.BytesIO(source.data)) as opened:
                opened.load()
                image = ImageOps.exif_transpose(opened)
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise DecodeError(f"Could not decode image: {e}") from e

        width, height = target_size(image.width, image.height, max_edge)
        if (width, height) != image.size:
            image = image.resize((width, height), Image.Resampling.LANCZOS)

        encoded = self._encode(image)
        return NormalizedImage(
            data=encoded,
            mime_type=self.mime_type,
            width=width,
            height=height,
        )

    def _encode(self, image: Image.Image) -> bytes:
        buffer = io.BytesIO()
        try:
            if self.output_format == "JPEG":
                self._flatten(image).save(
                    buffer, format="JPEG", quality=self.jpeg_quality
                )
            else:
                if image.mode not in ("RGB", "RGBA", "L", "LA"):
                    image = image.convert("RGBA")
                image.save(buffer, format="PNG")
        except OSError as e:
            raise DecodeError(f"Could not re-encode image: {e}") from e
        return buffer.getvalue()

    @staticmethod
    def _flatten(image: Image.Image) -> Image.Image:
        """Composite transparent pixels onto white; JPEG has no alpha."""
        if image.mode in ("RGBA", "LA") or (
            image.mode == "P" and "transparency" in image.info
        ):
            rgba = image.convert("RGBA")
            background = Image.new("RGB", rgba.size, (255, 255, 255))
            background.paste(rgba, mask=rgba.getchannel("A"))
            return background
        if image.mode != "RGB":
            return image.convert("RGB")
        return image


def normalize(
    source: SourceImage, max_edge: int = DEFAULT_MAX_EDGE
) -> NormalizedImage:
    """Normalize with the canonical JPEG settings."""
    return ImageNormalizer().normalize(source, max_edge)
