"""Session-scoped, append-only collection of generated variants."""

from __future__ import annotations

import io
import re
import threading
from typing import BinaryIO

from variant_studio.core.schemas import GeneratedVariant

EXTENSIONS = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/webp": ".webp",
}


class ResultGallery:
    """Ordered log of successful variants, most recent last.

    There is no update or delete; clearing an upload leaves the gallery
    untouched.
    """

    def __init__(self) -> None:
        self._variants: list[GeneratedVariant] = []
        self._lock = threading.Lock()

    def append(self, variant: GeneratedVariant) -> None:
        with self._lock:
            self._variants.append(variant)

    def list(self) -> list[GeneratedVariant]:
        with self._lock:
            return list(self._variants)

    def get(self, index: int) -> GeneratedVariant:
        """Return the variant at a 0-based index.

        Raises:
            IndexError: If no such variant exists
        """
        with self._lock:
            if index < 0 or index >= len(self._variants):
                raise IndexError(f"No variant at index {index}")
            return self._variants[index]

    def index_of(self, variant_id: str) -> int:
        """Return the position of a variant, or -1 if it is not here."""
        with self._lock:
            for index, variant in enumerate(self._variants):
                if variant.variant_id == variant_id:
                    return index
        return -1

    def __len__(self) -> int:
        with self._lock:
            return len(self._variants)

    def export(self, variant: GeneratedVariant, suggested_name: str) -> BinaryIO:
        """Return the variant's decoded image bytes as a readable stream.

        ``suggested_name`` only matters to callers that also want a file
        name; see :meth:`export_filename`.
        """
        stream = io.BytesIO(variant.image_bytes())
        stream.name = self.export_filename(variant, suggested_name)
        return stream

    def export_filename(self, variant: GeneratedVariant, suggested_name: str) -> str:
        """Sanitize the suggested name and give it the right extension."""
        extension = EXTENSIONS.get(variant.mime_type, ".png")
        stem = re.sub(r"[^A-Za-z0-9._-]+", "-", suggested_name).strip(".-")
        if not stem:
            stem = f"food-variant-{variant.variant_id}"
        if stem.lower().endswith(extension):
            return stem
        return f"{stem}{extension}"
