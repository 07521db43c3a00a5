"""Map type identifiers to content categories and file extensions."""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from .errors import ClassificationUnknown

LOGGER = logging.getLogger(__name__)

Category = Literal["image", "generic"]

IMAGE_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "png", "gif", "bmp", "tiff", "tif", "webp", "heic", "heif"}
)


@dataclass(frozen=True, slots=True)
class Classification:
    """Category and preferred extension for a type identifier.

    Attributes:
        category: ``"image"`` for encodable image data, ``"generic"`` otherwise.
        extension: Extension without the leading dot; empty when unknown.
        pil_format: Pillow format name used when encoding image objects.
    """

    category: Category
    extension: str
    pil_format: str | None = None

    @property
    def is_image(self) -> bool:
        """Return whether the identifier describes image data."""
        return self.category == "image"


_PNG = Classification("image", "png", "PNG")
_JPEG = Classification("image", "jpg", "JPEG")
_GIF = Classification("image", "gif", "GIF")
_TIFF = Classification("image", "tiff", "TIFF")
_WEBP = Classification("image", "webp", "WEBP")
_HEIC = Classification("image", "heic", None)

_KNOWN_TYPES: dict[str, Classification] = {
    "public.png": _PNG,
    "image/png": _PNG,
    "public.jpeg": _JPEG,
    "image/jpeg": _JPEG,
    "image/jpg": _JPEG,
    "com.compuserve.gif": _GIF,
    "image/gif": _GIF,
    "public.tiff": _TIFF,
    "image/tiff": _TIFF,
    "org.webmproject.webp": _WEBP,
    "public.webp": _WEBP,
    "image/webp": _WEBP,
    "public.heic": _HEIC,
    "image/heic": _HEIC,
    # Unspecified image data is written as PNG.
    "public.image": _PNG,
}

_GENERIC = Classification("generic", "")

# Trailing identifier components that never name an extension.
_NON_EXTENSION_PARTS = frozenset(
    {"public", "com", "org", "image", "data", "file", "url", "item", "text", "content", "plain"}
)


class ContentClassifier:
    """Classify type identifiers using a static table with generic fallbacks."""

    def classify(self, type_identifier: str) -> Classification:
        """Return the category and extension for ``type_identifier``.

        Unknown identifiers are never an error: they classify as generic data,
        keeping any extension that can be inferred from the identifier itself.
        """
        key = type_identifier.strip().lower()
        known = _KNOWN_TYPES.get(key)
        if known is not None:
            return known
        try:
            return self._fallback(key)
        except ClassificationUnknown as exc:
            LOGGER.debug("%s", exc)
            return _GENERIC

    def category_for_path(self, path: Path) -> Category:
        """Return the category implied by a file's extension."""
        return "image" if path.suffix.lower().lstrip(".") in IMAGE_EXTENSIONS else "generic"

    def _fallback(self, key: str) -> Classification:
        if "/" in key:
            guessed = mimetypes.guess_extension(key.split(";", 1)[0].strip())
            if guessed:
                category: Category = "image" if key.startswith("image/") else "generic"
                return Classification(category, guessed.lstrip("."))
        elif "." in key:
            tail = key.rsplit(".", 1)[-1]
            if tail and tail not in _NON_EXTENSION_PARTS and tail.isalnum():
                category = "image" if tail in IMAGE_EXTENSIONS else "generic"
                return Classification(category, tail)
        raise ClassificationUnknown(f"No classification for type identifier {key!r}")


__all__ = ["Category", "Classification", "ContentClassifier", "IMAGE_EXTENSIONS"]
