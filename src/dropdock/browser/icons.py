"""Icons for directory entries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional, Protocol

from PIL import Image, ImageOps

from dropdock.ingestion.classifier import ContentClassifier

LOGGER = logging.getLogger(__name__)

IconKind = Literal["folder", "file", "thumbnail"]


@dataclass(frozen=True, slots=True)
class Icon:
    """Visual representation of an entry.

    Attributes:
        kind: ``"folder"`` and ``"file"`` are generic system icons;
            ``"thumbnail"`` carries a rendered preview.
        image: Rendered thumbnail for ``"thumbnail"`` icons.
    """

    kind: IconKind
    image: Optional[Image.Image] = None


FOLDER_ICON = Icon("folder")
FILE_ICON = Icon("file")


class IconProvider(Protocol):
    """Supplies icons for paths; implemented by the UI toolkit in use."""

    def icon_for(self, path: Path, is_directory: bool) -> Icon:
        ...


class GenericIconProvider:
    """Return generic folder and file icons only."""

    def icon_for(self, path: Path, is_directory: bool) -> Icon:
        return FOLDER_ICON if is_directory else FILE_ICON


class ThumbnailIconProvider(GenericIconProvider):
    """Render thumbnails for image files, falling back to generic icons."""

    def __init__(self, max_pixels: int = 128, classifier: ContentClassifier | None = None) -> None:
        self.max_pixels = max(1, max_pixels)
        self._classifier = classifier or ContentClassifier()

    def icon_for(self, path: Path, is_directory: bool) -> Icon:
        if is_directory or self._classifier.category_for_path(path) != "image":
            return super().icon_for(path, is_directory)
        thumbnail = self.render_thumbnail(path)
        if thumbnail is None:
            return FILE_ICON
        return Icon("thumbnail", thumbnail)

    def render_thumbnail(self, path: Path) -> Optional[Image.Image]:
        """Return a thumbnail no larger than ``max_pixels`` on either edge."""
        try:
            with Image.open(path) as source:
                image = ImageOps.exif_transpose(source)
                image.thumbnail((self.max_pixels, self.max_pixels))
                image.load()
                return image.copy()
        except (OSError, ValueError, Image.DecompressionBombError) as exc:
            LOGGER.debug("Thumbnail for %s unavailable: %s", path, exc)
            return None


__all__ = [
    "Icon",
    "IconKind",
    "IconProvider",
    "GenericIconProvider",
    "ThumbnailIconProvider",
    "FOLDER_ICON",
    "FILE_ICON",
]
