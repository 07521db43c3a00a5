"""Data models shared by the drop ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Optional, Union

from pydantic import BaseModel

if TYPE_CHECKING:  # pragma: no cover - typing only
    from PIL import Image

    from .providers import PayloadProvider

FILE_URL_TYPE = "public.file-url"
URL_TYPE = "public.url"
ITEM_TYPE = "public.item"
DATA_TYPE = "public.data"
FALLBACK_TYPES = (ITEM_TYPE, DATA_TYPE, URL_TYPE)


@dataclass(frozen=True, slots=True)
class PayloadDescriptor:
    """Negotiated view of one drag source.

    Attributes:
        identifiers: Ordered, deduplicated type identifiers to try.
        provider: Drag source that loads the representations.
        suggested_name: Optional name advertised by the drag source.
    """

    identifiers: tuple[str, ...]
    provider: Optional["PayloadProvider"] = None
    suggested_name: Optional[str] = None


@dataclass(slots=True)
class ResolutionAttempt:
    """Cursor over a descriptor's identifiers and load strategies.

    Attributes:
        descriptor: Descriptor being resolved.
        index: Position of the identifier currently tried.
        strategy: Name of the strategy currently running.
        failures: Messages for every step that failed so far.
    """

    descriptor: PayloadDescriptor
    index: int = 0
    strategy: str = ""
    failures: list[str] = field(default_factory=list)

    @property
    def identifier(self) -> str:
        """Return the identifier currently being tried."""
        return self.descriptor.identifiers[self.index]

    @property
    def exhausted(self) -> bool:
        """Return whether every identifier has been tried."""
        return self.index >= len(self.descriptor.identifiers)

    def advance(self) -> None:
        """Move to the next identifier."""
        self.index += 1
        self.strategy = ""


@dataclass(frozen=True, slots=True)
class FileOnDisk:
    """Content already present as a local file."""

    path: Path


@dataclass(frozen=True, slots=True)
class Bytes:
    """In-memory buffer tagged with the identifier it was loaded for."""

    buffer: bytes
    type_identifier: str


@dataclass(frozen=True, slots=True)
class Text:
    """Plain text payload."""

    text: str


@dataclass(frozen=True, slots=True)
class RemoteReference:
    """HTTP(S) URL whose content still has to be fetched."""

    url: str


@dataclass(frozen=True, slots=True)
class ImageObject:
    """Decoded image handed over by the drag source."""

    image: "Image.Image"
    type_identifier: str


MaterializedContent = Union[FileOnDisk, Bytes, Text, RemoteReference, ImageObject]

ContentKind = Literal["file", "bytes", "text", "remote", "image"]


def content_kind(content: MaterializedContent) -> ContentKind:
    """Return the short kind label for a materialized content value."""
    if isinstance(content, FileOnDisk):
        return "file"
    if isinstance(content, Bytes):
        return "bytes"
    if isinstance(content, Text):
        return "text"
    if isinstance(content, RemoteReference):
        return "remote"
    if isinstance(content, ImageObject):
        return "image"
    raise TypeError(f"Unsupported content type: {type(content).__name__}")


class DropOutcome(BaseModel):
    """Result of ingesting one drag source.

    Attributes:
        destination: Directory the drop targeted.
        written: Path of the created artifact, when the drop succeeded.
        content_kind: Kind of content that was materialized.
        identifier: Type identifier that produced the content.
        error: Failure message when nothing was written.
    """

    destination: Path
    written: Optional[Path] = None
    content_kind: Optional[ContentKind] = None
    identifier: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        """Return whether an artifact was written."""
        return self.written is not None


__all__ = [
    "FILE_URL_TYPE",
    "URL_TYPE",
    "ITEM_TYPE",
    "DATA_TYPE",
    "FALLBACK_TYPES",
    "PayloadDescriptor",
    "ResolutionAttempt",
    "FileOnDisk",
    "Bytes",
    "Text",
    "RemoteReference",
    "ImageObject",
    "MaterializedContent",
    "ContentKind",
    "content_kind",
    "DropOutcome",
]
