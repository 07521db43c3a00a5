"""Write materialized content into a destination directory."""

from __future__ import annotations

import asyncio
import io
import logging
import shutil
from pathlib import Path
from typing import BinaryIO, Callable, Optional

from .classifier import ContentClassifier
from .errors import WriteFailed
from .fetcher import NetworkFetcher
from .models import Bytes, FileOnDisk, ImageObject, MaterializedContent, RemoteReference, Text
from .naming import DefaultKind, DestinationNamer

LOGGER = logging.getLogger(__name__)

TEXT_EXTENSION = "txt"


class ArtifactWriter:
    """Turn one :data:`MaterializedContent` value into a new file.

    Files are created with exclusive-create semantics: if another writer takes
    the computed name first, the next free name is computed and tried again.
    Existing entries are never overwritten.
    """

    def __init__(
        self,
        *,
        namer: DestinationNamer | None = None,
        classifier: ContentClassifier | None = None,
        fetcher: NetworkFetcher | None = None,
        max_name_attempts: int = 100,
        image_encode_format: str = "png",
    ) -> None:
        self.namer = namer or DestinationNamer()
        self.classifier = classifier or ContentClassifier()
        self.fetcher = fetcher or NetworkFetcher()
        self.max_name_attempts = max(1, max_name_attempts)
        self.image_encode_format = image_encode_format

    async def write(
        self,
        content: MaterializedContent,
        destination: Path,
        *,
        suggested_name: Optional[str] = None,
    ) -> Path:
        """Write ``content`` into ``destination`` and return the created path.

        Args:
            content: Resolved drop content.
            destination: Directory receiving the artifact.
            suggested_name: Name advertised by the drag source.

        Returns:
            Path: Absolute path of the new entry.

        Raises:
            NetworkFetchFailed: If remote content cannot be downloaded.
            WriteFailed: If the destination cannot be written.
        """
        directory = destination.expanduser()
        if not directory.is_dir():
            raise WriteFailed(f"Destination is not a directory: {directory}")

        if isinstance(content, FileOnDisk):
            return await asyncio.to_thread(self._copy_local, content.path, directory)
        if isinstance(content, Bytes):
            return await asyncio.to_thread(
                self._write_buffer, content, directory, suggested_name
            )
        if isinstance(content, Text):
            filename = self.namer.build_filename(suggested_name, TEXT_EXTENSION, kind="file")
            data = content.text.encode("utf-8")
            return await asyncio.to_thread(self._create, directory, filename, _dump(data))
        if isinstance(content, RemoteReference):
            result = await self.fetcher.fetch(content.url)
            filename = self.namer.build_filename(result.filename, kind="download")
            return await asyncio.to_thread(
                self._create, directory, filename, _dump(result.content)
            )
        if isinstance(content, ImageObject):
            return await asyncio.to_thread(self._encode_image, content, directory, suggested_name)
        raise TypeError(f"Unsupported content type: {type(content).__name__}")

    def _copy_local(self, source: Path, directory: Path) -> Path:
        if not source.exists():
            raise WriteFailed(f"Source file disappeared: {source}")
        if source.is_dir():
            return self._copy_tree(source, directory)

        def _copy(handle: BinaryIO) -> None:
            with source.open("rb") as src:
                shutil.copyfileobj(src, handle)

        created = self._create(directory, source.name, _copy)
        try:
            shutil.copystat(source, created)
        except OSError as exc:  # pragma: no cover - metadata is best effort
            LOGGER.debug("Could not copy metadata from %s: %s", source, exc)
        return created

    def _copy_tree(self, source: Path, directory: Path) -> Path:
        for _ in range(self.max_name_attempts):
            target = self.namer.first_free(directory, source.name)
            try:
                shutil.copytree(source, target)
            except FileExistsError:
                continue
            except (OSError, shutil.Error) as exc:
                shutil.rmtree(target, ignore_errors=True)
                raise WriteFailed(f"Failed to copy {source} to {target}: {exc}") from exc
            LOGGER.info("Copied directory %s to %s", source, target)
            return target
        raise WriteFailed(f"No free name for {source.name} in {directory}")

    def _write_buffer(self, content: Bytes, directory: Path, suggested_name: Optional[str]) -> Path:
        classification = self.classifier.classify(content.type_identifier)
        kind: DefaultKind = "image" if classification.is_image else "file"
        filename = self.namer.build_filename(
            suggested_name,
            classification.extension,
            kind=kind,
            enforce_extension=classification.is_image,
        )
        return self._create(directory, filename, _dump(content.buffer))

    def _encode_image(
        self, content: ImageObject, directory: Path, suggested_name: Optional[str]
    ) -> Path:
        classification = self.classifier.classify(content.type_identifier)
        pil_format = classification.pil_format
        extension = classification.extension
        if pil_format is None:
            fallback = self.classifier.classify(f"image/{self.image_encode_format.lower()}")
            pil_format = fallback.pil_format or "PNG"
            extension = fallback.extension or "png"

        image = content.image
        if pil_format == "JPEG" and image.mode not in ("RGB", "L"):
            image = image.convert("RGB")
        buffer = io.BytesIO()
        try:
            if pil_format == "JPEG":
                image.save(buffer, format=pil_format, quality=90)
            else:
                image.save(buffer, format=pil_format)
        except (OSError, ValueError) as exc:
            raise WriteFailed(f"Could not encode image as {pil_format}: {exc}") from exc

        filename = self.namer.build_filename(
            suggested_name, extension, kind="image", enforce_extension=True
        )
        return self._create(directory, filename, _dump(buffer.getvalue()))

    def _create(self, directory: Path, filename: str, fill: Callable[[BinaryIO], None]) -> Path:
        for _ in range(self.max_name_attempts):
            target = self.namer.first_free(directory, filename)
            try:
                handle = target.open("xb")
            except FileExistsError:
                LOGGER.debug("Lost race for %s; picking another name", target)
                continue
            except OSError as exc:
                raise WriteFailed(f"Cannot create {target}: {exc}") from exc

            try:
                with handle:
                    fill(handle)
            except OSError as exc:
                target.unlink(missing_ok=True)
                raise WriteFailed(f"Failed writing {target}: {exc}") from exc
            LOGGER.info("Wrote %s", target)
            return target
        raise WriteFailed(f"No free name for {filename} in {directory}")


def _dump(data: bytes) -> Callable[[BinaryIO], None]:
    def _fill(handle: BinaryIO) -> None:
        handle.write(data)

    return _fill


__all__ = ["ArtifactWriter", "TEXT_EXTENSION"]
