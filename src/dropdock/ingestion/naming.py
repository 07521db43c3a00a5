"""Collision-free destination naming."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Literal

DefaultKind = Literal["image", "file", "download"]

DEFAULT_BASENAMES: dict[str, str] = {
    "image": "dropped_image",
    "file": "dropped_file",
    "download": "downloaded_file",
}

_SEPARATORS = re.compile(r"[\\/]+")
_EQUIVALENT_EXTENSIONS = {"jpeg": "jpg", "tif": "tiff"}


def sanitize_name(name: str | None) -> str:
    """Return the final path component of ``name`` with surrounding whitespace removed.

    Both ``/`` and ``\\`` count as separators so a suggested name can never
    address a location outside the target directory. ``.`` and ``..`` collapse
    to an empty string, as do names made of separators only.
    """
    if not name:
        return ""
    parts = [part.strip() for part in _SEPARATORS.split(name)]
    parts = [part for part in parts if part]
    if not parts:
        return ""
    candidate = parts[-1].replace("\x00", "")
    if candidate in {".", ".."}:
        return ""
    return candidate


def split_extension(name: str) -> tuple[str, str]:
    """Split ``name`` into base and extension (with the dot).

    A leading dot does not start an extension, so ``".profile"`` has none.
    """
    dot = name.rfind(".")
    if dot <= 0 or dot == len(name) - 1:
        return name, ""
    return name[:dot], name[dot:]


def _normalized(extension: str) -> str:
    ext = extension.lower().lstrip(".")
    return _EQUIVALENT_EXTENSIONS.get(ext, ext)


class DestinationNamer:
    """Compute destination paths that do not collide with existing entries."""

    def build_filename(
        self,
        preferred_base_name: str | None,
        extension_hint: str = "",
        *,
        kind: DefaultKind = "file",
        enforce_extension: bool = False,
    ) -> str:
        """Return the sanitized file name before collision handling.

        Args:
            preferred_base_name: Name suggested by the drag source or URL.
            extension_hint: Extension implied by the content type.
            kind: Which default name to use when nothing usable was suggested.
            enforce_extension: Replace a mismatching extension with the hint
                (used for image data whose encoding is known).

        Returns:
            str: Candidate file name.
        """
        hint = extension_hint.lstrip(".")
        name = sanitize_name(preferred_base_name) or DEFAULT_BASENAMES[kind]
        base, extension = split_extension(name)
        if not hint:
            return name
        if not extension:
            return f"{name}.{hint}"
        if enforce_extension and _normalized(extension) != _normalized(hint):
            return f"{base}.{hint}"
        return name

    def name(
        self,
        directory: Path,
        preferred_base_name: str | None,
        extension_hint: str = "",
        *,
        kind: DefaultKind = "file",
        enforce_extension: bool = False,
    ) -> Path:
        """Return an absolute path in ``directory`` where nothing exists yet.

        Repeated names are numbered ``"<base> (<n>)<ext>"`` starting at 1,
        taking the first free number.
        """
        filename = self.build_filename(
            preferred_base_name,
            extension_hint,
            kind=kind,
            enforce_extension=enforce_extension,
        )
        return self.first_free(directory, filename)

    def first_free(self, directory: Path, filename: str) -> Path:
        """Return ``directory / filename`` or its first free numbered variant."""
        directory = directory.expanduser().resolve()
        candidate = directory / filename
        if not _occupied(candidate):
            return candidate

        base, extension = split_extension(filename)
        counter = 1
        while True:
            candidate = directory / f"{base} ({counter}){extension}"
            if not _occupied(candidate):
                return candidate
            counter += 1


def _occupied(path: Path) -> bool:
    # Dangling symlinks still occupy the name.
    return path.exists() or path.is_symlink()


__all__ = [
    "DEFAULT_BASENAMES",
    "DefaultKind",
    "DestinationNamer",
    "sanitize_name",
    "split_extension",
]
