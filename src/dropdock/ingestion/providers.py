"""Drag-source abstractions and the providers that ship with DropDock."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable
from urllib.parse import urlsplit

from .errors import RepresentationLoadFailed
from .models import DATA_TYPE, FILE_URL_TYPE, URL_TYPE

TEXT_TYPE = "public.utf8-plain-text"


@runtime_checkable
class PayloadProvider(Protocol):
    """Capability exposed by one drag source.

    Any backend can implement this: a native drag session, a clipboard reader,
    a command-line argument, or a test fixture. Load methods raise on failure
    (any exception counts) or return ``None`` when they have nothing to offer.
    """

    @property
    def registered_type_identifiers(self) -> Sequence[str]:
        ...

    @property
    def suggested_name(self) -> Optional[str]:
        ...

    async def load_in_place(self, identifier: str) -> Optional[Path]:
        ...

    async def load_temporary(self, identifier: str) -> Optional[Path]:
        ...

    async def load_item(self, identifier: str) -> Any:
        ...


class StaticPayloadProvider:
    """Provider backed by fixed per-strategy mappings.

    Each mapping is keyed by type identifier. A value that is an exception
    instance is raised when loaded; missing keys raise
    :class:`RepresentationLoadFailed`. Every load call is recorded in
    :attr:`calls` as ``(strategy, identifier)``.
    """

    def __init__(
        self,
        identifiers: Sequence[str],
        *,
        suggested_name: Optional[str] = None,
        in_place: Mapping[str, Any] | None = None,
        temporary: Mapping[str, Any] | None = None,
        items: Mapping[str, Any] | None = None,
    ) -> None:
        self._identifiers = tuple(identifiers)
        self._suggested_name = suggested_name
        self._in_place = dict(in_place or {})
        self._temporary = dict(temporary or {})
        self._items = dict(items or {})
        self.calls: list[tuple[str, str]] = []

    @property
    def registered_type_identifiers(self) -> Sequence[str]:
        return self._identifiers

    @property
    def suggested_name(self) -> Optional[str]:
        return self._suggested_name

    async def load_in_place(self, identifier: str) -> Optional[Path]:
        return self._load("in_place", self._in_place, identifier)

    async def load_temporary(self, identifier: str) -> Optional[Path]:
        return self._load("temporary", self._temporary, identifier)

    async def load_item(self, identifier: str) -> Any:
        return self._load("item", self._items, identifier)

    def _load(self, strategy: str, table: Mapping[str, Any], identifier: str) -> Any:
        self.calls.append((strategy, identifier))
        if identifier not in table:
            raise RepresentationLoadFailed(identifier, strategy, "representation not offered")
        value = table[identifier]
        if isinstance(value, BaseException):
            raise value
        return value

    def __repr__(self) -> str:
        return f"{type(self).__name__}(identifiers={list(self._identifiers)!r})"


class LocalPayloadProvider(StaticPayloadProvider):
    """Provider built from local values such as command-line arguments."""

    @classmethod
    def for_path(cls, path: Path) -> "LocalPayloadProvider":
        """Offer an existing file as a file reference."""
        resolved = path.expanduser().resolve()
        return cls(
            [FILE_URL_TYPE],
            suggested_name=resolved.name,
            in_place={FILE_URL_TYPE: resolved},
        )

    @classmethod
    def for_url(cls, url: str) -> "LocalPayloadProvider":
        """Offer a URL the way browsers do, as ``public.url`` data."""
        return cls([URL_TYPE], items={URL_TYPE: url.encode("utf-8")})

    @classmethod
    def for_text(cls, text: str, suggested_name: Optional[str] = None) -> "LocalPayloadProvider":
        """Offer plain text."""
        return cls([TEXT_TYPE], suggested_name=suggested_name, items={TEXT_TYPE: text})

    @classmethod
    def for_bytes(
        cls,
        data: bytes,
        type_identifier: str = DATA_TYPE,
        suggested_name: Optional[str] = None,
    ) -> "LocalPayloadProvider":
        """Offer an in-memory buffer tagged with ``type_identifier``."""
        return cls(
            [type_identifier],
            suggested_name=suggested_name,
            items={type_identifier: bytes(data)},
        )

    @classmethod
    def from_argument(cls, value: str) -> "LocalPayloadProvider":
        """Interpret a CLI argument as a path, a URL, or literal text."""
        if urlsplit(value).scheme in {"http", "https", "file"}:
            return cls.for_url(value)
        candidate = Path(value).expanduser()
        if candidate.exists():
            return cls.for_path(candidate)
        return cls.for_text(value)


__all__ = [
    "PayloadProvider",
    "StaticPayloadProvider",
    "LocalPayloadProvider",
    "TEXT_TYPE",
]
