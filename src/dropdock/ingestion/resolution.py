"""Fallback chain that materializes one representation of a drag source."""

from __future__ import annotations

import asyncio
import logging
import os
import re
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional
from urllib.parse import unquote, urlsplit

from PIL import Image

from .errors import NegotiationExhausted, RepresentationLoadFailed
from .models import (
    FILE_URL_TYPE,
    URL_TYPE,
    Bytes,
    FileOnDisk,
    ImageObject,
    MaterializedContent,
    PayloadDescriptor,
    RemoteReference,
    ResolutionAttempt,
    Text,
)

LOGGER = logging.getLogger(__name__)

_URL_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://\S*$")
_URL_IDENTIFIERS = frozenset({FILE_URL_TYPE, URL_TYPE})

Loader = Callable[[str], Awaitable[Any]]


def route_url(url: str) -> MaterializedContent:
    """Route a URL string by scheme: ``file`` is local, everything else is remote."""
    parts = urlsplit(url)
    if parts.scheme.lower() == "file":
        return FileOnDisk(Path(unquote(parts.path)))
    return RemoteReference(url)


def looks_like_url(text: str) -> bool:
    """Return whether ``text`` is a single ``scheme://...`` token."""
    return bool(_URL_PATTERN.match(text.strip()))


def materialize_value(value: Any, identifier: str) -> MaterializedContent:
    """Classify a value returned by a generic item load.

    Raises:
        RepresentationLoadFailed: If the value is empty or of an unsupported kind.
    """
    if value is None:
        raise RepresentationLoadFailed(identifier, "item", "provider returned nothing")
    if isinstance(value, os.PathLike):
        return FileOnDisk(Path(value))
    if isinstance(value, Image.Image):
        return ImageObject(value, identifier)
    if isinstance(value, (bytes, bytearray, memoryview)):
        buffer = bytes(value)
        if identifier in _URL_IDENTIFIERS:
            try:
                text = buffer.decode("utf-8").strip().rstrip("\x00")
            except UnicodeDecodeError as exc:
                raise RepresentationLoadFailed(identifier, "item", "URL data is not UTF-8") from exc
            if not looks_like_url(text):
                raise RepresentationLoadFailed(identifier, "item", f"not a URL: {text[:80]!r}")
            return route_url(text)
        if not buffer:
            raise RepresentationLoadFailed(identifier, "item", "empty buffer")
        return Bytes(buffer, identifier)
    if isinstance(value, str):
        if looks_like_url(value):
            return route_url(value.strip())
        if identifier in _URL_IDENTIFIERS:
            raise RepresentationLoadFailed(identifier, "item", f"not a URL: {value[:80]!r}")
        return Text(value)
    raise RepresentationLoadFailed(
        identifier, "item", f"unsupported value type {type(value).__name__}"
    )


def _as_existing_path(value: Any, identifier: str, strategy: str) -> FileOnDisk:
    if isinstance(value, str) and looks_like_url(value):
        routed = route_url(value)
        if not isinstance(routed, FileOnDisk):
            raise RepresentationLoadFailed(identifier, strategy, "not a local file")
        path = routed.path
    elif isinstance(value, (str, os.PathLike)):
        path = Path(value)
    else:
        raise RepresentationLoadFailed(identifier, strategy, "provider returned no path")
    if not path.exists():
        raise RepresentationLoadFailed(identifier, strategy, f"{path} does not exist")
    return FileOnDisk(path)


class ResolutionChain:
    """Try each identifier with three load strategies until one succeeds.

    Strategies for a single identifier, in order: in-place file load,
    temporary-file load, generic item load. A failing step only eliminates
    that step; identifiers are never retried once passed.
    """

    def __init__(self, *, load_timeout_seconds: Optional[float] = None) -> None:
        """Initialize the chain.

        Args:
            load_timeout_seconds: Optional deadline for each provider call.
                ``None`` waits as long as the provider takes.
        """
        self._load_timeout = load_timeout_seconds

    async def resolve(
        self,
        descriptor: PayloadDescriptor,
        *,
        attempt: Optional[ResolutionAttempt] = None,
    ) -> MaterializedContent:
        """Return the first content any strategy produces.

        Args:
            descriptor: Negotiated identifiers and their provider.
            attempt: Optional cursor to drive; afterwards it points at the
                identifier that succeeded and lists every failed step.

        Raises:
            NegotiationExhausted: If every identifier failed every strategy.
        """
        provider = descriptor.provider
        if provider is None:
            raise NegotiationExhausted("Descriptor has no provider to load from.")

        if attempt is None:
            attempt = ResolutionAttempt(descriptor)
        while not attempt.exhausted:
            identifier = attempt.identifier
            steps: tuple[tuple[str, Loader], ...] = (
                ("in_place", provider.load_in_place),
                ("temporary", provider.load_temporary),
                ("item", provider.load_item),
            )
            for strategy, loader in steps:
                attempt.strategy = strategy
                try:
                    value = await self._call(loader, identifier, strategy)
                    if strategy == "item":
                        content = materialize_value(value, identifier)
                    else:
                        content = _as_existing_path(value, identifier, strategy)
                except Exception as exc:
                    message = str(exc) or type(exc).__name__
                    attempt.failures.append(f"{identifier} [{strategy}]: {message}")
                    LOGGER.debug("Representation %s via %s failed: %s", identifier, strategy, message)
                    continue
                LOGGER.info("Resolved %s via %s as %s", identifier, strategy, type(content).__name__)
                return content
            attempt.advance()

        raise NegotiationExhausted(
            "No representation could be loaded: " + "; ".join(attempt.failures)
        )

    async def _call(self, loader: Loader, identifier: str, strategy: str) -> Any:
        if self._load_timeout is None:
            return await loader(identifier)
        try:
            return await asyncio.wait_for(loader(identifier), timeout=self._load_timeout)
        except asyncio.TimeoutError as exc:
            raise RepresentationLoadFailed(
                identifier, strategy, f"timed out after {self._load_timeout}s"
            ) from exc


__all__ = ["ResolutionChain", "materialize_value", "route_url", "looks_like_url"]
