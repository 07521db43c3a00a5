"""Remote content retrieval for URL drops."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import unquote, urlsplit

import httpx

from .errors import NetworkFetchFailed
from .naming import sanitize_name

LOGGER = logging.getLogger(__name__)

SUPPORTED_SCHEMES = frozenset({"http", "https"})
GENERIC_DOWNLOAD_NAME = "downloaded_file"

_CONTENT_TYPE_NAMES = (
    ("image/jpeg", "downloaded_image.jpg"),
    ("image/jpg", "downloaded_image.jpg"),
    ("image/png", "downloaded_image.png"),
    ("image/gif", "downloaded_image.gif"),
)

_FILENAME_STAR = re.compile(r"filename\*\s*=\s*([^;]+)", re.IGNORECASE)
_FILENAME = re.compile(r"filename\s*=\s*(\"[^\"]*\"|[^;]+)", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class FetchResult:
    """Downloaded payload and the name inferred for it."""

    content: bytes
    filename: str


def filename_from_url(url: str) -> Optional[str]:
    """Return the URL's last path segment when it looks like a file name."""
    segment = unquote(urlsplit(url).path.rsplit("/", 1)[-1])
    segment = sanitize_name(segment)
    if segment and "." in segment:
        return segment
    return None


def filename_from_disposition(header: Optional[str]) -> Optional[str]:
    """Extract the ``filename`` token from a ``Content-Disposition`` header.

    ``filename*`` (RFC 5987) takes precedence over the plain token. Quotes and
    any directory components are removed.
    """
    if not header:
        return None

    star = _FILENAME_STAR.search(header)
    if star:
        value = star.group(1).strip().strip('"')
        if "''" in value:
            charset, _, encoded = value.partition("''")
            try:
                value = unquote(encoded, encoding=charset or "utf-8")
            except LookupError:
                value = unquote(encoded)
        name = sanitize_name(value)
        if name:
            return name

    plain = _FILENAME.search(header)
    if plain:
        name = sanitize_name(plain.group(1).strip().strip('"'))
        if name:
            return name
    return None


def filename_from_content_type(content_type: Optional[str]) -> str:
    """Return a default file name for a response ``Content-Type``."""
    lowered = (content_type or "").lower()
    for marker, name in _CONTENT_TYPE_NAMES:
        if marker in lowered:
            return name
    return GENERIC_DOWNLOAD_NAME


def infer_filename(url: str, headers: httpx.Headers) -> str:
    """Pick a file name using the URL, then the disposition, then the content type."""
    return (
        filename_from_url(url)
        or filename_from_disposition(headers.get("content-disposition"))
        or filename_from_content_type(headers.get("content-type"))
    )


class NetworkFetcher:
    """Download HTTP(S) resources with an ``httpx.AsyncClient``."""

    def __init__(
        self,
        *,
        timeout_seconds: float | None = None,
        follow_redirects: bool = True,
        user_agent: str = "dropdock",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            timeout_seconds: Transfer timeout, or ``None`` to wait indefinitely.
            follow_redirects: Whether redirects are followed.
            user_agent: Value of the ``User-Agent`` header.
            transport: Optional transport override, mainly for tests.
        """
        self._timeout = httpx.Timeout(timeout_seconds)
        self._follow_redirects = follow_redirects
        self._headers = {"User-Agent": user_agent}
        self._transport = transport

    async def fetch(self, url: str) -> FetchResult:
        """Download ``url`` and infer a file name for it.

        Raises:
            NetworkFetchFailed: If the URL is malformed, the scheme is not
                http(s), the transfer fails, or the server answers with an
                error status.
        """
        try:
            scheme = urlsplit(url).scheme
        except ValueError as exc:
            raise NetworkFetchFailed(f"Malformed URL {url!r}: {exc}") from exc
        if scheme not in SUPPORTED_SCHEMES:
            raise NetworkFetchFailed(f"Unsupported URL scheme: {scheme or 'none'}")

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=self._follow_redirects,
                headers=self._headers,
                transport=self._transport,
            ) as client:
                response = await client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkFetchFailed(f"Failed to download {url}: {exc}") from exc

        if response.status_code >= 400:
            raise NetworkFetchFailed(f"Failed to download {url}: HTTP {response.status_code}")

        filename = infer_filename(url, response.headers)
        LOGGER.info("Downloaded %d bytes from %s as %s", len(response.content), url, filename)
        return FetchResult(content=response.content, filename=filename)


__all__ = [
    "FetchResult",
    "NetworkFetcher",
    "SUPPORTED_SCHEMES",
    "filename_from_url",
    "filename_from_disposition",
    "filename_from_content_type",
    "infer_filename",
]
