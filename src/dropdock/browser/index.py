"""Sorted, observable listing of one directory."""

from __future__ import annotations

import concurrent.futures
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Sequence

from .icons import GenericIconProvider, Icon, IconProvider

LOGGER = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]


@dataclass(eq=False)
class DirectoryEntry:
    """One child of the listed directory.

    The icon is fetched from the icon provider on first access and cached.
    """

    name: str
    path: Path
    is_directory: bool
    last_modified: Optional[datetime]
    icon_provider: IconProvider = field(default_factory=GenericIconProvider, repr=False)
    _icon: Optional[Icon] = field(default=None, init=False, repr=False)

    @property
    def icon(self) -> Icon:
        """Return the entry's icon, rendering it on first use."""
        if self._icon is None:
            self._icon = self.icon_provider.icon_for(self.path, self.is_directory)
        return self._icon


@dataclass(frozen=True)
class IndexSnapshot:
    """Immutable view published to observers."""

    directory: Optional[Path]
    entries: tuple[DirectoryEntry, ...]
    loading: bool


def sort_entries(entries: Sequence[DirectoryEntry]) -> list[DirectoryEntry]:
    """Directories first, then case-insensitive by name."""
    return sorted(entries, key=lambda entry: (not entry.is_directory, entry.name.casefold(), entry.name))


def scan_directory(
    directory: Path,
    *,
    include_hidden: bool = False,
    icon_provider: IconProvider | None = None,
) -> list[DirectoryEntry]:
    """Read ``directory`` and return its sorted entries.

    Entries whose metadata cannot be read are kept with ``last_modified`` set
    to ``None``.

    Raises:
        OSError: If the directory itself cannot be listed.
    """
    provider = icon_provider or GenericIconProvider()
    entries: list[DirectoryEntry] = []
    for child in directory.iterdir():
        if not include_hidden and child.name.startswith("."):
            continue
        try:
            is_directory = child.is_dir()
        except OSError:
            is_directory = False
        try:
            modified: Optional[datetime] = datetime.fromtimestamp(
                child.stat().st_mtime, tz=timezone.utc
            )
        except OSError:
            LOGGER.debug("Could not read metadata for %s", child)
            modified = None
        entries.append(
            DirectoryEntry(
                name=child.name,
                path=child,
                is_directory=is_directory,
                last_modified=modified,
                icon_provider=provider,
            )
        )
    return sort_entries(entries)


def _run_inline(callback: Callable[[], None]) -> None:
    callback()


class DirectoryIndex:
    """Hold the current listing and loading flag for one directory at a time.

    Scans run on a single background worker. Published state is only changed
    through ``dispatch``, which a UI layer can point at its own thread; by
    default changes are applied on the worker thread under a lock.
    """

    def __init__(
        self,
        *,
        include_hidden: bool = False,
        icon_provider: IconProvider | None = None,
        dispatch: Dispatch | None = None,
    ) -> None:
        self.include_hidden = include_hidden
        self.icon_provider = icon_provider or GenericIconProvider()
        self._dispatch = dispatch or _run_inline
        self._executor = concurrent.futures.ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="dropdock-index"
        )
        self._lock = threading.RLock()
        self._entries: tuple[DirectoryEntry, ...] = ()
        self._directory: Optional[Path] = None
        self._in_flight = 0
        self._futures: list[concurrent.futures.Future] = []
        self._observers: list[Callable[[IndexSnapshot], None]] = []

    @property
    def entries(self) -> tuple[DirectoryEntry, ...]:
        """Return the current listing."""
        with self._lock:
            return self._entries

    @property
    def loading(self) -> bool:
        """Return whether a reload is in flight."""
        with self._lock:
            return self._in_flight > 0

    @property
    def directory(self) -> Optional[Path]:
        """Return the directory the listing belongs to."""
        with self._lock:
            return self._directory

    def snapshot(self) -> IndexSnapshot:
        """Return the current published state."""
        with self._lock:
            return IndexSnapshot(self._directory, self._entries, self._in_flight > 0)

    def subscribe(self, callback: Callable[[IndexSnapshot], None]) -> Callable[[], None]:
        """Call ``callback`` with a snapshot after every state change.

        Returns:
            Callable[[], None]: Function that removes the subscription.
        """
        with self._lock:
            self._observers.append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._observers:
                    self._observers.remove(callback)

        return _unsubscribe

    def reload(self, directory: Path) -> concurrent.futures.Future:
        """Rescan ``directory`` in the background.

        The previous listing stays visible while ``loading`` is true and is
        replaced wholesale when the scan completes. If the directory cannot be
        read, the listing is cleared.

        Returns:
            concurrent.futures.Future: Completes with the new entries.
        """
        self._dispatch(self._begin_loading)
        future = self._executor.submit(self._scan_and_publish, directory)
        with self._lock:
            self._futures = [pending for pending in self._futures if not pending.done()]
            self._futures.append(future)
        return future

    def reload_sync(self, directory: Path) -> tuple[DirectoryEntry, ...]:
        """Rescan ``directory`` on the calling thread and publish the result."""
        self._begin_loading()
        return self._scan_and_publish(directory, dispatch=_run_inline)

    def wait(self, timeout: float | None = None) -> None:
        """Block until every scheduled reload has finished."""
        with self._lock:
            futures = list(self._futures)
        concurrent.futures.wait(futures, timeout=timeout)

    def close(self) -> None:
        """Stop the background worker."""
        self._executor.shutdown(wait=True)

    def _begin_loading(self) -> None:
        with self._lock:
            self._in_flight += 1
        self._publish()

    def _scan_and_publish(
        self, directory: Path, dispatch: Dispatch | None = None
    ) -> tuple[DirectoryEntry, ...]:
        try:
            entries = tuple(
                scan_directory(
                    directory,
                    include_hidden=self.include_hidden,
                    icon_provider=self.icon_provider,
                )
            )
        except OSError as exc:
            LOGGER.warning("Could not list %s: %s", directory, exc)
            entries = ()

        def _apply() -> None:
            with self._lock:
                self._entries = entries
                self._directory = directory
                self._in_flight = max(0, self._in_flight - 1)
            self._publish()

        (dispatch or self._dispatch)(_apply)
        return entries

    def _publish(self) -> None:
        with self._lock:
            snapshot = IndexSnapshot(self._directory, self._entries, self._in_flight > 0)
            observers = list(self._observers)
        for callback in observers:
            try:
                callback(snapshot)
            except Exception:  # pragma: no cover - observer bugs must not stall reloads
                LOGGER.exception("Index observer %r failed", callback)


__all__ = [
    "DirectoryEntry",
    "DirectoryIndex",
    "Dispatch",
    "IndexSnapshot",
    "scan_directory",
    "sort_entries",
]
