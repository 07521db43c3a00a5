"""Single-directory change watching built on watchdog."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

LOGGER = logging.getLogger(__name__)

# Event types that mean the directory listing may have changed.
WRITE_EVENT_TYPES = frozenset({"created", "modified", "moved", "deleted", "closed"})


class _CoalescingHandler(FileSystemEventHandler):
    """Collapse bursts of write-class events into one trigger call."""

    def __init__(self, trigger: Callable[[], None], debounce_seconds: float) -> None:
        super().__init__()
        self._trigger = trigger
        self._debounce = max(0.0, debounce_seconds)
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._closed = False

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.event_type not in WRITE_EVENT_TYPES:
            return
        with self._lock:
            if self._closed or self._timer is not None:
                return
            self._timer = threading.Timer(self._debounce, self._fire)
            self._timer.daemon = True
            self._timer.start()

    def close(self) -> None:
        with self._lock:
            self._closed = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            if self._closed:
                return
        try:
            self._trigger()
        except Exception:  # pragma: no cover - trigger errors must not kill the timer thread
            LOGGER.exception("Directory change trigger failed")


class WatchSession:
    """Own one watchdog observer bound to exactly one directory.

    Sessions are started once and stopped once; use a new session to watch a
    different directory. Usable as a context manager.
    """

    def __init__(
        self,
        directory: Path,
        on_change: Callable[[], None],
        *,
        debounce_seconds: float = 0.2,
    ) -> None:
        self.directory = directory.expanduser().resolve()
        self._handler = _CoalescingHandler(on_change, debounce_seconds)
        self._observer: Optional[Observer] = None

    @property
    def active(self) -> bool:
        """Return whether the observer is running."""
        return self._observer is not None

    def start(self) -> "WatchSession":
        """Open the OS-level watch.

        Raises:
            OSError: If the directory cannot be watched.
            RuntimeError: If the session was already started.
        """
        if self._observer is not None:
            raise RuntimeError("WatchSession is already running.")
        if not self.directory.is_dir():
            raise NotADirectoryError(f"Cannot watch {self.directory}: not a directory")
        observer = Observer()
        observer.schedule(self._handler, str(self.directory), recursive=False)
        observer.start()
        self._observer = observer
        LOGGER.info("Watching %s", self.directory)
        return self

    def stop(self) -> None:
        """Release the OS-level watch and wait for the observer thread to exit."""
        self._handler.close()
        if self._observer is None:
            return
        self._observer.stop()
        self._observer.join(timeout=5)
        self._observer = None
        LOGGER.info("Stopped watching %s", self.directory)

    def __enter__(self) -> "WatchSession":
        return self.start()

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


class DirectoryWatcher:
    """Keep at most one :class:`WatchSession` alive for the whole engine.

    ``watch`` tears down the previous session before starting the next, so two
    directories are never watched at the same time.
    """

    def __init__(self, on_change: Callable[[Path], None], *, debounce_seconds: float = 0.2) -> None:
        """Initialize the watcher.

        Args:
            on_change: Called with the watched directory after coalesced changes.
            debounce_seconds: Window used to coalesce event bursts.
        """
        self._on_change = on_change
        self._debounce = debounce_seconds
        self._lock = threading.Lock()
        self._session: Optional[WatchSession] = None

    @property
    def directory(self) -> Optional[Path]:
        """Return the watched directory, or ``None`` when idle."""
        with self._lock:
            return self._session.directory if self._session is not None else None

    def watch(self, directory: Path) -> bool:
        """Watch ``directory``, replacing any previous session.

        Returns:
            bool: ``True`` if the directory is now watched.
        """
        target = directory.expanduser().resolve()
        with self._lock:
            if self._session is not None and self._session.directory == target:
                return True
            self._stop_locked()
            session = WatchSession(
                target, lambda: self._on_change(target), debounce_seconds=self._debounce
            )
            try:
                session.start()
            except OSError as exc:
                LOGGER.warning("Could not watch %s: %s", target, exc)
                session.stop()
                return False
            self._session = session
            return True

    def stop(self) -> None:
        """Stop watching and return to the idle state."""
        with self._lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        if self._session is not None:
            self._session.stop()
            self._session = None


__all__ = ["DirectoryWatcher", "WatchSession", "WRITE_EVENT_TYPES"]
