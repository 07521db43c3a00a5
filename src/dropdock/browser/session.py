"""Wiring of navigation, listing, watching and drops for one browser."""

from __future__ import annotations

import concurrent.futures
import logging
from pathlib import Path
from typing import Optional, Sequence

from dropdock.config.models import DropdockConfig
from dropdock.ingestion import DropService, PayloadProvider

from .icons import GenericIconProvider, IconProvider, ThumbnailIconProvider
from .index import DirectoryIndex, Dispatch
from .library import ensure_library
from .navigation import NavigationState
from .watcher import DirectoryWatcher

LOGGER = logging.getLogger(__name__)


class BrowserSession:
    """Show one directory at a time and keep its listing in sync.

    Navigating reloads the index and moves the single watch session to the new
    directory. Drops write into the current directory (or a subfolder) and the
    watcher picks the new file up.
    """

    def __init__(
        self,
        root: Path,
        *,
        drops: DropService | None = None,
        index: DirectoryIndex | None = None,
        root_name: str | None = None,
        debounce_seconds: float = 0.2,
    ) -> None:
        self.navigation = NavigationState(root, root_name=root_name)
        self.index = index or DirectoryIndex()
        self.drops = drops or DropService()
        self.watcher = DirectoryWatcher(self._on_directory_changed, debounce_seconds=debounce_seconds)

    @classmethod
    def from_config(
        cls,
        config: DropdockConfig,
        *,
        dispatch: Dispatch | None = None,
        icon_provider: IconProvider | None = None,
    ) -> "BrowserSession":
        """Build a session for the configured library, creating it if needed."""
        root = ensure_library(Path(config.library.root), config.library.seed_folders)
        if icon_provider is None:
            if config.icons.render_thumbnails:
                icon_provider = ThumbnailIconProvider(config.icons.thumbnail_max_pixels)
            else:
                icon_provider = GenericIconProvider()
        index = DirectoryIndex(
            include_hidden=config.browser.show_hidden,
            icon_provider=icon_provider,
            dispatch=dispatch,
        )
        return cls(
            root,
            drops=DropService.from_config(config),
            index=index,
            root_name=config.library.display_name,
            debounce_seconds=config.watch.debounce_seconds,
        )

    @property
    def current_path(self) -> Path:
        return self.navigation.current_path

    def open(self) -> concurrent.futures.Future:
        """Load and watch the current directory."""
        return self._show(self.current_path)

    def navigate_to(self, path: Path) -> concurrent.futures.Future:
        """Enter ``path`` and start watching it."""
        return self._show(self.navigation.navigate_to(path))

    def navigate_to_parent(self) -> concurrent.futures.Future:
        """Go back one level and start watching that directory."""
        return self._show(self.navigation.navigate_to_parent())

    def accept(self, providers: Sequence[PayloadProvider]) -> bool:
        """Drop ``providers`` into the current directory."""
        return self.drops.accept(providers, self.current_path)

    def accept_into(self, providers: Sequence[PayloadProvider], folder: Path) -> bool:
        """Drop ``providers`` onto ``folder`` (usually a listed subfolder)."""
        return self.drops.accept(providers, folder)

    def close(self, timeout: Optional[float] = None) -> None:
        """Stop watching and release worker threads."""
        self.watcher.stop()
        self.drops.close(timeout)
        self.index.close()

    def _show(self, directory: Path) -> concurrent.futures.Future:
        self.watcher.watch(directory)
        return self.index.reload(directory)

    def _on_directory_changed(self, directory: Path) -> None:
        if directory != self.current_path:
            return
        LOGGER.debug("Directory changed, reloading %s", directory)
        self.index.reload(directory)

    def __enter__(self) -> "BrowserSession":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["BrowserSession"]
