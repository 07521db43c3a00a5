"""Directory browsing: listing, watching, icons and navigation."""

from .icons import GenericIconProvider, Icon, IconProvider, ThumbnailIconProvider
from .index import DirectoryEntry, DirectoryIndex, IndexSnapshot, scan_directory, sort_entries
from .library import ensure_library
from .navigation import NavigationState
from .session import BrowserSession
from .watcher import DirectoryWatcher, WatchSession

__all__ = [
    "BrowserSession",
    "DirectoryEntry",
    "DirectoryIndex",
    "DirectoryWatcher",
    "GenericIconProvider",
    "Icon",
    "IconProvider",
    "IndexSnapshot",
    "NavigationState",
    "ThumbnailIconProvider",
    "WatchSession",
    "ensure_library",
    "scan_directory",
    "sort_entries",
]
