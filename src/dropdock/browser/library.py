"""Library root bootstrap."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

LOGGER = logging.getLogger(__name__)


def ensure_library(root: Path, seed_folders: Iterable[str] = ()) -> Path:
    """Create the library root and its seed folders on first use.

    An existing root is left untouched, so folders the user removed are not
    recreated.

    Args:
        root: Library directory.
        seed_folders: Subfolder names created alongside a new root.

    Returns:
        Path: Resolved library root.

    Raises:
        OSError: If the root cannot be created.
    """
    root = root.expanduser().resolve()
    if root.exists():
        LOGGER.debug("Library already exists at %s", root)
        return root

    root.mkdir(parents=True)
    for name in seed_folders:
        name = name.strip()
        if not name or "/" in name or "\\" in name or name in {".", ".."}:
            LOGGER.warning("Ignoring invalid seed folder name %r", name)
            continue
        (root / name).mkdir(exist_ok=True)
    LOGGER.info("Created library at %s", root)
    return root


__all__ = ["ensure_library"]
