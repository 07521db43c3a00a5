"""Navigation history inside the library root."""

from __future__ import annotations

from pathlib import Path


class NavigationState:
    """Track the current directory and the path taken to reach it."""

    def __init__(self, root: Path, *, root_name: str | None = None) -> None:
        self.root = root.expanduser().resolve()
        self.root_name = root_name or self.root.name
        self._history: list[Path] = [self.root]

    @property
    def current_path(self) -> Path:
        return self._history[-1]

    @property
    def history(self) -> tuple[Path, ...]:
        return tuple(self._history)

    @property
    def can_go_back(self) -> bool:
        return len(self._history) > 1

    def navigate_to(self, path: Path) -> Path:
        """Push ``path`` onto the history and make it current."""
        target = path.expanduser().resolve()
        if target != self.current_path:
            self._history.append(target)
        return target

    def navigate_to_parent(self) -> Path:
        """Step back one level; a no-op at the root."""
        if self.can_go_back:
            self._history.pop()
        return self.current_path

    @property
    def display_name(self) -> str:
        """Folder name for headers; the library name at the root."""
        if self.current_path == self.root:
            return self.root_name
        return self.current_path.name

    @property
    def relative_path(self) -> str:
        """Current path relative to the root, ``"/"`` at the root itself."""
        try:
            relative = self.current_path.relative_to(self.root)
        except ValueError:
            return self.current_path.as_posix()
        text = relative.as_posix()
        return "/" if text == "." else f"/{text}"


__all__ = ["NavigationState"]
