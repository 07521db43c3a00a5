"""Tests for navigation history and library bootstrap."""

from pathlib import Path

from dropdock.browser import NavigationState, ensure_library


def test_navigation_pushes_and_pops_history(tmp_path: Path) -> None:
    state = NavigationState(tmp_path, root_name="Library")
    child = tmp_path / "Documents"

    assert state.current_path == tmp_path.resolve()
    assert state.display_name == "Library"
    assert state.relative_path == "/"
    assert not state.can_go_back

    state.navigate_to(child)
    state.navigate_to(child)

    assert state.history == (tmp_path.resolve(), child.resolve())
    assert state.display_name == "Documents"
    assert state.relative_path == "/Documents"

    assert state.navigate_to_parent() == tmp_path.resolve()
    assert state.navigate_to_parent() == tmp_path.resolve()


def test_relative_path_outside_root_is_absolute(tmp_path: Path) -> None:
    root = tmp_path / "root"
    state = NavigationState(root)

    state.navigate_to(tmp_path / "elsewhere")

    assert state.relative_path == (tmp_path / "elsewhere").resolve().as_posix()
    assert NavigationState(root).display_name == "root"


def test_ensure_library_seeds_new_root(tmp_path: Path) -> None:
    root = tmp_path / "Library"

    created = ensure_library(root, ["Documents", "Downloads", "../escape", ""])

    assert created == root.resolve()
    assert sorted(child.name for child in root.iterdir()) == ["Documents", "Downloads"]
    assert not (tmp_path / "escape").exists()


def test_ensure_library_leaves_existing_root_alone(tmp_path: Path) -> None:
    root = tmp_path / "Library"
    root.mkdir()

    ensure_library(root, ["Documents"])

    assert list(root.iterdir()) == []
