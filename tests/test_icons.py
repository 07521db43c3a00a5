"""Tests for entry icons and thumbnails."""

from pathlib import Path

from PIL import Image

from dropdock.browser import GenericIconProvider, ThumbnailIconProvider
from dropdock.browser.icons import FILE_ICON, FOLDER_ICON


def test_generic_icons(tmp_path: Path) -> None:
    provider = GenericIconProvider()

    assert provider.icon_for(tmp_path, True) == FOLDER_ICON
    assert provider.icon_for(tmp_path / "a.png", False) == FILE_ICON


def test_image_files_get_bounded_thumbnails(tmp_path: Path) -> None:
    path = tmp_path / "wide.png"
    Image.new("RGB", (400, 100), "green").save(path)

    icon = ThumbnailIconProvider(max_pixels=128).icon_for(path, False)

    assert icon.kind == "thumbnail"
    assert icon.image is not None
    assert max(icon.image.size) <= 128
    assert icon.image.size == (128, 32)


def test_unreadable_images_fall_back_to_file_icon(tmp_path: Path) -> None:
    path = tmp_path / "broken.jpg"
    path.write_bytes(b"not an image")

    assert ThumbnailIconProvider().icon_for(path, False) == FILE_ICON


def test_non_images_use_generic_icons(tmp_path: Path) -> None:
    provider = ThumbnailIconProvider()

    assert provider.icon_for(tmp_path / "notes.txt", False) == FILE_ICON
    assert provider.icon_for(tmp_path, True) == FOLDER_ICON
