"""Configuration models describing DropDock settings."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class DropdockBaseModel(BaseModel):
    """Shared configuration for DropDock Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class LibrarySettings(DropdockBaseModel):
    """Location and bootstrap options for the browsed library root.

    Attributes:
        root: Directory shown when the browser starts.
        display_name: Label used for the root in navigation headers.
        seed_folders: Subfolders created the first time the root is set up.
    """

    root: str = "~/DropDock"
    display_name: str = "DropDock"
    seed_folders: List[str] = Field(
        default_factory=lambda: ["Documents", "Downloads", "Screenshots"]
    )


class BrowserOptions(DropdockBaseModel):
    """Directory listing preferences.

    Attributes:
        show_hidden: Whether dot-files appear in listings.
    """

    show_hidden: bool = False


class IngestionOptions(DropdockBaseModel):
    """Options governing how dropped payloads are resolved and written.

    Attributes:
        load_timeout_seconds: Optional deadline for each provider load call.
        max_name_attempts: Retries allowed when a destination name is taken
            between the collision check and the exclusive create.
        image_encode_format: Format used when an image object has no
            recognizable target type.
    """

    load_timeout_seconds: Optional[float] = None
    max_name_attempts: int = 100
    image_encode_format: str = "png"


class NetworkOptions(DropdockBaseModel):
    """Remote fetch settings.

    Attributes:
        timeout_seconds: Optional transfer timeout. ``None`` waits indefinitely.
        follow_redirects: Whether redirects are followed during fetches.
        user_agent: User-Agent header sent with fetches.
    """

    timeout_seconds: Optional[float] = None
    follow_redirects: bool = True
    user_agent: str = "dropdock"


class WatchSettings(DropdockBaseModel):
    """Directory watch behavior.

    Attributes:
        debounce_seconds: Window used to coalesce bursts of change events.
    """

    debounce_seconds: float = 0.2


class IconSettings(DropdockBaseModel):
    """Icon rendering options.

    Attributes:
        thumbnail_max_pixels: Longest edge of generated image thumbnails.
        render_thumbnails: Whether image files receive thumbnails at all.
    """

    thumbnail_max_pixels: int = 128
    render_thumbnails: bool = True


class LoggingSettings(DropdockBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file path; disabled when empty.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = 100
    backup_count: int = 5


class CLIOptions(DropdockBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
    """

    quiet_default: bool = False


class DropdockConfig(DropdockBaseModel):
    """Top-level configuration struct for DropDock.

    Attributes:
        library: Library root settings.
        browser: Directory listing settings.
        ingestion: Drop resolution settings.
        network: Remote fetch settings.
        watch: Directory watch settings.
        icons: Icon rendering settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    library: LibrarySettings = Field(default_factory=LibrarySettings)
    browser: BrowserOptions = Field(default_factory=BrowserOptions)
    ingestion: IngestionOptions = Field(default_factory=IngestionOptions)
    network: NetworkOptions = Field(default_factory=NetworkOptions)
    watch: WatchSettings = Field(default_factory=WatchSettings)
    icons: IconSettings = Field(default_factory=IconSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "DropdockBaseModel",
    "LibrarySettings",
    "BrowserOptions",
    "IngestionOptions",
    "NetworkOptions",
    "WatchSettings",
    "IconSettings",
    "LoggingSettings",
    "CLIOptions",
    "DropdockConfig",
]
