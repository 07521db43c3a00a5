"""Command line interface for DropDock."""

from __future__ import annotations

import asyncio
import difflib
import sys
import threading
from pathlib import Path
from typing import Any

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from dropdock.browser import (
    BrowserSession,
    DirectoryEntry,
    DirectoryIndex,
    IndexSnapshot,
    ensure_library,
)
from dropdock.config import (
    ConfigError,
    ConfigManager,
    DropdockConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from dropdock.config.resolver import set_nested
from dropdock.ingestion import DropOutcome, DropService, LocalPayloadProvider, PayloadProvider
from dropdock.log import configure_logging

console = Console()


def _load_config(cli_overrides: dict[str, Any] | None = None) -> DropdockConfig:
    """Load configuration and configure logging, converting errors for Click.

    Raises:
        click.ClickException: If the configuration is invalid.
    """
    try:
        manager = ConfigManager()
        config = manager.load(cli_overrides=cli_overrides)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    configure_logging(config.logging)
    return config


def _emit(message: Any, *, quiet: bool, error: bool = False) -> None:
    """Print ``message`` unless quiet mode suppresses it."""
    if quiet and not error:
        return
    console.print(message)


def _entry_payload(entry: DirectoryEntry) -> dict[str, Any]:
    return {
        "name": entry.name,
        "path": entry.path.as_posix(),
        "is_directory": entry.is_directory,
        "last_modified": entry.last_modified.isoformat() if entry.last_modified else None,
    }


def _listing_table(title: str, entries: tuple[DirectoryEntry, ...]) -> Table:
    table = Table(title=title, show_lines=False)
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Modified")
    for entry in entries:
        name = f"[bold blue]{entry.name}/[/bold blue]" if entry.is_directory else entry.name
        kind = "folder" if entry.is_directory else "file"
        modified = entry.last_modified.strftime("%Y-%m-%d %H:%M") if entry.last_modified else "-"
        table.add_row(name, kind, modified)
    return table


def _outcome_payload(outcome: DropOutcome) -> dict[str, Any]:
    return outcome.model_dump(mode="json")


def _emit_outcome(outcome: DropOutcome, *, quiet: bool) -> None:
    if outcome.succeeded:
        _emit(
            f"[green]Saved {outcome.written} ({outcome.content_kind} via {outcome.identifier}).[/green]",
            quiet=quiet,
        )
    else:
        _emit(f"[red]Drop failed: {outcome.error}[/red]", quiet=quiet, error=True)


def _wait_for_interrupt() -> None:
    """Block the main thread until Ctrl+C raises ``KeyboardInterrupt``."""
    threading.Event().wait()


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="dropdock")
def cli() -> None:
    """DropDock keeps a folder one drag away: drop files, data, text or URLs into it."""


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the library root.")
def init(json_output: bool) -> None:
    """Create the library root and its seed folders if they do not exist."""
    config = _load_config()
    try:
        root = ensure_library(Path(config.library.root), config.library.seed_folders)
    except OSError as exc:
        raise click.ClickException(f"Could not create library: {exc}") from exc

    if json_output:
        console.print_json(data={"root": root.as_posix()})
        return
    console.print(f"[green]Library ready at {root}.[/green]")


@cli.command("ls")
@click.argument("path", required=False, type=click.Path(file_okay=False, path_type=str))
@click.option("-a", "--all", "show_all", is_flag=True, help="Include hidden entries.")
@click.option("--json", "json_output", is_flag=True, help="Emit the listing as JSON.")
def list_directory(path: str | None, show_all: bool, json_output: bool) -> None:
    """List PATH (default: the library root) with folders first."""
    config = _load_config()
    directory = Path(path or config.library.root).expanduser().resolve()
    if not directory.is_dir():
        raise click.ClickException(f"Not a directory: {directory}")

    index = DirectoryIndex(include_hidden=show_all or config.browser.show_hidden)
    try:
        entries = index.reload_sync(directory)
    finally:
        index.close()

    if json_output:
        console.print_json(
            data={"directory": directory.as_posix(), "entries": [_entry_payload(e) for e in entries]}
        )
        return
    console.print(_listing_table(str(directory), entries))


@cli.command()
@click.argument("sources", nargs=-1)
@click.option(
    "--into",
    "destination",
    type=click.Path(file_okay=False, path_type=str),
    help="Destination folder (default: the library root).",
)
@click.option("--stdin", "from_stdin", is_flag=True, help="Read one payload from standard input.")
@click.option(
    "--type",
    "type_identifier",
    default="public.data",
    show_default=True,
    help="Type identifier for the standard-input payload.",
)
@click.option("--name", "suggested_name", type=str, help="Suggested name for the standard-input payload.")
@click.option("--timeout", type=float, help="Network timeout in seconds for URL sources.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing each outcome.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def drop(
    ctx: click.Context,
    sources: tuple[str, ...],
    destination: str | None,
    from_stdin: bool,
    type_identifier: str,
    suggested_name: str | None,
    timeout: float | None,
    json_output: bool,
    quiet: bool,
) -> None:
    """Drop SOURCES (paths, URLs, or literal text) into a folder.

    Each source is ingested independently; one failing source does not stop
    the others.
    """
    if not sources and not from_stdin:
        raise click.ClickException("Provide at least one SOURCE or use --stdin.")

    overrides: dict[str, Any] = {}
    if timeout is not None:
        if timeout <= 0:
            raise click.ClickException("--timeout must be greater than zero.")
        overrides["network.timeout_seconds"] = timeout
    config = _load_config(overrides or None)

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default

    target = Path(destination or config.library.root).expanduser().resolve()
    if destination is None:
        ensure_library(target, config.library.seed_folders)
    if not target.is_dir():
        raise click.ClickException(f"Destination is not a directory: {target}")

    providers: list[PayloadProvider] = [LocalPayloadProvider.from_argument(s) for s in sources]
    if from_stdin:
        data = click.get_binary_stream("stdin").read()
        providers.append(
            LocalPayloadProvider.for_bytes(data, type_identifier, suggested_name=suggested_name)
        )

    service = DropService.from_config(config)
    outcomes = asyncio.run(service.ingest(providers, target))

    if json_output:
        console.print_json(data={"destination": target.as_posix(), "outcomes": [_outcome_payload(o) for o in outcomes]})
    else:
        for outcome in outcomes:
            _emit_outcome(outcome, quiet=quiet_enabled)
        written = sum(1 for outcome in outcomes if outcome.succeeded)
        _emit(
            f"[green]Drop summary for {target}: written={written}, failed={len(outcomes) - written}.[/green]",
            quiet=quiet_enabled,
        )

    if not any(outcome.succeeded for outcome in outcomes):
        sys.exit(1)


@cli.command()
@click.argument("path", required=False, type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--debounce", type=float, help="Override the change coalescing window in seconds.")
@click.option("--once", is_flag=True, help="Print the listing once and exit without watching.")
@click.option("--json", "json_output", is_flag=True, help="Emit each refreshed listing as JSON.")
def watch(path: str | None, debounce: float | None, once: bool, json_output: bool) -> None:
    """Show PATH (default: the library root) and refresh the listing on changes."""
    overrides: dict[str, Any] = {}
    if debounce is not None:
        if debounce <= 0:
            raise click.ClickException("--debounce must be greater than zero.")
        overrides["watch.debounce_seconds"] = debounce
    config = _load_config(overrides or None)

    session = BrowserSession.from_config(config)

    def _render(snapshot: IndexSnapshot) -> None:
        if snapshot.loading or snapshot.directory is None:
            return
        if json_output:
            console.print_json(
                data={
                    "directory": snapshot.directory.as_posix(),
                    "entries": [_entry_payload(entry) for entry in snapshot.entries],
                }
            )
        else:
            console.print(_listing_table(str(snapshot.directory), snapshot.entries))

    session.index.subscribe(_render)
    if once:
        try:
            if path is not None:
                session.navigation.navigate_to(Path(path))
            session.index.reload_sync(session.current_path)
        finally:
            session.close(timeout=5)
        return

    if path is not None:
        session.navigate_to(Path(path))
    else:
        session.open()

    if not json_output:
        console.print(f"[cyan]Watching {session.current_path}. Press Ctrl+C to stop.[/cyan]")
    try:
        _wait_for_interrupt()
    except KeyboardInterrupt:
        if not json_output:
            console.print("[yellow]Watch stopped by user request.[/yellow]")
    finally:
        session.close(timeout=5)


@cli.group()
def config() -> None:
    """Manage DropDock configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
@click.option(
    "--env",
    "as_env",
    is_flag=True,
    help="Print the effective settings as DROPDOCK__SECTION__KEY assignments.",
)
def config_view(no_env: bool, as_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    if as_env:
        for key, value in flatten_for_env(loaded).items():
            click.echo(f"{key}={value}")
        return

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY."""
    manager = ConfigManager()
    manager.ensure_exists()

    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'watch.debounce_seconds'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    before = manager.read_text().splitlines()
    try:
        file_data = manager.load_file_overrides()
        set_nested(file_data, segments, parsed_value)
        resolve_with_precedence(defaults=DropdockConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()

    # The timestamp line always changes; ignore it when deciding whether anything did.
    changed = [
        line
        for line in difflib.ndiff(before, after)
        if line[:2] in {"+ ", "- "} and "Last updated:" not in line
    ]
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    diff = difflib.unified_diff(
        before, after, fromfile="config.yaml (before)", tofile="config.yaml (after)", lineterm=""
    )
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Open the configuration file in an editor and validate the result."""
    manager = ConfigManager()
    manager.ensure_exists()

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise click.ClickException("Configuration file must contain a top-level mapping.")

    try:
        resolve_with_precedence(defaults=DropdockConfig(), file_overrides=parsed)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
