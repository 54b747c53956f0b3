"""Main CLI application entry point.

Defines the Typer application: a single command that discovers mounts,
filters them and renders the result.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from dsk import __version__
from dsk.core.config import ConfigError, DskConfig, load_config
from dsk.core.history import HistoryData, HistoryManager
from dsk.discovery import PlatformUnsupportedError, get_discoverer
from dsk.filtering import FilterOptions, apply, filter_by_paths, parse_comma_separated, parse_device_types
from dsk.rendering import (
    Column,
    TableOptions,
    parse_avail_thresholds,
    parse_columns,
    parse_sort,
    parse_usage_thresholds,
    print_tables,
    sort_mounts,
    to_csv,
    to_html,
    to_json,
    to_markdown,
)
from dsk.utils.formatting import apply_theme, console, err_console, print_error, print_warning

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="dsk",
    help="Show disk usage and free space of mounted filesystems.",
    rich_markup_mode="rich",
    add_completion=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"
    CSV = "csv"
    MARKDOWN = "markdown"
    HTML = "html"


class BarStyle(str, Enum):
    """Character set for borders, bars and sparklines."""

    UNICODE = "unicode"
    ASCII = "ascii"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"dsk version {__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    """Route log records through Rich on stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _build_filter_options(
    config: DskConfig,
    include_all: bool,
    hide: str | None,
    hide_fs: str | None,
    hide_mp: str | None,
    only: str | None,
    only_fs: str | None,
    only_mp: str | None,
) -> FilterOptions:
    """Merge CLI filter options over the config file values.

    Raises:
        typer.BadParameter: If a device type is unknown.
    """
    try:
        hidden_devices = parse_device_types(hide if hide is not None else config.hide)
        only_devices = parse_device_types(only if only is not None else config.only)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    return FilterOptions(
        include_all=include_all or config.all,
        hidden_devices=hidden_devices,
        only_devices=only_devices,
        hidden_filesystems=parse_comma_separated(hide_fs if hide_fs is not None else config.hide_fs),
        only_filesystems=parse_comma_separated(only_fs if only_fs is not None else config.only_fs),
        hidden_mountpoints=parse_comma_separated(hide_mp if hide_mp is not None else config.hide_mp),
        only_mountpoints=parse_comma_separated(only_mp if only_mp is not None else config.only_mp),
    )


@app.command()
def main(
    paths: Annotated[
        list[str] | None,
        typer.Argument(help="Devices or paths to show the mounts of.", show_default=False),
    ] = None,
    include_all: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include pseudo, duplicate and inaccessible filesystems."),
    ] = False,
    hide: Annotated[
        str | None,
        typer.Option("--hide", help="Hide device types: local, network, fuse, special, loop, bind."),
    ] = None,
    hide_fs: Annotated[
        str | None,
        typer.Option("--hide-fs", help="Hide filesystem types (comma-separated)."),
    ] = None,
    hide_mp: Annotated[
        str | None,
        typer.Option("--hide-mp", help="Hide mount points (comma-separated, supports * and ?)."),
    ] = None,
    only: Annotated[
        str | None,
        typer.Option("--only", help="Show only these device types."),
    ] = None,
    only_fs: Annotated[
        str | None,
        typer.Option("--only-fs", help="Show only these filesystem types."),
    ] = None,
    only_mp: Annotated[
        str | None,
        typer.Option("--only-mp", help="Show only these mount points (supports * and ?)."),
    ] = None,
    output: Annotated[
        str | None,
        typer.Option("--output", "-o", help="Columns to show, e.g. mountpoint,size,usage,trend."),
    ] = None,
    sort: Annotated[
        str | None,
        typer.Option("--sort", "-s", help="Column to sort by."),
    ] = None,
    width: Annotated[
        int | None,
        typer.Option("--width", "-w", min=1, help="Maximum table width."),
    ] = None,
    style: Annotated[
        BarStyle | None,
        typer.Option("--style", help="Character style: unicode or ascii.", case_sensitive=False),
    ] = None,
    theme: Annotated[
        str | None,
        typer.Option("--theme", "-t", help="Color palette: dark, light or ansi."),
    ] = None,
    avail_threshold: Annotated[
        str | None,
        typer.Option("--avail-threshold", help="Warning and danger thresholds for avail, e.g. 10G,1G."),
    ] = None,
    usage_threshold: Annotated[
        str | None,
        typer.Option("--usage-threshold", help="Warning and danger thresholds for usage, e.g. 0.5,0.9."),
    ] = None,
    inodes: Annotated[
        bool,
        typer.Option("--inodes", "-i", help="Show inode information instead of block usage."),
    ] = False,
    json_output: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output JSON (same as --format json)."),
    ] = False,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
    show_warnings: Annotated[
        bool,
        typer.Option("--warnings", help="Print discovery warnings to stderr."),
    ] = False,
    no_save: Annotated[
        bool,
        typer.Option("--no-save", help="Don't record usage in the history file."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Config file to read instead of the default."),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Show disk usage and free space of mounted filesystems.

    Examples:
        dsk                             # All regular mounts, grouped by type
        dsk /home .                     # Only the mounts holding these paths
        dsk --only local,network        # Only local and network devices
        dsk --hide-mp '/snap/*'         # Hide mount points by pattern
        dsk -o mountpoint,usage,trend   # Pick columns
        dsk --format csv                # Machine-readable output
        dsk -f html > report.html       # Standalone HTML report
    """
    _configure_logging(verbose)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    apply_theme(theme or config.theme)

    filter_options = _build_filter_options(
        config, include_all, hide, hide_fs, hide_mp, only, only_fs, only_mp
    )

    try:
        avail_thresholds = parse_avail_thresholds(avail_threshold or config.avail_threshold)
        usage_thresholds = parse_usage_thresholds(usage_threshold or config.usage_threshold)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e

    effective_format = OutputFormat.JSON if json_output else output_format
    columns = parse_columns(output if output is not None else config.output, inodes=inodes or config.inodes)
    sort_by = parse_sort(sort or config.sort)
    use_ascii = (style.value if style is not None else config.style) == BarStyle.ASCII.value

    try:
        discoverer = get_discoverer()
    except PlatformUnsupportedError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    result = discoverer.discover()
    logger.debug(
        "Discovered %d mounts on %s (%d warnings)",
        len(result.mounts),
        discoverer.platform,
        len(result.warnings),
    )

    if show_warnings:
        for warning in result.warnings:
            print_warning(warning)

    mounts = result.mounts
    if paths:
        mounts = filter_by_paths(mounts, paths)
    mounts = apply(mounts, filter_options)

    if effective_format is OutputFormat.JSON:
        typer.echo(to_json(mounts))
        return

    history_manager = HistoryManager()
    history: HistoryData
    if effective_format is OutputFormat.TABLE and config.save_history and not no_save:
        history = history_manager.save((mount.mountpoint, mount.usage) for mount in mounts)
    else:
        history = history_manager.load()

    if effective_format is OutputFormat.CSV:
        typer.echo(to_csv(mounts, columns, history), nl=False)
        return
    if effective_format is OutputFormat.MARKDOWN:
        typer.echo(to_markdown(mounts, columns, history), nl=False)
        return
    if effective_format is OutputFormat.HTML:
        html_report = to_html(
            sort_mounts(mounts, sort_by, history), columns, history, usage_thresholds, avail_thresholds
        )
        typer.echo(html_report, nl=False)
        return

    table_options = TableOptions(
        columns=tuple(columns),
        sort_by=sort_by,
        use_ascii=use_ascii,
        width=width,
        avail_thresholds=avail_thresholds,
        usage_thresholds=usage_thresholds,
        history=history if Column.TREND in columns or sort_by is Column.TREND else None,
    )
    print_tables(mounts, table_options, console)


if __name__ == "__main__":
    app()
