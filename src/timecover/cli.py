"""timecover CLI — entry point.

Commands:
    timecover select <dir>   Print the files covering a time range
    timecover keys   <dir>   Show the timestamp key of every matching file
"""
from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from .config import settings
from .errors import TimeCoverError
from .parsing.timestamp import parse_cli_time, parse_duration, to_epoch
from .selection.selector import TimeRangeSelector, scan_keys
from .visualization.tables import print_buckets_table, print_selection_table

console = Console()
err_console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# ── Helpers ─────────────────────────────────────────────────────────────────


def _setup_logging(level: str) -> None:
    if level.upper() not in LOG_LEVELS:
        raise click.BadParameter(
            f"Unknown log level {level!r} (expected one of {', '.join(LOG_LEVELS)})",
            param_hint="'--log-level' / TIMECOVER_LOG_LEVEL",
        )
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def _list_items(directory: Path) -> list[str]:
    """File names directly inside directory, sorted."""
    return sorted(p.name for p in directory.iterdir() if p.is_file())


def _build_selector(pattern: str | None, time_format: str | None, numeric: bool | None) -> TimeRangeSelector:
    try:
        return TimeRangeSelector(
            pattern=pattern or settings.pattern,
            time_format=time_format or settings.time_format,
            timestamp_is_numeric=settings.timestamp_is_numeric if numeric is None else numeric,
        )
    except TimeCoverError as exc:
        raise click.BadParameter(str(exc), param_hint="'--pattern'") from exc


def _resolve_range(start: str, end: str, last: str) -> tuple[datetime, datetime]:
    """Turn --start/--end/--last into a (start, end) pair of aware datetimes."""
    if start and last:
        raise click.UsageError("--start and --last are mutually exclusive.")
    now = datetime.now(timezone.utc)
    try:
        end_dt = parse_cli_time(end, now=now) if end else now
    except ValueError as exc:
        raise click.BadParameter(str(exc), param_hint="'--end'") from exc
    if start:
        try:
            start_dt = parse_cli_time(start, now=now)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="'--start'") from exc
    else:
        window = last or settings.default_window
        try:
            start_dt = end_dt - parse_duration(window)
        except ValueError as exc:
            raise click.BadParameter(str(exc), param_hint="'--last'") from exc
    if to_epoch(start_dt) > to_epoch(end_dt):
        raise click.UsageError(
            f"Start ({start_dt.isoformat()}) is after end ({end_dt.isoformat()})."
        )
    return start_dt, end_dt


def _matching_options(f):
    f = click.option(
        "--numeric/--no-numeric", default=None,
        help="Timestamp capture is already an epoch number (sub-seconds included). Default from TIMECOVER_TIMESTAMP_IS_NUMERIC.",
    )(f)
    f = click.option("--time-format", default=None, help="strptime format for the timestamp capture (%s = epoch seconds).")(f)
    f = click.option("--pattern", "-p", default=None, help="Regex with a 'timestamp' named group and optional 'subsec' group.")(f)
    return f


def _range_options(f):
    f = click.option("--last", "-l", default="", help="Lookback before --end, e.g. 30s, 15m, 2h.")(f)
    f = click.option("--end", "-e", default="", help="End time: now, 30m, epoch seconds or ISO-8601 (default: now).")(f)
    f = click.option("--start", "-s", default="", help="Start time: epoch seconds, ISO-8601 or offset like 2h.")(f)
    return f


# ── CLI root ─────────────────────────────────────────────────────────────────


@click.group()
@click.version_option(version="0.2.0", prog_name="timecover")
@click.option(
    "--log-level", default=None,
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    help="Log level (default from TIMECOVER_LOG_LEVEL).",
)
def main(log_level: str | None) -> None:
    """timecover — pick the rotated files that cover a time range."""
    _setup_logging(log_level or settings.log_level)


# ── select ───────────────────────────────────────────────────────────────────


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@_range_options
@_matching_options
@click.option("--full-path", is_flag=True, help="Print paths instead of bare file names.")
@click.option(
    "--output", "-o", "output_fmt", default="plain",
    type=click.Choice(["plain", "json", "table"], case_sensitive=False),
    help="Output format.",
    show_default=True,
)
def select(
    directory: Path,
    start: str,
    end: str,
    last: str,
    pattern: str | None,
    time_format: str | None,
    numeric: bool | None,
    full_path: bool,
    output_fmt: str,
) -> None:
    """Print the files in DIRECTORY whose data covers a time range.

    \b
    Examples:
      timecover select /var/log/pcap --last 30s
      timecover select /var/log/pcap --start 1677468620 --end 1677468633
      timecover select caps/ --start 2023-02-27T03:30:00 --output table
    """
    selector = _build_selector(pattern, time_format, numeric)
    start_dt, end_dt = _resolve_range(start, end, last)

    try:
        found = selector.select(_list_items(directory), start_dt, end_dt)
    except TimeCoverError as exc:
        raise click.UsageError(str(exc)) from exc

    if not found:
        err_console.print(
            f"[yellow]No files cover {start_dt.isoformat()} .. {end_dt.isoformat()} in {directory}[/yellow]"
        )
        sys.exit(1)

    if full_path:
        found = [str(directory / name) for name in found]

    if output_fmt == "json":
        click.echo(json.dumps({
            "start": start_dt.isoformat(),
            "end": end_dt.isoformat(),
            "items": found,
        }))
    elif output_fmt == "table":
        print_selection_table(
            found,
            title=f"{directory.name}: {start_dt.isoformat()} .. {end_dt.isoformat()}",
            console=console,
        )
    else:
        for name in found:
            click.echo(name)


# ── keys ─────────────────────────────────────────────────────────────────────


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, path_type=Path))
@_matching_options
@click.option("--start", "-s", default="", help="Highlight keys selected for this start time.")
@click.option("--end", "-e", default="", help="End of the highlighted range (default: now).")
@click.option(
    "--output", "-o", "output_fmt", default="table",
    type=click.Choice(["table", "json"], case_sensitive=False),
    help="Output format.",
    show_default=True,
)
def keys(
    directory: Path,
    pattern: str | None,
    time_format: str | None,
    numeric: bool | None,
    start: str,
    end: str,
    output_fmt: str,
) -> None:
    """Show the timestamp key extracted from each file in DIRECTORY.

    Handy for checking a custom --pattern / --time-format before selecting.

    \b
    Examples:
      timecover keys /var/log/pcap
      timecover keys caps/ -p '(?P<timestamp>\\d{8}-\\d{6})' --time-format %Y%m%d-%H%M%S
    """
    selector = _build_selector(pattern, time_format, numeric)
    buckets = selector.bucket(_list_items(directory))

    selected = None
    if start:
        start_dt, end_dt = _resolve_range(start, end, "")
        selected = set(scan_keys(buckets.keys(), to_epoch(start_dt), to_epoch(end_dt)))

    if output_fmt == "json":
        for key, bucket in buckets.items():
            click.echo(json.dumps({
                "key": key.text,
                "seconds": key.seconds,
                "items": bucket,
                "selected": key in selected if selected is not None else None,
            }))
        return

    print_buckets_table(buckets, title=f"{directory.name}", selected=selected, console=console)
    console.print(f"[dim]{len(buckets)} keys from {directory}[/dim]")


if __name__ == "__main__":
    main()
