"""Rich-powered tables for selections and timestamp buckets."""
from __future__ import annotations

from datetime import datetime, timezone

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..parsing.label import TimestampKey
from ..selection.buckets import KeyBuckets

_console = Console()


def _utc(key: TimestampKey) -> str:
    try:
        return datetime.fromtimestamp(key.seconds, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return "-"


def print_buckets_table(
    buckets: KeyBuckets,
    title: str = "Timestamp keys",
    selected: set[TimestampKey] | None = None,
    console: Console | None = None,
) -> None:
    """Render one row per key: key text, UTC time, and the items in its bucket.

    Args:
        buckets:   Grouped items.
        title:     Table title shown in the header.
        selected:  Keys to highlight (e.g. those picked for a range).
        console:   Target console; defaults to stdout.
    """
    out = console or _console
    if not len(buckets):
        out.print("[yellow]No timestamped items.[/yellow]")
        return

    table = Table(title=title, box=box.ROUNDED, show_lines=False)
    table.add_column("#", style="dim", width=4)
    table.add_column("Key", no_wrap=True)
    table.add_column("UTC", no_wrap=True)
    table.add_column("Items", overflow="fold")

    for rank, (key, bucket) in enumerate(buckets.items(), start=1):
        style = "green" if selected and key in selected else ""
        table.add_row(str(rank), key.text, _utc(key), "\n".join(escape(i) for i in bucket), style=style)

    out.print(table)


def print_selection_table(
    items: list[str],
    title: str = "Selected items",
    console: Console | None = None,
) -> None:
    """Render the selected items as a numbered table."""
    out = console or _console
    table = Table(title=title, box=box.SIMPLE_HEAVY)
    table.add_column("#", style="dim", width=4)
    table.add_column("Item", overflow="fold")
    for rank, item in enumerate(items, start=1):
        table.add_row(str(rank), escape(item))
    out.print(table)
