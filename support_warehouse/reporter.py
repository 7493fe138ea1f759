from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from support_warehouse.allocator import InsertResult


def _columns(rows: Sequence[Dict[str, Any]]) -> List[str]:
    """Union of row keys, in first-seen order."""
    seen: Dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


def _format_cell(value: Any) -> str:
    if value is None:
        return "[dim]NULL[/dim]"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M:%S")
    return escape(str(value))


def print_rows(
    rows: List[Dict[str, Any]], title: str, console: Optional[Console] = None
) -> None:
    """
    Render query rows as a rich table.

    Columns follow the projection order of the first row; missing values show as NULL.
    """
    console = console or Console()

    if not rows:
        console.print(f"[yellow]{escape(title)}: no rows to display.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"{len(rows)} row(s)",
    )
    columns = _columns(rows)
    for column in columns:
        table.add_column(column, no_wrap=True)
    for row in rows:
        table.add_row(*(_format_cell(row.get(column)) for column in columns))

    console.print(table)


def print_insert(result: InsertResult, console: Optional[Console] = None) -> None:
    console = console or Console()
    console.print(
        f"[green]Inserted[/green] {escape(result['table'])} "
        f"{escape(result['id_column'])}=[bold]{result['assigned_id']}[/bold]"
    )
