"""Rich terminal reporter — change tables and path data panels."""

from __future__ import annotations

from typing import Dict, Iterable, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from svnindex.svn.models import Change, PathChange, PathData

_CHANGE_STYLE = {
    Change.ADD: "bold green",
    Change.MODIFY: "bold yellow",
    Change.DELETE: "bold red",
    Change.REPLACE: "bold magenta",
}

_CHANGE_LETTER = {
    Change.ADD: "A",
    Change.MODIFY: "M",
    Change.DELETE: "D",
    Change.REPLACE: "R",
}

_TEXT_PREVIEW_LINES = 20


def _change_pill(change: PathChange) -> Text:
    letter = _CHANGE_LETTER[change.change]
    if change.is_copy:
        letter += "+"
    return Text(letter, style=_CHANGE_STYLE[change.change])


def render_changes(changes: Iterable[PathChange], *, console: Optional[Console] = None, title: str = "Changes") -> int:
    """Print changes as a table. Returns the number of rows printed."""
    console = console or Console()
    table = Table(title=title, title_style="bold", border_style="dim")
    table.add_column("Rev", justify="right", style="green")
    table.add_column("Act", justify="center", width=4)
    table.add_column("Path", style="cyan")

    count = 0
    for change in changes:
        table.add_row(str(change.revision), _change_pill(change), Text(change.path))
        count += 1

    if count:
        console.print(table)
    else:
        console.print("[dim]No changes.[/dim]")
    return count


def render_path_data(
    items: Dict[str, Optional[PathData]],
    *,
    show_text: bool = False,
    console: Optional[Console] = None,
) -> None:
    """Print one summary table per requested path."""
    console = console or Console()
    for path, data in items.items():
        console.print()
        if data is None:
            console.print(Text.assemble(("⚠", "yellow"), f"  {path}: not found at this revision"))
            continue

        table = Table(title=Text(path), show_header=False, title_style="bold cyan", border_style="dim")
        table.add_column("Field", style="dim")
        table.add_column("Value")
        table.add_row("Kind", "directory" if data.is_directory else "file")
        table.add_row("Size", f"{data.size:,}")
        table.add_row("Author", Text(data.author or "-"))
        table.add_row("Changed", data.timestamp.isoformat() if data.timestamp else "-")
        table.add_row("Revisions", f"r{data.revision_first} .. r{data.revision_last}")
        for name, value in sorted(data.properties.items()):
            table.add_row(Text(name), Text(value))
        table.add_row("Text", "indexed" if data.text is not None else "[dim]skipped[/dim]")
        console.print(table)

        if show_text and data.text is not None:
            lines = data.text.splitlines()
            for line in lines[:_TEXT_PREVIEW_LINES]:
                console.print(Text(line))
            if len(lines) > _TEXT_PREVIEW_LINES:
                console.print(f"[dim]... {len(lines) - _TEXT_PREVIEW_LINES} more lines[/dim]")
