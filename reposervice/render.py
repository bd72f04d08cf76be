"""
Rendering functions for reposervice output.

Core functions return data, this module makes it human-readable.
"""

from typing import Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from .domain.operation import CommitRecord

console = Console()

DIFF_STATUS_STYLES = {
    'A': 'green',
    'M': 'yellow',
    'D': 'red',
}


def _table(title: Optional[str]) -> Table:
    return Table(
        title=title,
        box=box.ROUNDED,
        show_header=True,
        header_style="bold magenta"
    )


def render_log_table(commits: List[CommitRecord], title: Optional[str] = "History") -> None:
    """Render commit history as a pretty table."""
    if not commits:
        console.print("[yellow]No commits to display.[/yellow]")
        return

    table = _table(title)
    table.add_column("Commit", style="cyan")
    table.add_column("Date", style="dim")
    table.add_column("Subject")

    for commit in commits:
        table.add_row(commit.hash, commit.date, commit.subject)

    console.print(table)


def render_diff_table(changes: Dict[str, str], title: Optional[str] = "Changed files") -> None:
    """Render ``{filename: status}`` as a pretty table."""
    if not changes:
        console.print("[yellow]No changed files.[/yellow]")
        return

    table = _table(title)
    table.add_column("Status")
    table.add_column("File", style="cyan")

    for filename, status in sorted(changes.items()):
        style = DIFF_STATUS_STYLES.get(status, 'white')
        table.add_row(f"[{style}]{status}[/{style}]", filename)

    console.print(table)
