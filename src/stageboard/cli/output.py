"""Console output helpers for non-interactive commands."""

from rich.console import Console
from rich.table import Table

from ..models import Board, BoardConfig, Item

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def success(message: str) -> None:
    """Print success message with green checkmark."""
    console.print(f"[green]✓[/] {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    console.print(f"[yellow]•[/] {message}")


def error(message: str) -> None:
    """Print error message with red cross to stderr."""
    err_console.print(f"[red]✗[/] {message}")


def _item_line(item: Item, config: BoardConfig) -> str:
    line = item.display_title
    label = item.rank_label
    if label:
        priority = config.get_priority(label)
        color = priority.color if priority else "white"
        line += f" [{color}]{label.lower()}[/]"
    if item.assignees:
        line += f" [dim]@{item.assignees[0]}[/]"
    return line


def render_board(board: Board, config: BoardConfig) -> Table:
    """Render a board as a table: one column per stage, unassigned last."""
    table = Table(title=board.kind.plural_label, expand=True, show_lines=False)
    buckets: list[list[Item]] = []

    for col in board.columns:
        table.add_column(f"[{col.stage.color}]■[/] {col.stage.name} ({len(col.items)})")
        buckets.append(col.items)
    table.add_column(f"Unassigned ({len(board.unassigned)})", style="dim")
    buckets.append(board.unassigned)

    depth = max((len(b) for b in buckets), default=0)
    for row in range(depth):
        table.add_row(
            *(_item_line(b[row], config) if row < len(b) else "" for b in buckets)
        )
    return table


def print_board(board: Board, config: BoardConfig) -> None:
    """Print a board to stdout."""
    console.print(render_board(board, config))
