"""Item preview modal."""

from rich.table import Table
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Static

from ...models import Incident, Item, ResourceRequest, Stage


def _format_datetime(value) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else ""


def item_details(item: Item, stage: Stage | None = None) -> Table:
    """Two-column table of the fields of an item, empty fields omitted."""
    rows: list[tuple[str, str]] = [
        ("Stage", stage.name if stage else "Unassigned"),
        ("Status", item.status or ""),
        ("Priority", item.priority or ""),
        ("Assignees", ", ".join(item.assignees)),
        ("Due", _format_datetime(item.due_date)),
    ]

    if isinstance(item, Incident):
        rows += [
            ("Severity", item.severity or ""),
            ("Source", item.source or ""),
            ("Reporter", item.reporter or ""),
            ("Related task", item.related_task_title or ""),
            ("Resolved", _format_datetime(item.resolved_at)),
        ]
    elif isinstance(item, ResourceRequest):
        quantity = ""
        if item.quantity is not None:
            quantity = f"{item.quantity:g} {item.unit or ''}".strip()
        cost = ""
        if item.estimated_cost is not None:
            cost = f"{item.estimated_cost:,.2f} {item.currency or ''}".strip()
        rows += [
            ("Quantity", quantity),
            ("SKU", item.sku or ""),
            ("Team", item.assigned_team or ""),
            ("Estimated cost", cost),
            ("Requester", item.requester or ""),
        ]

    rows += [
        ("Created", _format_datetime(item.created_at)),
        ("Updated", _format_datetime(item.updated_at)),
    ]

    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("field", style="bold", no_wrap=True)
    table.add_column("value")
    for name, value in rows:
        if value:
            table.add_row(name, value)
    return table


class ItemPreviewModal(ModalScreen):
    """Read-only view of one item. Any key closes it except scroll keys."""

    DEFAULT_CSS = """
    ItemPreviewModal {
        align: center middle;
    }

    ItemPreviewModal > VerticalScroll {
        width: 80%;
        height: 80%;
        border: solid $primary;
        background: $surface;
    }

    ItemPreviewModal #title-bar {
        height: 1;
        width: 100%;
        background: $primary-darken-2;
        color: $text;
        text-align: center;
    }

    ItemPreviewModal #details,
    ItemPreviewModal #description {
        width: 100%;
        height: auto;
        padding: 1 1 0 1;
    }

    ItemPreviewModal #footer-bar {
        height: 1;
        width: 100%;
        background: $surface-lighten-1;
        color: $text-muted;
        text-align: center;
        dock: bottom;
    }
    """

    # Keys that should scroll content, not dismiss
    SCROLL_KEYS = {"up", "down", "pageup", "pagedown", "home", "end"}

    def __init__(self, item: Item, stage: Stage | None = None) -> None:
        super().__init__()
        self._item = item
        self._stage = stage

    def compose(self) -> ComposeResult:
        with VerticalScroll():
            yield Static(self._item.display_title, id="title-bar")
            yield Static(item_details(self._item, self._stage), id="details")
            if self._item.description:
                yield Static(self._item.description, id="description", markup=False)
            yield Static("[any key] Close", id="footer-bar")

    def on_key(self, event) -> None:
        """Handle key events - scroll keys scroll, others dismiss."""
        if event.key in self.SCROLL_KEYS:
            return
        event.stop()
        self.dismiss()
