"""Item card widget."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.widget import Widget
from textual.widgets import Static

from ...models import Item, PriorityConfig
from ...utils import now_utc, relative_due


class ItemCard(Widget, can_focus=True):
    """A task, incident or resource request card displayed in a column."""

    def __init__(
        self,
        item: Item,
        priority_config: PriorityConfig | None = None,
        pending: bool = False,
        *args,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self._item = item
        self._priority_config = priority_config
        self._pending = pending

    @property
    def item(self) -> Item:
        """Get the item for this card."""
        return self._item

    def compose(self) -> ComposeResult:
        """Create card layout."""
        title = self._truncate(self._item.display_title, 40)
        if self._pending:
            title = f"[dim]⟳[/] {title}"
        yield Static(title, classes="item-title")

        rank_text = self._format_rank()
        due_text = self._format_due()
        with Horizontal(classes="item-meta"):
            yield Static(rank_text, classes="item-priority")
            if due_text:
                yield Static(due_text, classes="item-due")

        assignee = self._format_assignees()
        if assignee:
            yield Static(assignee, classes="item-assignee")
        elif self._item.description:
            preview = self._get_description_preview()
            if preview:
                yield Static(preview, classes="item-preview")

    def _format_rank(self) -> str:
        """Format priority (or severity) for display using config."""
        label = self._item.rank_label
        if not label:
            return "[dim]—[/]"

        if self._priority_config:
            color = self._priority_config.color
            symbol = self._priority_config.symbol
            text = self._priority_config.label
        else:
            # Fallback for unknown priorities
            color = "white"
            symbol = "●"
            text = label.title()
        return f"[{color}]{symbol}[/] {text}"

    def _format_due(self) -> str:
        """Due date, red when overdue. Empty if there is none."""
        due = self._item.due_date
        if due is None:
            return ""
        text = relative_due(due)
        if due < now_utc():
            return f"[red]⏰ {text}[/]"
        return f"[dim]⏰ {text}[/]"

    def _format_assignees(self) -> str:
        """First assignee plus a count of the others."""
        assignees = self._item.assignees
        if not assignees:
            return ""
        extra = f" +{len(assignees) - 1}" if len(assignees) > 1 else ""
        return f"@{assignees[0]}{extra}"

    def _truncate(self, text: str, max_len: int) -> str:
        """Truncate text with ellipsis."""
        if len(text) <= max_len:
            return text
        return text[: max_len - 1] + "…"

    def _get_description_preview(self) -> str:
        """First non-empty line of the description."""
        for line in (self._item.description or "").split("\n"):
            line = line.strip()
            if line:
                return self._truncate(line, 50)
        return ""
