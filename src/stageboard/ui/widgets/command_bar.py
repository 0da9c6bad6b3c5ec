"""Filter bar with recall of earlier expressions."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widget import Widget
from textual.widgets import Input, Static

from ...models import ItemKind

HISTORY_SIZE = 20


class CommandBar(Widget):
    """Filter bar docked at the bottom of the board.

    Applied expressions are remembered most recent last; up/down in the
    input steps through them.
    """

    DEFAULT_CSS = """
    CommandBar {
        height: 1;
        dock: bottom;
        background: $surface;
        display: none;
        layer: command;
    }

    CommandBar.-visible {
        display: block;
    }

    CommandBar #filter-mode {
        width: auto;
        padding: 0 1;
        background: $primary;
        color: $text;
    }

    CommandBar #filter-input {
        width: 1fr;
        border: none;
        background: $surface;
    }
    """

    BINDINGS = [
        Binding("up", "history(-1)", show=False),
        Binding("down", "history(1)", show=False),
    ]

    def __init__(self) -> None:
        super().__init__()
        self._active_filter = ""
        self._history: list[str] = []
        self._cursor = 0

    def compose(self) -> ComposeResult:
        with Horizontal():
            yield Static("Filter", id="filter-mode")
            yield Input(
                placeholder="priority:high assignee:ama overdue:true text...",
                id="filter-input",
            )

    @property
    def active_filter(self) -> str:
        return self._active_filter

    @property
    def history(self) -> list[str]:
        return list(self._history)

    @property
    def is_visible(self) -> bool:
        return self.has_class("-visible")

    def enter_filter_mode(self, kind: ItemKind) -> None:
        """Show the bar for one board with the active expression loaded."""
        self.query_one("#filter-mode", Static).update(f"Filter {kind.plural_label.lower()}")
        self._cursor = len(self._history)
        self.add_class("-visible")
        input_widget = self.query_one("#filter-input", Input)
        input_widget.value = self._active_filter
        input_widget.focus()

    def exit_filter_mode(self) -> None:
        self.remove_class("-visible")

    def apply_filter(self, expression: str) -> str:
        """Make `expression` the active filter and remember it."""
        expression = expression.strip()
        self._active_filter = expression
        if expression:
            if expression in self._history:
                self._history.remove(expression)
            self._history.append(expression)
            del self._history[:-HISTORY_SIZE]
        return expression

    def clear_filter(self) -> None:
        self._active_filter = ""
        self.query_one("#filter-input", Input).value = ""

    def action_history(self, step: int) -> None:
        if not self._history:
            return
        self._cursor = max(0, min(len(self._history), self._cursor + step))
        value = self._history[self._cursor] if self._cursor < len(self._history) else ""
        input_widget = self.query_one("#filter-input", Input)
        input_widget.value = value
        input_widget.cursor_position = len(value)
