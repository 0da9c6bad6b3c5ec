"""Help screen listing keyboard and mouse shortcuts."""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Grid, Vertical
from textual.screen import ModalScreen
from textual.widgets import Static

HELP_SECTIONS: list[tuple[str, list[tuple[str, str]]]] = [
    (
        "Boards",
        [
            ("1 / 2 / 3", "Tasks, incidents, resource requests"),
            ("Tab", "Next board"),
            ("r", "Reload from server"),
        ],
    ),
    (
        "Navigation",
        [
            ("h l / ← →", "Previous / next column"),
            ("k j / ↑ ↓", "Previous / next item"),
            ("g / G", "First / last item in column"),
            ("Enter", "Item details"),
        ],
    ),
    (
        "Moving",
        [
            ("H / L", "Item to previous / next stage"),
            ("u", "Unassign item"),
            ("[ / ]", "Stage one place left / right"),
        ],
    ),
    (
        "Mouse",
        [
            ("Drag a card", "Drop on a column to move it"),
            ("Drag a header", "Drop on another header to reorder"),
            ("Esc", "Cancel the drag"),
        ],
    ),
    (
        "Filter",
        [
            ("/", "Open the filter bar (↑ ↓ recall)"),
            ("Esc", "Clear the active filter"),
            ("priority:high", "Priority or severity"),
            ("assignee:ama", "Assignee, -assignee: excludes"),
            ("overdue:true", "Past the due date"),
        ],
    ),
]


class HelpScreen(ModalScreen):
    """Shortcut reference; any of escape, ? or q closes it."""

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }

    HelpScreen > Vertical {
        width: 66;
        height: auto;
        max-height: 90%;
        padding: 1 2;
        background: $surface;
        border: round $primary;
    }

    HelpScreen #help-title {
        width: 100%;
        text-align: center;
        text-style: bold;
    }

    HelpScreen .help-heading {
        margin-top: 1;
        text-style: bold underline;
        color: $accent;
    }

    HelpScreen Grid {
        grid-size: 2;
        grid-columns: 18 1fr;
        grid-rows: 1;
        height: auto;
    }

    HelpScreen .help-key {
        text-style: bold;
    }

    HelpScreen .help-desc {
        color: $text-muted;
    }
    """

    BINDINGS = [
        Binding("escape", "dismiss", "Close", show=False),
        Binding("?", "dismiss", "Close", show=False),
        Binding("q", "dismiss", "Close", show=False),
    ]

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("stageboard shortcuts", id="help-title")
            for heading, rows in HELP_SECTIONS:
                yield Static(heading, classes="help-heading")
                with Grid():
                    for key, desc in rows:
                        yield Static(key, classes="help-key", markup=False)
                        yield Static(desc, classes="help-desc")
