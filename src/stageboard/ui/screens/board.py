"""Main board screen: one board per item kind, keyboard and mouse driven."""

import logging

from textual import events
from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.errors import NoWidget
from textual.screen import Screen
from textual.widget import Widget
from textual.widgets import Footer, Header, Static

from ...models import UNASSIGNED, BoardConfig, Item, ItemKind, Stage
from ...services import ColumnTarget, DropAction, Filter, HeaderTarget
from ...services.drag import DropTarget
from ..widgets.column import BoardColumn, StageHeader
from ..widgets.command_bar import CommandBar
from ..widgets.item_card import ItemCard

logger = logging.getLogger(__name__)

KIND_ORDER = list(ItemKind)


class BoardScreen(Screen):
    """Board screen with navigation and drag and drop."""

    # Layers for z-ordering (later = higher)
    LAYERS = ["base", "command"]

    def __init__(self, kind: ItemKind = ItemKind.TASK, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.kind = kind
        self._current_column = 0
        self._current_item = 0
        self._filter: Filter | None = None
        self._columns: list[BoardColumn] = []
        # Drag gesture bookkeeping; the state machine itself is DragController's
        self._drag_origin: tuple[int, int] | None = None
        self._drag_moved = False

    @property
    def board_config(self) -> BoardConfig:
        return self.app.config_service.get_board_config()

    @property
    def column_count(self) -> int:
        return len(self._columns)

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("", id="kind-tabs")
        with Container(id="board-container"):
            yield Horizontal(id="columns")
        yield Static("", id="filter-status", classes="filter-status-bar")
        yield CommandBar()
        yield Footer()

    def on_mount(self) -> None:
        self._update_filter_status("")
        self.refresh_board()

    # Rendering

    def refresh_board(self, focus_item_id: str | None = None) -> None:
        """
        Rebuild the columns from the controller's current state.

        Args:
            focus_item_id: Focus this item afterwards. If None, keeps the
                           focused item, or the current position when it is gone.
        """
        if focus_item_id is None:
            current = self.get_current_item()
            focus_item_id = current.id if current else None
        self.update_tabs()
        self.run_worker(self._rebuild(focus_item_id), exclusive=True, group="render")

    async def _rebuild(self, focus_item_id: str | None) -> None:
        container = self.query_one("#columns", Horizontal)
        columns = self._build_columns()
        await container.remove_children()
        await container.mount_all(columns)
        self._columns = columns
        self._restore_focus(focus_item_id)

    def _build_columns(self) -> list[BoardColumn]:
        controller = self.app.controller
        board = controller.board(self.kind)
        pending = {
            item.id for item in controller.items(self.kind) if controller.is_pending(self.kind, item.id)
        }

        columns = [
            BoardColumn(
                self.kind,
                col.placement,
                self._filtered(col.items),
                stage=col.stage,
                board_config=self.board_config,
                pending_ids=pending,
            )
            for col in board.columns
        ]
        columns.append(
            BoardColumn(
                self.kind,
                UNASSIGNED,
                self._filtered(board.unassigned),
                board_config=self.board_config,
                pending_ids=pending,
                classes="unassigned-column",
            )
        )
        return columns

    def _filtered(self, items: list[Item]) -> list[Item]:
        if self._filter is None:
            return items
        return self.app.filter_service.apply(items, self._filter)

    def _restore_focus(self, item_id: str | None) -> None:
        if item_id is not None:
            for col_idx, column in enumerate(self._columns):
                index = column.index_of(item_id)
                if index >= 0:
                    self._current_column, self._current_item = col_idx, index
                    self._update_focus()
                    return

        # Fallback: previous position clamped to the new board
        self._current_column = max(0, min(self._current_column, self.column_count - 1))
        column = self._get_column(self._current_column)
        if column and column.item_count > 0:
            self._current_item = min(self._current_item, column.item_count - 1)
        else:
            self._current_item = 0
        self._update_focus()

    def update_tabs(self) -> None:
        controller = self.app.controller
        parts = []
        for number, kind in enumerate(KIND_ORDER, start=1):
            label = f"{number} {kind.plural_label} ({len(controller.items(kind))})"
            parts.append(f"[reverse] {label} [/]" if kind == self.kind else f" {label} ")
        self.query_one("#kind-tabs", Static).update("  ".join(parts))

    def mark_pending(self, item_id: str) -> None:
        """Flag a card whose move is awaiting the server."""
        for column in self._columns:
            card = column.card_for(item_id)
            if card is not None:
                card.add_class("-pending")

    # Board switching and filtering

    def switch_kind(self, kind: ItemKind) -> None:
        if kind == self.kind:
            return
        self.cancel_drag()
        self.kind = kind
        self._current_column = 0
        self._current_item = 0
        self.refresh_board()

    def cycle_kind(self, delta: int = 1) -> None:
        index = KIND_ORDER.index(self.kind)
        self.switch_kind(KIND_ORDER[(index + delta) % len(KIND_ORDER)])

    def set_filter(self, filter_: Filter | None, expression: str = "") -> None:
        """Set the active filter."""
        self._filter = filter_
        self._update_filter_status(expression)
        self.refresh_board()

    def _update_filter_status(self, expression: str) -> None:
        status = self.query_one("#filter-status", Static)
        if expression.strip():
            status.update(f"[dim]Filter:[/] {expression} [dim](Esc to clear)[/]")
            status.display = True
        else:
            status.update("")
            status.display = False

    # Keyboard navigation

    def navigate_column(self, delta: int) -> None:
        """Navigate between columns."""
        new_column = max(0, min(self._current_column + delta, self.column_count - 1))
        if new_column != self._current_column:
            self._current_column = new_column
            column = self._get_column(new_column)
            if column and column.item_count > 0:
                self._current_item = min(self._current_item, column.item_count - 1)
            else:
                self._current_item = 0
            self._update_focus()

    def navigate_item(self, delta: int) -> None:
        """Navigate between items in the current column."""
        column = self._get_column(self._current_column)
        if column is None or column.item_count == 0:
            return
        new_item = max(0, min(self._current_item + delta, column.item_count - 1))
        if new_item != self._current_item:
            self._current_item = new_item
            self._update_focus()

    def navigate_to_item(self, index: int) -> None:
        """Navigate to a specific item index (-1 for last)."""
        column = self._get_column(self._current_column)
        if column is None or column.item_count == 0:
            return
        self._current_item = column.item_count - 1 if index < 0 else min(index, column.item_count - 1)
        self._update_focus()

    def _get_column(self, index: int) -> BoardColumn | None:
        if 0 <= index < self.column_count:
            return self._columns[index]
        return None

    def _update_focus(self) -> None:
        column = self._get_column(self._current_column)
        if column is None:
            return
        if not column.focus_item(self._current_item):
            column.scroll_visible()

    def get_current_item(self) -> Item | None:
        """Get the currently focused item."""
        column = self._get_column(self._current_column)
        if column:
            return column.get_item(self._current_item)
        return None

    def get_current_stage(self) -> Stage | None:
        """Stage of the current column; None for the unassigned column."""
        column = self._get_column(self._current_column)
        return column.stage if column else None

    # Mouse drag and drop

    @property
    def drag_active(self) -> bool:
        return self._drag_origin is not None

    def _widget_at(self, x: int, y: int) -> Widget | None:
        try:
            widget, _ = self.get_widget_at(x, y)
        except NoWidget:
            return None
        return widget

    def _drop_target_at(self, x: int, y: int) -> tuple[DropTarget | None, Widget | None]:
        """Drop target under a screen position, and the widget that represents it."""
        widget = self._widget_at(x, y)
        if widget is None:
            return None, None
        for node in widget.ancestors_with_self:
            if isinstance(node, StageHeader):
                region = node.region
                return (
                    HeaderTarget(node.stage.id, node.stage.stage_type, region.x, region.width),
                    node,
                )
            if isinstance(node, BoardColumn):
                return ColumnTarget(node.kind, node.placement), node
        return None, None

    def on_mouse_down(self, event: events.MouseDown) -> None:
        if event.button != 1:
            return
        widget = self._widget_at(event.screen_x, event.screen_y)
        if widget is None:
            return

        drag = self.app.drag_controller
        for node in widget.ancestors_with_self:
            if isinstance(node, ItemCard):
                self._select_card(node)
                drag.begin_item_drag(self.kind, node.item.id)
                break
            if isinstance(node, StageHeader):
                drag.begin_stage_drag(node.stage.id)
                break
        else:
            return

        if not drag.session.is_dragging:
            return
        self._drag_origin = (event.screen_x, event.screen_y)
        self._drag_moved = False
        self.capture_mouse()

    def on_mouse_move(self, event: events.MouseMove) -> None:
        if self._drag_origin is None:
            return
        if (event.screen_x, event.screen_y) != self._drag_origin:
            self._drag_moved = True

        self._clear_drop_indicators()
        target, widget = self._drop_target_at(event.screen_x, event.screen_y)
        drag = self.app.drag_controller
        if not drag.hover(target, event.screen_x):
            return
        if isinstance(widget, BoardColumn):
            widget.show_drop_hover(True)
        elif isinstance(widget, StageHeader):
            indicator = drag.session.indicator
            widget.show_insertion(indicator.value if indicator else None)

    def on_mouse_up(self, event: events.MouseUp) -> None:
        if self._drag_origin is None:
            return
        moved = self._drag_moved
        self._end_gesture()
        drag = self.app.drag_controller

        if not moved:
            # A click, not a drag
            drag.cancel()
            return

        target, _ = self._drop_target_at(event.screen_x, event.screen_y)
        action = drag.resolve_drop(target, event.screen_x)
        if action is not None:
            self.app.execute_drop(action)

    def cancel_drag(self) -> bool:
        """Abort an active drag gesture. Returns whether one was active."""
        if self._drag_origin is None:
            return False
        self._end_gesture()
        self.app.drag_controller.cancel()
        return True

    def _end_gesture(self) -> None:
        self._drag_origin = None
        self._drag_moved = False
        self._clear_drop_indicators()
        self.release_mouse()

    def _clear_drop_indicators(self) -> None:
        for column in self.query(BoardColumn):
            column.show_drop_hover(False)
        for header in self.query(StageHeader):
            header.show_insertion(None)

    def _select_card(self, card: ItemCard) -> None:
        for col_idx, column in enumerate(self._columns):
            index = column.index_of(card.item.id)
            if index >= 0:
                self._current_column, self._current_item = col_idx, index
                return

    def describe_drop(self, action: DropAction) -> str:
        """Short description of what a drop did, for notifications."""
        if isinstance(action.target, ColumnTarget):
            stage_id = action.target.placement.stage_id_or_none
            stage = self.app.controller.get_stage(stage_id) if stage_id else None
            return f"Moved to {stage.name}" if stage else "Moved to Unassigned"
        return "Stages reordered"
