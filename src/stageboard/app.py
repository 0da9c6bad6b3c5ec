"""stageboard TUI Application."""

import logging
import threading

from textual import work
from textual.app import App
from textual.binding import Binding
from textual.screen import ModalScreen
from textual.widgets import Input

from .config import Settings
from .models import UNASSIGNED, ItemKind, Placement, StageType
from .repositories import create_repository
from .services import (
    BOARD_REFRESHED,
    ITEMS_CHANGED,
    STAGES_CHANGED,
    BoardController,
    BoardError,
    ColumnTarget,
    ConfigService,
    DragController,
    DragEntity,
    DropAction,
    EventBus,
    FilterService,
    OperationFailedError,
)
from .ui.screens.board import BoardScreen
from .ui.widgets import CommandBar, HelpScreen, ItemPreviewModal

logger = logging.getLogger(__name__)


class StageboardApp(App):
    """stageboard - Terminal Kanban boards for a project."""

    TITLE = "stageboard"

    CSS_PATH = "ui/styles.tcss"

    BINDINGS = [
        # Core bindings
        Binding("q", "quit", "Quit", show=True),
        Binding("?", "help", "Help", show=True),
        Binding("r", "refresh", "Refresh", show=True),
        # Boards
        Binding("1", "show_kind('task')", "Tasks", show=False),
        Binding("2", "show_kind('incident')", "Incidents", show=False),
        Binding("3", "show_kind('resource_request')", "Requests", show=False),
        Binding("tab", "next_kind", "Next board", show=True),
        # Navigation - vim style
        Binding("h", "nav_left", "← Column", show=False),
        Binding("j", "nav_down", "↓ Item", show=False),
        Binding("k", "nav_up", "↑ Item", show=False),
        Binding("l", "nav_right", "→ Column", show=False),
        # Navigation - arrow keys
        Binding("left", "nav_left", "← Column", show=False),
        Binding("down", "nav_down", "↓ Item", show=False),
        Binding("up", "nav_up", "↑ Item", show=False),
        Binding("right", "nav_right", "→ Column", show=False),
        # Jump navigation
        Binding("g", "nav_first", "First", show=False),
        Binding("G", "nav_last", "Last", show=False),
        Binding("home", "nav_first", "First", show=False),
        Binding("end", "nav_last", "Last", show=False),
        # Item actions
        Binding("enter", "preview_item", "Details", show=True),
        Binding("H", "move_item_left", "Move ←", show=False),
        Binding("L", "move_item_right", "Move →", show=False),
        Binding("shift+left", "move_item_left", "Move ←", show=False),
        Binding("shift+right", "move_item_right", "Move →", show=False),
        Binding("u", "unassign_item", "Unassign", show=False),
        # Stage actions
        Binding("left_square_bracket", "move_stage_left", "Stage ←", show=False),
        Binding("right_square_bracket", "move_stage_right", "Stage →", show=False),
        # Filter mode
        Binding("/", "enter_filter", "Filter", show=True),
        Binding("escape", "escape", "Back", show=False, priority=True),
    ]

    def __init__(self, settings: Settings | None = None) -> None:
        super().__init__()
        self.settings = settings or Settings()
        # Controller calls run in worker threads; UI updates go through this thread
        self._ui_thread_id = threading.get_ident()
        self._unsubscribers: list = []
        self._init_services()

    def _init_services(self) -> None:
        """Initialize repository, controller and services."""
        self.config_service = ConfigService(self.settings.project_root)
        board_config = self.config_service.get_board_config()

        self.repository = create_repository(self.settings)
        self.events = EventBus()
        self.controller = BoardController(
            self.repository,
            self.settings.item_order or board_config.item_order,
            self.events,
        )
        self.drag_controller = DragController(self.controller, notify=self._notify_failure)
        self.filter_service = FilterService()
        self.initial_kind = self.settings.kind or board_config.default_kind

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.sub_title = "demo project" if self.settings.demo else f"project {self.settings.project_id}"
        if self.config_service.has_config_error:
            self.notify(self.config_service.config_error or "", severity="warning", timeout=5)

        self._unsubscribers = [
            self.events.subscribe(ITEMS_CHANGED, self._on_items_changed),
            self.events.subscribe(STAGES_CHANGED, self._on_stages_changed),
            self.events.subscribe(BOARD_REFRESHED, self._on_board_refreshed),
        ]
        self.push_screen(BoardScreen(self.initial_kind))
        self.load_board()

    def close_services(self) -> None:
        """Drop event subscriptions and close the backend connection."""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.repository.close()

    # Thread marshalling

    def _call_ui(self, callback, *args, **kwargs) -> None:
        """Run `callback` on the UI thread, from any thread."""
        if threading.get_ident() == self._ui_thread_id:
            callback(*args, **kwargs)
        else:
            self.call_from_thread(callback, *args, **kwargs)

    def _notify_failure(self, message: str) -> None:
        self._call_ui(self.notify, message, severity="error", timeout=5)

    def _board_screen(self) -> BoardScreen | None:
        """The board screen, even when a modal is on top of it."""
        for screen in reversed(self.screen_stack):
            if isinstance(screen, BoardScreen):
                return screen
        return None

    # Event handlers (called on the publishing thread)

    def _on_items_changed(self, kind: ItemKind) -> None:
        self._call_ui(self._refresh_for, kind.stage_type)

    def _on_stages_changed(self, stage_type: StageType | None = None) -> None:
        self._call_ui(self._refresh_for, stage_type)

    def _on_board_refreshed(self) -> None:
        self._call_ui(self._refresh_for, None)

    def _refresh_for(self, stage_type: StageType | None) -> None:
        screen = self._board_screen()
        if screen is None:
            return
        if stage_type is None or screen.kind.stage_type == stage_type:
            screen.refresh_board()
        else:
            screen.update_tabs()

    # Workers

    @work(thread=True, exclusive=True, group="load")
    def load_board(self) -> None:
        """Fetch the whole project from the backend."""
        try:
            self.controller.load()
        except OperationFailedError as e:
            self._notify_failure(e.user_message)

    @work(thread=True, group="move")
    def move_item_worker(self, kind: ItemKind, item_id: str, target: Placement) -> None:
        try:
            before = self.controller.get_item(kind, item_id)
            updated = self.controller.move_item(kind, item_id, target)
        except OperationFailedError as e:
            self._notify_failure(e.user_message)
            self._call_ui(self._refresh_for, kind.stage_type)
            return
        except BoardError as e:
            logger.debug("Move not possible: %s", e)
            return
        if updated.placement != before.placement:
            self._call_ui(self.notify, f"Moved to {self._placement_name(updated.placement)}", timeout=2)

    @work(thread=True, group="reorder")
    def shift_stage_worker(self, stage_id: str, delta: int) -> None:
        try:
            self.controller.shift_stage(stage_id, delta)
        except OperationFailedError as e:
            self._notify_failure(e.user_message)
        except BoardError as e:
            logger.debug("Reorder not possible: %s", e)

    @work(thread=True, group="drop")
    def _execute_drop_worker(self, action: DropAction) -> None:
        if self.drag_controller.execute(action):
            self._call_ui(self._notify_drop, action)
        elif action.payload.entity == DragEntity.ITEM:
            # Clears the pending marker after a failed or superseded move
            self._call_ui(self._refresh_for, None)

    def execute_drop(self, action: DropAction) -> None:
        """Run a resolved drop from the board screen."""
        payload = action.payload
        if payload.entity == DragEntity.ITEM and isinstance(action.target, ColumnTarget):
            self._mark_pending_move(payload.kind, payload.entity_id, action.target.placement)
        self._execute_drop_worker(action)

    def _notify_drop(self, action: DropAction) -> None:
        screen = self._board_screen()
        if screen is not None:
            self.notify(screen.describe_drop(action), timeout=2)

    def _placement_name(self, placement: Placement) -> str:
        if placement == UNASSIGNED:
            return "Unassigned"
        stage = self.controller.get_stage(placement.stage_id)
        return stage.name if stage else placement.stage_id

    def _mark_pending_move(self, kind: ItemKind | None, item_id: str, target: Placement) -> None:
        screen = self._board_screen()
        if screen is None or kind is None:
            return
        try:
            item = self.controller.get_item(kind, item_id)
        except BoardError:
            return
        if item.placement != target:
            screen.mark_pending(item_id)

    # Board actions

    def action_refresh(self) -> None:
        """Reload the project from the backend."""
        self.config_service.reload()
        self.load_board()

    def action_help(self) -> None:
        """Show help screen."""
        self.push_screen(HelpScreen())

    def action_show_kind(self, kind: str) -> None:
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.switch_kind(ItemKind(kind))

    def action_next_kind(self) -> None:
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.cycle_kind(1)

    # Navigation actions
    def action_nav_left(self) -> None:
        """Navigate to previous column."""
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.navigate_column(-1)

    def action_nav_right(self) -> None:
        """Navigate to next column."""
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.navigate_column(1)

    def action_nav_up(self) -> None:
        """Navigate to previous item."""
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.navigate_item(-1)

    def action_nav_down(self) -> None:
        """Navigate to next item."""
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.navigate_item(1)

    def action_nav_first(self) -> None:
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.navigate_to_item(0)

    def action_nav_last(self) -> None:
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.navigate_to_item(-1)

    # Item actions
    def action_preview_item(self) -> None:
        """Show item details."""
        screen = self.screen
        if not isinstance(screen, BoardScreen):
            return

        item = screen.get_current_item()
        if item is None:
            return
        stage = self.controller.get_stage(item.stage_id) if item.stage_id else None
        self.push_screen(ItemPreviewModal(item, stage))

    def action_move_item_left(self) -> None:
        """Move current item to the previous column."""
        self._move_current_item(-1)

    def action_move_item_right(self) -> None:
        """Move current item to the next column."""
        self._move_current_item(1)

    def _move_current_item(self, delta: int) -> None:
        screen = self.screen
        if not isinstance(screen, BoardScreen):
            return

        item = screen.get_current_item()
        if item is None:
            return

        target = self.controller.neighbor_placement(
            screen.kind, self.controller.effective_placement(screen.kind, item.id), delta
        )
        if target is None:
            return
        self._mark_pending_move(screen.kind, item.id, target)
        self.move_item_worker(screen.kind, item.id, target)

    def action_unassign_item(self) -> None:
        """Remove the current item from its stage."""
        screen = self.screen
        if not isinstance(screen, BoardScreen):
            return

        item = screen.get_current_item()
        if item is None or item.placement == UNASSIGNED:
            return
        self._mark_pending_move(screen.kind, item.id, UNASSIGNED)
        self.move_item_worker(screen.kind, item.id, UNASSIGNED)

    # Stage actions
    def action_move_stage_left(self) -> None:
        self._shift_current_stage(-1)

    def action_move_stage_right(self) -> None:
        self._shift_current_stage(1)

    def _shift_current_stage(self, delta: int) -> None:
        screen = self.screen
        if not isinstance(screen, BoardScreen):
            return

        stage = screen.get_current_stage()
        if stage is None:
            self.notify("The unassigned column cannot be moved", severity="warning", timeout=2)
            return
        self.shift_stage_worker(stage.id, delta)

    # Filter actions
    def action_enter_filter(self) -> None:
        screen = self.screen
        if isinstance(screen, BoardScreen):
            screen.query_one(CommandBar).enter_filter_mode(screen.kind)

    def action_escape(self) -> None:
        """Innermost first: modal, drag, open filter bar, active filter."""
        screen = self.screen
        if isinstance(screen, ModalScreen):
            screen.dismiss()
            return
        if not isinstance(screen, BoardScreen) or screen.cancel_drag():
            return

        command_bar = screen.query_one(CommandBar)
        if command_bar.is_visible:
            command_bar.exit_filter_mode()
        elif command_bar.active_filter:
            command_bar.clear_filter()
            self._apply_filter(screen, "")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        screen = self.screen
        if event.input.id != "filter-input" or not isinstance(screen, BoardScreen):
            return
        command_bar = screen.query_one(CommandBar)
        expression = command_bar.apply_filter(event.value)
        command_bar.exit_filter_mode()
        self._apply_filter(screen, expression)

    def _apply_filter(self, screen: BoardScreen, expression: str) -> None:
        filter_ = self.filter_service.parse(expression) if expression else None
        screen.set_filter(filter_, expression)


def run(settings: Settings | None = None) -> None:
    """Run the stageboard application."""
    app = StageboardApp(settings)
    try:
        app.run()
    finally:
        app.close_services()
