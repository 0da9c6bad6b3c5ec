"""Board column widget."""

from textual.actions import SkipAction
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.widget import Widget
from textual.widgets import Static

from ...models import UNASSIGNED, BoardConfig, Item, ItemKind, Placement, Stage
from .item_card import ItemCard


class ItemListScroll(VerticalScroll):
    """Scroll container for item lists.

    Raises SkipAction for navigation keys so they bubble up to the App
    for item navigation instead of being handled as scroll actions.
    """

    def action_scroll_up(self) -> None:
        raise SkipAction()

    def action_scroll_down(self) -> None:
        raise SkipAction()

    def action_scroll_home(self) -> None:
        raise SkipAction()

    def action_scroll_end(self) -> None:
        raise SkipAction()


class EmptyColumnMessage(Static):
    """Displayed when a column has no items."""

    pass


class StageHeader(Static):
    """Header of a stage column. Stage headers are drag handles and drop targets."""

    def __init__(self, stage: Stage, count: int, *args, **kwargs) -> None:
        super().__init__(self._render_text(stage, count), *args, **kwargs)
        self.stage = stage

    @staticmethod
    def _render_text(stage: Stage, count: int) -> str:
        return f"[{stage.color}]■[/] {stage.name} [dim]({count})[/]"

    def show_insertion(self, side: str | None) -> None:
        """Show or clear the insertion-side indicator."""
        self.set_class(side == "before", "-insert-before")
        self.set_class(side == "after", "-insert-after")


class BoardColumn(Widget):
    """One column of the board: a stage, or the unassigned bucket."""

    def __init__(
        self,
        kind: ItemKind,
        placement: Placement,
        items: list[Item],
        stage: Stage | None = None,
        board_config: BoardConfig | None = None,
        pending_ids: set[str] | None = None,
        *args,
        **kwargs,
    ) -> None:
        super().__init__(*args, **kwargs)
        self.kind = kind
        self.placement = placement
        self.stage = stage
        self._items = items
        self._board_config = board_config
        self._pending_ids = pending_ids or set()

    @property
    def title(self) -> str:
        return self.stage.name if self.stage else "Unassigned"

    def compose(self) -> ComposeResult:
        """Create column layout."""
        if self.stage is not None:
            yield StageHeader(self.stage, len(self._items), classes="column-header")
        else:
            yield Static(
                f"Unassigned [dim]({len(self._items)})[/]",
                classes="column-header unassigned-header",
            )

        with ItemListScroll(classes="column-content"):
            if not self._items:
                yield EmptyColumnMessage(f"Drop {self.kind.plural_label.lower()} here")
            for item in self._items:
                priority_config = None
                if self._board_config:
                    priority_config = self._board_config.get_priority(item.rank_label)
                yield ItemCard(
                    item,
                    priority_config=priority_config,
                    pending=item.id in self._pending_ids,
                )

    @property
    def is_unassigned(self) -> bool:
        return self.placement == UNASSIGNED

    @property
    def items(self) -> list[Item]:
        """Get the items in this column."""
        return self._items

    @property
    def item_count(self) -> int:
        """Get the number of items in this column."""
        return len(self._items)

    def show_drop_hover(self, active: bool) -> None:
        """Highlight the column while an item hovers over it."""
        self.set_class(active, "-drop-hover")

    def focus_item(self, index: int) -> bool:
        """
        Focus the item at the given index.

        Returns:
            True if an item was focused, False otherwise
        """
        if not self._items or index < 0 or index >= len(self._items):
            return False

        cards = self.query(ItemCard)
        if index >= len(cards):
            return False
        card = cards[index]
        card.focus()
        card.scroll_visible()
        return True

    def get_item(self, index: int) -> Item | None:
        """Get item at index."""
        if 0 <= index < len(self._items):
            return self._items[index]
        return None

    def card_for(self, item_id: str) -> ItemCard | None:
        for card in self.query(ItemCard):
            if card.item.id == item_id:
                return card
        return None

    def index_of(self, item_id: str) -> int:
        """Position of an item in this column, or -1."""
        for i, item in enumerate(self._items):
            if item.id == item_id:
                return i
        return -1
