"""UI components."""

from .screens.board import BoardScreen
from .widgets.column import BoardColumn
from .widgets.item_card import ItemCard

__all__ = [
    "BoardColumn",
    "BoardScreen",
    "ItemCard",
]
