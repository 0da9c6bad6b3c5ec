"""Widget components."""

from ..screens.help import HelpScreen
from .column import BoardColumn, EmptyColumnMessage, StageHeader
from .command_bar import CommandBar
from .item_card import ItemCard
from .preview_modal import ItemPreviewModal, item_details

__all__ = [
    "BoardColumn",
    "CommandBar",
    "EmptyColumnMessage",
    "HelpScreen",
    "ItemCard",
    "ItemPreviewModal",
    "StageHeader",
    "item_details",
]
