"""Service layer for business logic."""

from .board_controller import (
    BoardController,
    BoardError,
    InvalidMoveError,
    InvalidReorderError,
    ItemNotFoundError,
    OperationFailedError,
    group_by_stage,
)
from .config_service import ConfigService
from .drag import (
    ColumnTarget,
    DragController,
    DragEntity,
    DragPayload,
    DragSession,
    DragState,
    DragStateError,
    DropAction,
    HeaderTarget,
)
from .events import BOARD_REFRESHED, ITEMS_CHANGED, STAGES_CHANGED, EventBus
from .filter_service import Filter, FilterService
from .ordering import InsertSide, insertion_side, move_in_sequence, renumber

__all__ = [
    "BOARD_REFRESHED",
    "ITEMS_CHANGED",
    "STAGES_CHANGED",
    "BoardController",
    "BoardError",
    "ColumnTarget",
    "ConfigService",
    "DragController",
    "DragEntity",
    "DragPayload",
    "DragSession",
    "DragState",
    "DragStateError",
    "DropAction",
    "EventBus",
    "Filter",
    "FilterService",
    "HeaderTarget",
    "InsertSide",
    "InvalidMoveError",
    "InvalidReorderError",
    "ItemNotFoundError",
    "OperationFailedError",
    "group_by_stage",
    "insertion_side",
    "move_in_sequence",
    "renumber",
]
