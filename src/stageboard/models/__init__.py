"""Data models."""

from .board import Board, StageColumn, priority_rank, sort_items
from .board_config import BoardConfig, PriorityConfig, StageboardConfig
from .enums import ItemKind, ItemOrder
from .item import ITEM_MODELS, Incident, Item, ResourceRequest, Task, item_from_api
from .placement import UNASSIGNED, Assigned, Placement, Unassigned, as_placement, placement_of
from .stage import DEFAULT_STAGE_COLOR, Stage, StageOrder, StageType, sort_stages

__all__ = [
    "DEFAULT_STAGE_COLOR",
    "ITEM_MODELS",
    "UNASSIGNED",
    "Assigned",
    "Board",
    "BoardConfig",
    "Incident",
    "Item",
    "ItemKind",
    "ItemOrder",
    "Placement",
    "PriorityConfig",
    "ResourceRequest",
    "Stage",
    "StageColumn",
    "StageOrder",
    "StageType",
    "StageboardConfig",
    "Task",
    "Unassigned",
    "as_placement",
    "item_from_api",
    "placement_of",
    "priority_rank",
    "sort_items",
    "sort_stages",
]
