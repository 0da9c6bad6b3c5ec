"""Board state models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import ItemKind, ItemOrder
from .item import Item
from .placement import UNASSIGNED, Assigned, Placement, Unassigned
from .stage import Stage, sort_stages

# Lower rank sorts first; unknown and missing labels sort last
PRIORITY_RANKS: dict[str, int] = {
    "critical": 0,
    "urgent": 0,
    "high": 1,
    "medium": 2,
    "normal": 2,
    "low": 3,
}
_UNRANKED = len(set(PRIORITY_RANKS.values()))


def priority_rank(label: str | None) -> int:
    """Sort rank of a priority or severity label."""
    if not label:
        return _UNRANKED
    return PRIORITY_RANKS.get(label.lower(), _UNRANKED)


def sort_items(items: list[Item], order: ItemOrder) -> list[Item]:
    """Order the items of one column. All orders are stable."""
    if order == ItemOrder.DUE_DATE:
        # Items without a due date go last
        return sorted(
            items,
            key=lambda i: (i.due_date is None, i.due_date or datetime.min),
        )
    if order == ItemOrder.PRIORITY:
        return sorted(items, key=lambda i: priority_rank(i.rank_label))
    return list(items)


class StageColumn(BaseModel):
    """One stage and the items currently placed in it."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    stage: Stage
    items: list[Item] = Field(default_factory=list)

    @property
    def stage_id(self) -> str:
        return self.stage.id

    @property
    def placement(self) -> Placement:
        return Assigned(self.stage.id)


class Board(BaseModel):
    """Items of one kind grouped into the columns of their stage type."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    kind: ItemKind
    columns: list[StageColumn] = Field(default_factory=list)
    unassigned: list[Item] = Field(default_factory=list)

    @classmethod
    def from_items(
        cls,
        kind: ItemKind,
        items: list[Item],
        stages: list[Stage],
        order: ItemOrder = ItemOrder.INSERTION,
    ) -> Board:
        """
        Group items by stage.

        Args:
            kind: Item kind shown on this board
            items: Items to place; those of another kind are skipped
            stages: Stages of any type; only those matching `kind` become columns
            order: Ordering applied inside each column
        """
        board_stages = [s for s in sort_stages(stages) if s.stage_type == kind.stage_type]

        # Every stage gets a column before any item is placed
        buckets: dict[str, list[Item]] = {s.id: [] for s in board_stages}
        unassigned: list[Item] = []

        for item in items:
            if item.kind != kind:
                continue
            if item.stage_id is not None and item.stage_id in buckets:
                buckets[item.stage_id].append(item)
            else:
                unassigned.append(item)

        return cls(
            kind=kind,
            columns=[
                StageColumn(stage=s, items=sort_items(buckets[s.id], order))
                for s in board_stages
            ],
            unassigned=sort_items(unassigned, order),
        )

    @property
    def stages(self) -> list[Stage]:
        """Stages in display order."""
        return [col.stage for col in self.columns]

    @property
    def item_count(self) -> int:
        """Total items across all columns and the unassigned bucket."""
        return sum(len(col.items) for col in self.columns) + len(self.unassigned)

    def get_column(self, stage_id: str) -> StageColumn | None:
        """Get the column of a stage."""
        for col in self.columns:
            if col.stage.id == stage_id:
                return col
        return None

    def bucket(self, placement: Placement) -> list[Item]:
        """Items in the bucket for `placement` (empty if the stage is unknown)."""
        if isinstance(placement, Unassigned):
            return self.unassigned
        col = self.get_column(placement.stage_id)
        return col.items if col else []

    def locate(self, item_id: str) -> Placement | None:
        """Find which bucket holds an item."""
        for col in self.columns:
            if any(i.id == item_id for i in col.items):
                return col.placement
        if any(i.id == item_id for i in self.unassigned):
            return UNASSIGNED
        return None

    def as_mapping(self) -> dict[Placement, list[str]]:
        """Bucket -> item ids, columns first in stage order, then unassigned."""
        mapping: dict[Placement, list[str]] = {
            col.placement: [i.id for i in col.items] for col in self.columns
        }
        mapping[UNASSIGNED] = [i.id for i in self.unassigned]
        return mapping
