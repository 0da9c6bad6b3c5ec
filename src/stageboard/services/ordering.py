"""Stage reordering arithmetic."""

from __future__ import annotations

from enum import Enum

from ..models import StageOrder


class InsertSide(str, Enum):
    """Which side of the target stage the dragged stage lands on."""

    BEFORE = "before"
    AFTER = "after"


def insertion_side(x: float, left: float, width: float) -> InsertSide:
    """Decide the insertion side from a pointer position over a header.

    The left half of the header means before, the right half (midpoint
    included) means after.
    """
    midpoint = left + width / 2
    return InsertSide.BEFORE if x < midpoint else InsertSide.AFTER


def move_in_sequence(
    stage_ids: list[str],
    dragged_id: str,
    target_id: str,
    side: InsertSide,
) -> list[str]:
    """
    Reposition one id relative to another.

    The dragged id is removed first, then reinserted next to the target in
    the shortened list.

    Raises:
        ValueError: if either id is missing or they are the same
    """
    if dragged_id == target_id:
        raise ValueError("A stage cannot be moved relative to itself")
    if dragged_id not in stage_ids:
        raise ValueError(f"Unknown stage: {dragged_id}")
    if target_id not in stage_ids:
        raise ValueError(f"Unknown stage: {target_id}")

    remaining = [sid for sid in stage_ids if sid != dragged_id]
    index = remaining.index(target_id)
    if side == InsertSide.AFTER:
        index += 1
    remaining.insert(index, dragged_id)
    return remaining


def renumber(stage_ids: list[str]) -> list[StageOrder]:
    """Full zero-based renumbering of a stage sequence."""
    return [StageOrder(stage_id=sid, order=idx) for idx, sid in enumerate(stage_ids)]
