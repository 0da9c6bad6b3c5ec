"""Where an item sits on its board.

An item is either assigned to a stage or sits in the implicit unassigned
bucket. The two cases are separate types so that a real stage id can never
be mistaken for the unassigned bucket.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Assigned:
    """Item belongs to the stage with this id."""

    stage_id: str

    @property
    def stage_id_or_none(self) -> str | None:
        return self.stage_id

    def __str__(self) -> str:
        return self.stage_id


@dataclass(frozen=True)
class Unassigned:
    """Item belongs to no stage."""

    @property
    def stage_id_or_none(self) -> str | None:
        return None

    def __str__(self) -> str:
        return "(unassigned)"


UNASSIGNED = Unassigned()

Placement = Assigned | Unassigned


def placement_of(stage_id: str | None) -> Placement:
    """Build a placement from a nullable stage id."""
    if stage_id is None or stage_id == "":
        return UNASSIGNED
    return Assigned(stage_id)


def as_placement(target: Placement | str | None) -> Placement:
    """Normalize a move target given as placement, stage id or None."""
    if isinstance(target, (Assigned, Unassigned)):
        return target
    return placement_of(target)
