"""Enums for item kinds and in-column ordering."""

from enum import Enum

from .stage import StageType


class ItemKind(str, Enum):
    """The three kinds of item a project board can show."""

    TASK = "task"
    INCIDENT = "incident"
    RESOURCE_REQUEST = "resource_request"

    @property
    def stage_type(self) -> StageType:
        """Stage type whose columns hold items of this kind."""
        return _STAGE_TYPES[self]

    @property
    def label(self) -> str:
        """Human readable singular name."""
        return self.value.replace("_", " ")

    @property
    def plural_label(self) -> str:
        """Human readable plural name (used for tabs)."""
        return _PLURAL_LABELS[self]

    @property
    def path_segment(self) -> str:
        """URL segment of the collection endpoint."""
        return _PATH_SEGMENTS[self]

    @property
    def envelope_key(self) -> str:
        """JSON key wrapping a single item in API responses."""
        return _ENVELOPE_KEYS[self]

    @property
    def collection_key(self) -> str:
        """JSON key wrapping the item list in API responses."""
        return f"{self.envelope_key}s"

    @classmethod
    def for_stage_type(cls, stage_type: StageType) -> "ItemKind":
        """Inverse of `stage_type`."""
        for kind, st in _STAGE_TYPES.items():
            if st == stage_type:
                return kind
        raise ValueError(f"No item kind for stage type {stage_type!r}")


_STAGE_TYPES = {
    ItemKind.TASK: StageType.TASK,
    ItemKind.INCIDENT: StageType.INCIDENT,
    ItemKind.RESOURCE_REQUEST: StageType.RESOURCE,
}

_PLURAL_LABELS = {
    ItemKind.TASK: "Tasks",
    ItemKind.INCIDENT: "Incidents",
    ItemKind.RESOURCE_REQUEST: "Resource Requests",
}

_PATH_SEGMENTS = {
    ItemKind.TASK: "tasks",
    ItemKind.INCIDENT: "incidents",
    ItemKind.RESOURCE_REQUEST: "resource-requests",
}

_ENVELOPE_KEYS = {
    ItemKind.TASK: "task",
    ItemKind.INCIDENT: "incident",
    ItemKind.RESOURCE_REQUEST: "resourceRequest",
}


class ItemOrder(str, Enum):
    """How items are ordered inside one column."""

    INSERTION = "insertion"  # Stable, as returned by the server
    DUE_DATE = "due_date"
    PRIORITY = "priority"
