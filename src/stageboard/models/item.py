"""Board item models: tasks, incidents and resource requests."""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from ..utils import parse_datetime
from .enums import ItemKind
from .placement import Placement, placement_of


def _person_name(person: dict | None) -> str | None:
    """Display name of a user record: name, then email."""
    if not person:
        return None
    return person.get("name") or person.get("email")


class Item(BaseModel):
    """Common fields of every draggable board item."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[ItemKind]

    id: str
    title: str = ""
    stage_id: str | None = None
    status: str | None = None
    priority: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    assignees: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def placement(self) -> Placement:
        """Stage assignment as a tagged placement."""
        return placement_of(self.stage_id)

    @property
    def display_title(self) -> str:
        """Title for display - falls back to the id."""
        return self.title or f"{self.kind.label.title()} {self.id}"

    @property
    def rank_label(self) -> str | None:
        """Label used for priority-style ordering and display."""
        return self.priority

    @classmethod
    def _common_fields(cls, data: dict[str, Any]) -> dict[str, Any]:
        return {
            "id": str(data["id"]),
            "title": data.get("title") or "",
            "stage_id": data.get("stageId"),
            "status": data.get("status"),
            "priority": data.get("priority"),
            "description": data.get("description"),
            "due_date": parse_datetime(data.get("dueDate")),
            "created_at": parse_datetime(data.get("createdAt")),
            "updated_at": parse_datetime(data.get("updatedAt")),
        }

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Item:
        """Create an item from an API record."""
        return cls(**cls._common_fields(data))


class Task(Item):
    """A project task."""

    kind: ClassVar[ItemKind] = ItemKind.TASK

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Task:
        fields = cls._common_fields(data)
        names = [_person_name(a.get("user")) for a in data.get("assignees") or []]
        assignees = [n for n in names if n]
        if not assignees:
            single = _person_name(data.get("assignee"))
            if single:
                assignees = [single]
        return cls(**fields, assignees=assignees)


class Incident(Item):
    """A project incident. Severity takes the place of priority."""

    kind: ClassVar[ItemKind] = ItemKind.INCIDENT

    severity: str | None = None
    source: str | None = None
    reporter: str | None = None
    related_task_title: str | None = None
    resolved_at: datetime | None = None

    @property
    def rank_label(self) -> str | None:
        return self.severity or self.priority

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> Incident:
        fields = cls._common_fields(data)
        assignee = _person_name(data.get("assignee"))
        related = data.get("relatedTask") or {}
        return cls(
            **fields,
            assignees=[assignee] if assignee else [],
            severity=data.get("severity"),
            source=data.get("source"),
            reporter=_person_name(data.get("reporter")),
            related_task_title=related.get("title"),
            resolved_at=parse_datetime(data.get("resolvedAt")),
        )


class ResourceRequest(Item):
    """A request for materials or people. `needed_by` is its due date."""

    kind: ClassVar[ItemKind] = ItemKind.RESOURCE_REQUEST

    quantity: float | None = None
    unit: str | None = None
    sku: str | None = None
    assigned_team: str | None = None
    estimated_cost: float | None = None
    currency: str | None = None
    requester: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> ResourceRequest:
        fields = cls._common_fields(data)
        fields["description"] = data.get("details") or data.get("description")
        fields["due_date"] = parse_datetime(data.get("neededBy") or data.get("dueDate"))
        return cls(
            **fields,
            quantity=data.get("quantity"),
            unit=data.get("unit"),
            sku=data.get("sku"),
            assigned_team=data.get("assignedTeam"),
            estimated_cost=data.get("estimatedCost"),
            currency=data.get("currency"),
            requester=_person_name(data.get("requester")),
        )


ITEM_MODELS: dict[ItemKind, type[Item]] = {
    ItemKind.TASK: Task,
    ItemKind.INCIDENT: Incident,
    ItemKind.RESOURCE_REQUEST: ResourceRequest,
}


def item_from_api(kind: ItemKind, data: dict[str, Any]) -> Item:
    """Parse an API record into the model for `kind`."""
    return ITEM_MODELS[kind].from_api(data)
