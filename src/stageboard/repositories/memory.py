"""In-memory repository used for demos and offline work."""

from __future__ import annotations

import logging
import threading
from datetime import timedelta

from ..api import ApiNotFoundError, ApiRejectedError
from ..models import (
    Incident,
    Item,
    ItemKind,
    ResourceRequest,
    Stage,
    StageOrder,
    StageType,
    Task,
    sort_stages,
)
from ..utils import now_utc

logger = logging.getLogger(__name__)


class InMemoryBoardRepository:
    """Repository that keeps stages and items in process memory.

    Validates moves and reorders the same way the server does, so the
    controller sees identical failures whether it talks to this or to
    `HttpBoardRepository`.
    """

    def __init__(
        self,
        stages: list[Stage] | None = None,
        items: list[Item] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._stages: dict[str, Stage] = {s.id: s for s in stages or []}
        self._items: dict[ItemKind, list[Item]] = {kind: [] for kind in ItemKind}
        for item in items or []:
            self._items[item.kind].append(item)

    def get_stages(self) -> list[Stage]:
        with self._lock:
            return sort_stages(list(self._stages.values()))

    def get_items(self, kind: ItemKind) -> list[Item]:
        with self._lock:
            return list(self._items[kind])

    def move_item(self, kind: ItemKind, item_id: str, stage_id: str | None) -> Item:
        with self._lock:
            items = self._items[kind]
            index = next((i for i, item in enumerate(items) if item.id == item_id), None)
            if index is None:
                raise ApiNotFoundError(
                    f"{kind.label.capitalize()} not found in this project",
                    404,
                    f"{kind.label.capitalize()} not found in this project",
                )

            if stage_id is not None:
                stage = self._stages.get(stage_id)
                if stage is None or stage.stage_type != kind.stage_type:
                    raise ApiRejectedError(
                        "Invalid stage for this project", 400, "Invalid stage for this project"
                    )

            updated = items[index].model_copy(update={"stage_id": stage_id, "updated_at": now_utc()})
            items[index] = updated
            logger.debug("Moved %s %s -> %s", kind.value, item_id, stage_id)
            return updated

    def reorder_stages(self, stage_orders: list[StageOrder]) -> list[Stage]:
        with self._lock:
            for entry in stage_orders:
                if entry.stage_id not in self._stages:
                    raise ApiNotFoundError("Stage not found", 404, "Stage not found")
            for entry in stage_orders:
                self._stages[entry.stage_id] = self._stages[entry.stage_id].with_order(entry.order)
            return sort_stages(list(self._stages.values()))

    def close(self) -> None:
        pass

    @classmethod
    def demo(cls) -> InMemoryBoardRepository:
        """A small sample project with all three boards populated."""
        now = now_utc()
        stages = [
            Stage(id="t-backlog", name="Backlog", color="#64748B", order=0),
            Stage(id="t-doing", name="In Progress", color="#3B82F6", order=1),
            Stage(id="t-review", name="Review", color="#F59E0B", order=2),
            Stage(id="t-done", name="Done", color="#10B981", order=3),
            Stage(id="i-new", name="Reported", color="#EF4444", order=0, stage_type=StageType.INCIDENT),
            Stage(id="i-triage", name="Investigating", color="#F97316", order=1, stage_type=StageType.INCIDENT),
            Stage(id="i-closed", name="Resolved", color="#10B981", order=2, stage_type=StageType.INCIDENT),
            Stage(id="r-requested", name="Requested", color="#8B5CF6", order=0, stage_type=StageType.RESOURCE),
            Stage(id="r-approved", name="Approved", color="#3B82F6", order=1, stage_type=StageType.RESOURCE),
            Stage(id="r-delivered", name="Delivered", color="#10B981", order=2, stage_type=StageType.RESOURCE),
        ]
        items: list[Item] = [
            Task(id="task-1", title="Survey site", stage_id="t-done", priority="HIGH",
                 assignees=["Ama Mensah"], due_date=now - timedelta(days=3)),
            Task(id="task-2", title="Order cabling", stage_id="t-doing", priority="MEDIUM",
                 assignees=["Kofi Boateng", "Esi Owusu"], due_date=now + timedelta(days=2)),
            Task(id="task-3", title="Install racks", stage_id="t-backlog", priority="LOW",
                 due_date=now + timedelta(days=10)),
            Task(id="task-4", title="Configure switches", stage_id="t-backlog", priority="URGENT",
                 assignees=["Esi Owusu"]),
            Task(id="task-5", title="Write handover notes", stage_id=None),
            Incident(id="inc-1", title="Power outage on floor 2", stage_id="i-triage",
                     severity="CRITICAL", source="SITE", assignees=["Kofi Boateng"]),
            Incident(id="inc-2", title="Damaged delivery", stage_id="i-new", severity="MEDIUM",
                     source="SUPPLIER"),
            Incident(id="inc-3", title="Unlabelled ports", stage_id=None, severity="LOW"),
            ResourceRequest(id="req-1", title="Cat6 cable", stage_id="r-approved", priority="HIGH",
                            quantity=500, unit="m", assigned_team="Procurement",
                            due_date=now + timedelta(days=1)),
            ResourceRequest(id="req-2", title="Rack screws", stage_id="r-requested",
                            priority="LOW", quantity=200, unit="pcs"),
        ]
        return cls(stages, items)
