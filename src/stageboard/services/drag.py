"""Drag and drop gestures for item cards and stage headers.

`DragSession` tracks one gesture from start to drop. `DragController` turns a
valid drop into a `BoardController` call and reports failures through a
notification callback. Both are UI-toolkit agnostic: the Textual widgets feed
them mouse positions, tests feed them plain values.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from ..models import ItemKind, Placement, StageType
from .board_controller import (
    BoardController,
    InvalidMoveError,
    InvalidReorderError,
    ItemNotFoundError,
    OperationFailedError,
)
from .ordering import InsertSide, insertion_side

logger = logging.getLogger(__name__)


class DragState(str, Enum):
    """Lifecycle of one drag gesture."""

    IDLE = "idle"
    DRAGGING = "dragging"
    DROPPED_VALID = "dropped_valid"
    DROPPED_INVALID = "dropped_invalid"
    CANCELLED = "cancelled"


class DragEntity(str, Enum):
    """What is being dragged."""

    ITEM = "item"
    STAGE = "stage"


class DragStateError(Exception):
    """Gesture event received in a state that does not allow it."""

    pass


@dataclass(frozen=True)
class DragPayload:
    """Identity of the dragged entity, attached when the drag starts."""

    entity: DragEntity
    entity_id: str
    kind: ItemKind | None = None  # Items
    stage_type: StageType | None = None  # Stages

    @classmethod
    def item(cls, kind: ItemKind, item_id: str) -> DragPayload:
        return cls(DragEntity.ITEM, item_id, kind=kind)

    @classmethod
    def stage(cls, stage_type: StageType, stage_id: str) -> DragPayload:
        return cls(DragEntity.STAGE, stage_id, stage_type=stage_type)


@dataclass(frozen=True)
class ColumnTarget:
    """A column body; accepts item cards of its kind."""

    kind: ItemKind
    placement: Placement


@dataclass(frozen=True)
class HeaderTarget:
    """A stage header; accepts other stage headers of its type.

    `left` and `width` give the header's horizontal extent in the same
    coordinates as the pointer x passed to `hover`/`drop`.
    """

    stage_id: str
    stage_type: StageType
    left: float = 0.0
    width: float = 0.0


DropTarget = ColumnTarget | HeaderTarget


@dataclass(frozen=True)
class DropAction:
    """A resolved, valid drop waiting to be executed."""

    payload: DragPayload
    target: DropTarget
    side: InsertSide | None = None


class DragSession:
    """State machine for a single draggable element.

    Idle -> Dragging -> (DroppedValid | DroppedInvalid | Cancelled) -> Idle.
    Hover highlight and insertion-side indicator are transient and cleared on
    every leave and drop.
    """

    def __init__(self) -> None:
        self.state = DragState.IDLE
        self.payload: DragPayload | None = None
        self.hover_target: DropTarget | None = None
        self.indicator: InsertSide | None = None

    @property
    def is_dragging(self) -> bool:
        return self.state == DragState.DRAGGING

    def start(self, payload: DragPayload) -> None:
        """Begin a drag with `payload` attached."""
        if self.state != DragState.IDLE:
            raise DragStateError(f"Cannot start a drag while {self.state.value}")
        self.payload = payload
        self.state = DragState.DRAGGING
        logger.debug("Drag started: %s %s", payload.entity.value, payload.entity_id)

    def accepts(self, target: DropTarget | None) -> bool:
        """Whether the current payload may be dropped on `target`."""
        payload = self.payload
        if payload is None or target is None:
            return False
        if isinstance(target, ColumnTarget):
            return payload.entity == DragEntity.ITEM and payload.kind == target.kind
        return (
            payload.entity == DragEntity.STAGE
            and payload.stage_type == target.stage_type
            and payload.entity_id != target.stage_id
        )

    def hover(self, target: DropTarget | None, x: float | None = None) -> bool:
        """Pointer moved over `target`. Returns whether the target accepts the payload."""
        if self.state != DragState.DRAGGING:
            return False
        if not self.accepts(target):
            self.leave()
            return False
        self.hover_target = target
        if isinstance(target, HeaderTarget) and x is not None:
            self.indicator = insertion_side(x, target.left, target.width)
        else:
            self.indicator = None
        return True

    def leave(self) -> None:
        """Pointer left the hovered target."""
        self.hover_target = None
        self.indicator = None

    def drop(
        self,
        target: DropTarget | None,
        x: float | None = None,
        side: InsertSide | None = None,
    ) -> DropAction | None:
        """Release the payload over `target`.

        Returns the action to perform, or None for an invalid drop. The
        insertion side for headers comes from `side` if given, else from `x`,
        else defaults to before.
        """
        if self.state != DragState.DRAGGING:
            raise DragStateError(f"Cannot drop while {self.state.value}")
        self.leave()

        if not self.accepts(target):
            self.state = DragState.DROPPED_INVALID
            logger.debug("Drop ignored: %s on %s", self.payload, target)
            return None

        if self.payload is None or target is None:
            self.state = DragState.DROPPED_INVALID
            return None
        if isinstance(target, HeaderTarget) and side is None:
            side = (
                insertion_side(x, target.left, target.width)
                if x is not None
                else InsertSide.BEFORE
            )
        self.state = DragState.DROPPED_VALID
        return DropAction(self.payload, target, side if isinstance(target, HeaderTarget) else None)

    def cancel(self) -> None:
        """Drag ended without a drop."""
        if self.state == DragState.DRAGGING:
            self.state = DragState.CANCELLED
            logger.debug("Drag cancelled: %s", self.payload)
        self.leave()

    def reset(self) -> None:
        """Return to idle after any terminal state."""
        self.state = DragState.IDLE
        self.payload = None
        self.leave()


class DragController:
    """Thin gesture layer over `BoardController`.

    Invalid drops and precondition failures are dropped silently. Server
    failures are passed to `notify` and never raised, so the board stays
    usable.
    """

    def __init__(self, controller: BoardController, notify: Callable[[str], None]) -> None:
        self.controller = controller
        self.notify = notify
        self.session = DragSession()

    def begin_item_drag(self, kind: ItemKind, item_id: str) -> None:
        self._begin(DragPayload.item(kind, item_id))

    def begin_stage_drag(self, stage_id: str) -> None:
        stage = self.controller.get_stage(stage_id)
        if stage is None:
            logger.debug("Ignoring drag of unknown stage %s", stage_id)
            return
        self._begin(DragPayload.stage(stage.stage_type, stage_id))

    def _begin(self, payload: DragPayload) -> None:
        if self.session.state != DragState.IDLE:
            # A previous gesture never finished (e.g. release outside the app)
            self.session.cancel()
            self.session.reset()
        self.session.start(payload)

    def hover(self, target: DropTarget | None, x: float | None = None) -> bool:
        return self.session.hover(target, x)

    def leave(self) -> None:
        self.session.leave()

    def resolve_drop(
        self,
        target: DropTarget | None,
        x: float | None = None,
        side: InsertSide | None = None,
    ) -> DropAction | None:
        """Finish the gesture; the session is idle again afterwards."""
        if not self.session.is_dragging:
            return None
        try:
            return self.session.drop(target, x, side)
        finally:
            self.session.reset()

    def execute(self, action: DropAction) -> bool:
        """Run a resolved drop. Returns True if the board changed."""
        try:
            if action.payload.entity == DragEntity.ITEM:
                if action.payload.kind is None or not isinstance(action.target, ColumnTarget):
                    return False
                before = self.controller.get_item(action.payload.kind, action.payload.entity_id)
                after = self.controller.move_item(
                    action.payload.kind, action.payload.entity_id, action.target.placement
                )
                return after != before
            if not isinstance(action.target, HeaderTarget):
                return False
            before_ids = [s.id for s in self.controller.stages_for(action.target.stage_type)]
            after = self.controller.move_stage(
                action.payload.entity_id,
                action.target.stage_id,
                action.side or InsertSide.BEFORE,
            )
            return [s.id for s in after] != before_ids
        except (ItemNotFoundError, InvalidMoveError, InvalidReorderError) as e:
            logger.debug("Drop rejected: %s", e)
            return False
        except OperationFailedError as e:
            self.notify(e.user_message)
            return False

    def drop(
        self,
        target: DropTarget | None,
        x: float | None = None,
        side: InsertSide | None = None,
    ) -> bool:
        """Resolve and execute a drop in one step."""
        action = self.resolve_drop(target, x, side)
        if action is None:
            return False
        return self.execute(action)

    def cancel(self) -> None:
        self.session.cancel()
        self.session.reset()
