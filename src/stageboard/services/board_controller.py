"""Board controller: grouping, item moves and stage reordering for one project."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any

from ..api import ApiClientError
from ..models import (
    UNASSIGNED,
    Assigned,
    Board,
    Item,
    ItemKind,
    ItemOrder,
    Placement,
    Stage,
    StageType,
    as_placement,
    sort_stages,
)
from ..repositories import BoardRepositoryProtocol
from .events import BOARD_REFRESHED, ITEMS_CHANGED, STAGES_CHANGED, EventBus
from .ordering import InsertSide, move_in_sequence, renumber

logger = logging.getLogger(__name__)


class BoardError(Exception):
    """Base exception for board operations."""

    pass


class ItemNotFoundError(BoardError):
    """The item is not part of the loaded board."""

    pass


class InvalidMoveError(BoardError):
    """Move target is unknown or belongs to another stage type."""

    pass


class InvalidReorderError(BoardError):
    """Reorder request does not match the stages of its type."""

    pass


class OperationFailedError(BoardError):
    """The server rejected an operation or could not be reached.

    `user_message` is what the user should see: the server's message when it
    sent one, a generic description otherwise.
    """

    def __init__(self, user_message: str) -> None:
        super().__init__(user_message)
        self.user_message = user_message


def group_by_stage(
    kind: ItemKind,
    items: list[Item],
    stages: list[Stage],
    order: ItemOrder = ItemOrder.INSERTION,
) -> Board:
    """Group items of one kind into the columns of the matching stage type."""
    return Board.from_items(kind, items, stages, order)


def _failure_message(error: ApiClientError, fallback: str) -> str:
    return error.message or fallback


@dataclass(frozen=True)
class _Pending:
    """Latest request issued for one key."""

    token: int
    target: Any  # Placement for moves, tuple of stage ids for reorders


@dataclass(frozen=True)
class _Confirmed:
    """A superseded request the server accepted, held until the latest one settles."""

    token: int
    result: Any  # Item for moves, list of stages for reorders


class BoardController:
    """Working copy of one project's boards.

    The server is the system of record: local state changes only when a
    request succeeds, and then takes the server's response as-is. Requests are
    keyed per item (moves) and per stage type (reorders). While a newer
    request for the same key is in flight, an older request's failure is
    ignored and its success is held back. If the newest request then fails,
    the held response is applied, since the server has already accepted it.
    """

    def __init__(
        self,
        repository: BoardRepositoryProtocol,
        item_order: ItemOrder = ItemOrder.INSERTION,
        events: EventBus | None = None,
    ) -> None:
        self.repository = repository
        self.item_order = item_order
        self.events = events or EventBus()
        self._lock = threading.RLock()
        self._stages: list[Stage] = []
        self._items: dict[ItemKind, list[Item]] = {kind: [] for kind in ItemKind}
        self._pending: dict[tuple[str, str], _Pending] = {}
        self._confirmed: dict[tuple[str, str], _Confirmed] = {}
        # Token of the last response applied per key; older responses never overwrite it
        self._applied: dict[tuple[str, str], int] = {}
        self._next_token = 0

    # Loading

    def load(self) -> None:
        """Refetch stages and every item kind, replacing local state."""
        try:
            stages = self.repository.get_stages()
            items = {kind: self.repository.get_items(kind) for kind in ItemKind}
        except ApiClientError as e:
            raise OperationFailedError(_failure_message(e, "Failed to load project board")) from e

        with self._lock:
            self._stages = sort_stages(stages)
            self._items = items
        logger.info(
            "Board loaded: %d stages, %s",
            len(stages),
            ", ".join(f"{len(v)} {k.value}" for k, v in items.items()),
        )
        self.events.publish(BOARD_REFRESHED)

    def load_stages(self) -> None:
        """Refetch stages only."""
        try:
            stages = self.repository.get_stages()
        except ApiClientError as e:
            raise OperationFailedError(_failure_message(e, "Failed to load stages")) from e
        with self._lock:
            self._stages = sort_stages(stages)
        self.events.publish(STAGES_CHANGED, stage_type=None)

    def load_kind(self, kind: ItemKind) -> None:
        """Refetch the items of one kind."""
        try:
            items = self.repository.get_items(kind)
        except ApiClientError as e:
            raise OperationFailedError(
                _failure_message(e, f"Failed to load {kind.plural_label.lower()}")
            ) from e
        with self._lock:
            self._items[kind] = items
        self.events.publish(ITEMS_CHANGED, kind=kind)

    # Queries

    @property
    def stages(self) -> list[Stage]:
        """All stages of the project, in order."""
        with self._lock:
            return list(self._stages)

    def items(self, kind: ItemKind) -> list[Item]:
        """All items of one kind, in server order."""
        with self._lock:
            return list(self._items[kind])

    def stages_for(self, kind_or_type: ItemKind | StageType) -> list[Stage]:
        """Stages of one type sorted ascending by order."""
        stage_type = (
            kind_or_type.stage_type if isinstance(kind_or_type, ItemKind) else kind_or_type
        )
        with self._lock:
            return [s for s in self._stages if s.stage_type == stage_type]

    def get_stage(self, stage_id: str) -> Stage | None:
        """Get a stage by id."""
        with self._lock:
            return self._find_stage(stage_id)

    def get_item(self, kind: ItemKind, item_id: str) -> Item:
        """Get an item by id.

        Raises:
            ItemNotFoundError: if the item is not loaded
        """
        with self._lock:
            return self._find_item(kind, item_id)[1]

    def board(self, kind: ItemKind) -> Board:
        """Current board for one kind."""
        with self._lock:
            items = list(self._items[kind])
            stages = list(self._stages)
        return group_by_stage(kind, items, stages, self.item_order)

    def is_pending(self, kind: ItemKind, item_id: str) -> bool:
        """Whether a move of this item is awaiting the server."""
        with self._lock:
            return self._move_key(kind, item_id) in self._pending

    def effective_placement(self, kind: ItemKind, item_id: str) -> Placement:
        """Where the item will be once its in-flight move lands.

        Raises:
            ItemNotFoundError: if the item is not loaded
        """
        with self._lock:
            pending = self._pending.get(self._move_key(kind, item_id))
            if pending is not None:
                return pending.target
            return self._find_item(kind, item_id)[1].placement

    def effective_stage_ids(self, stage_type: StageType) -> list[str]:
        """Stage ids of one type in the order the last issued reorder requested."""
        with self._lock:
            pending = self._pending.get(self._reorder_key(stage_type))
            if pending is not None:
                return list(pending.target)
            return [s.id for s in self.stages_for(stage_type)]

    def neighbor_placement(
        self, kind: ItemKind, placement: Placement, delta: int
    ) -> Placement | None:
        """The column `delta` steps away on the board, unassigned being last.

        Pass `effective_placement` so repeated steps build on a move still
        in flight. Returns None past either edge.
        """
        columns: list[Placement] = [Assigned(s.id) for s in self.stages_for(kind)]
        columns.append(UNASSIGNED)
        try:
            index = columns.index(placement)
        except ValueError:
            index = len(columns) - 1
        target = index + delta
        if target < 0 or target >= len(columns):
            return None
        return columns[target]

    # Item moves

    def move_item(
        self,
        kind: ItemKind,
        item_id: str,
        target: Placement | str | None,
    ) -> Item:
        """
        Move an item to a stage, or to the unassigned bucket.

        Args:
            kind: Kind of the item
            item_id: Item to move
            target: Placement, stage id, or None to unassign

        Returns:
            The server's version of the item; the unchanged item for a no-op
            or a superseded request.

        Raises:
            ItemNotFoundError: item not loaded
            InvalidMoveError: target stage unknown or of another stage type
            OperationFailedError: the server call failed. If an earlier move
                of the same item was accepted meanwhile, the local copy
                already shows it.
        """
        placement = as_placement(target)
        key = self._move_key(kind, item_id)

        with self._lock:
            _, item = self._find_item(kind, item_id)
            if isinstance(placement, Assigned):
                stage = self._find_stage(placement.stage_id)
                if stage is None:
                    raise InvalidMoveError(f"Unknown stage: {placement.stage_id}")
                if stage.stage_type != kind.stage_type:
                    raise InvalidMoveError(
                        f"Stage {stage.id} is a {stage.stage_type.value} stage, "
                        f"not {kind.stage_type.value}"
                    )

            pending = self._pending.get(key)
            effective = pending.target if pending else item.placement
            if placement == effective:
                logger.debug("move_item: %s %s already at %s", kind.value, item_id, placement)
                return item

            token = self._issue(key, placement)

        logger.info("Moving %s %s: %s -> %s", kind.value, item_id, item.placement, placement)
        try:
            updated = self.repository.move_item(kind, item_id, placement.stage_id_or_none)
        except ApiClientError as e:
            with self._lock:
                latest, held = self._reject(key, token)
                if not latest:
                    logger.debug("Ignoring failure of superseded move: %s %s", kind.value, item_id)
                    return self._loaded_item(kind, item_id, item)
                if held is not None:
                    logger.info(
                        "Keeping accepted earlier move: %s %s at %s",
                        kind.value,
                        item_id,
                        held.placement,
                    )
                    self._replace_item(kind, held)
            if held is not None:
                self.events.publish(ITEMS_CHANGED, kind=kind)
            logger.warning("Move failed: %s %s: %s", kind.value, item_id, e)
            raise OperationFailedError(
                _failure_message(e, f"Failed to move {kind.label}")
            ) from e

        with self._lock:
            if not self._accept(key, token, updated):
                logger.debug("Holding superseded move response: %s %s", kind.value, item_id)
                return self._loaded_item(kind, item_id, updated)
            self._replace_item(kind, updated)

        logger.info("Moved %s %s to %s", kind.value, item_id, updated.placement)
        self.events.publish(ITEMS_CHANGED, kind=kind)
        return updated

    # Stage reordering

    def reorder_stages(self, stage_type: StageType, ordered_stage_ids: list[str]) -> list[Stage]:
        """
        Apply a new order to all stages of one type.

        Args:
            stage_type: Type whose stages are reordered
            ordered_stage_ids: Every stage id of that type, in the new order

        Returns:
            Stages of `stage_type` after the operation.

        Raises:
            InvalidReorderError: ids do not match the stages of that type
            OperationFailedError: the server call failed
        """
        key = self._reorder_key(stage_type)
        sequence = tuple(ordered_stage_ids)

        with self._lock:
            current = tuple(s.id for s in self.stages_for(stage_type))
            if len(set(sequence)) != len(sequence) or set(sequence) != set(current):
                raise InvalidReorderError(
                    f"Reorder must list each {stage_type.value} stage exactly once"
                )

            pending = self._pending.get(key)
            effective = pending.target if pending else current
            if sequence == effective:
                logger.debug("reorder_stages: %s order unchanged", stage_type.value)
                return self.stages_for(stage_type)

            token = self._issue(key, sequence)

        stage_orders = renumber(list(sequence))
        logger.info("Reordering %s stages: %s", stage_type.value, list(sequence))
        try:
            stages = self.repository.reorder_stages(stage_orders)
        except ApiClientError as e:
            with self._lock:
                latest, held = self._reject(key, token)
                if not latest:
                    logger.debug("Ignoring failure of superseded reorder: %s", stage_type.value)
                    return self.stages_for(stage_type)
                if held is not None:
                    logger.info("Keeping accepted earlier reorder: %s", stage_type.value)
                    self._stages = sort_stages(held)
            if held is not None:
                self.events.publish(STAGES_CHANGED, stage_type=stage_type)
            logger.warning("Reorder failed: %s: %s", stage_type.value, e)
            raise OperationFailedError(_failure_message(e, "Failed to reorder stages")) from e

        with self._lock:
            if not self._accept(key, token, stages):
                logger.debug("Holding superseded reorder response: %s", stage_type.value)
                return self.stages_for(stage_type)
            self._stages = sort_stages(stages)
            result = self.stages_for(stage_type)

        self.events.publish(STAGES_CHANGED, stage_type=stage_type)
        return result

    def move_stage(self, stage_id: str, target_stage_id: str, side: InsertSide) -> list[Stage]:
        """Drop one stage header before or after another of the same type."""
        with self._lock:
            stage = self._find_stage(stage_id)
            target = self._find_stage(target_stage_id)
            if stage is None or target is None:
                raise InvalidReorderError("Unknown stage")
            if stage.stage_type != target.stage_type:
                raise InvalidReorderError("Stages of different types cannot be reordered together")
            if stage.id == target.id:
                raise InvalidReorderError("A stage cannot be dropped on itself")

            sequence = self.effective_stage_ids(stage.stage_type)

        new_sequence = move_in_sequence(sequence, stage_id, target_stage_id, side)
        return self.reorder_stages(stage.stage_type, new_sequence)

    def shift_stage(self, stage_id: str, delta: int) -> list[Stage]:
        """Move a stage one or more positions left (negative) or right.

        Positions count from the last requested order, so repeated shifts
        compose while an earlier reorder is still in flight.
        """
        stage = self.get_stage(stage_id)
        if stage is None:
            raise InvalidReorderError(f"Unknown stage: {stage_id}")
        ids = self.effective_stage_ids(stage.stage_type)
        index = ids.index(stage_id)
        target_index = max(0, min(index + delta, len(ids) - 1))
        if target_index == index:
            return self.stages_for(stage.stage_type)
        side = InsertSide.BEFORE if delta < 0 else InsertSide.AFTER
        return self.move_stage(stage_id, ids[target_index], side)

    # Internals

    @staticmethod
    def _move_key(kind: ItemKind, item_id: str) -> tuple[str, str]:
        return (kind.value, item_id)

    @staticmethod
    def _reorder_key(stage_type: StageType) -> tuple[str, str]:
        return ("stages", stage_type.value)

    def _issue(self, key: tuple[str, str], target: Any) -> int:
        """Record a new request for `key`, superseding any earlier one."""
        self._next_token += 1
        if key in self._pending:
            logger.debug("Superseding in-flight request for %s", key)
        self._pending[key] = _Pending(self._next_token, target)
        return self._next_token

    def _accept(self, key: tuple[str, str], token: int, result: Any) -> bool:
        """Record a successful response. Returns whether to apply it now."""
        pending = self._pending.get(key)
        if pending is not None and pending.token != token:
            # A newer request is in flight
            held = self._confirmed.get(key)
            if held is None or held.token < token:
                self._confirmed[key] = _Confirmed(token, result)
            return False
        if token <= self._applied.get(key, 0):
            return False
        if pending is not None:
            del self._pending[key]
        self._confirmed.pop(key, None)
        self._applied[key] = token
        return True

    def _reject(self, key: tuple[str, str], token: int) -> tuple[bool, Any]:
        """Record a failed response.

        Returns whether `token` was the latest request, and the held response
        of an earlier accepted request that should be applied instead.
        """
        pending = self._pending.get(key)
        if pending is None or pending.token != token:
            return False, None
        del self._pending[key]
        held = self._confirmed.pop(key, None)
        if held is None or held.token <= self._applied.get(key, 0):
            return True, None
        self._applied[key] = held.token
        return True, held.result

    def _replace_item(self, kind: ItemKind, item: Item) -> None:
        try:
            index, _ = self._find_item(kind, item.id)
        except ItemNotFoundError:
            # Dropped by a refetch while the request was in flight
            logger.debug("Moved %s %s no longer loaded", kind.value, item.id)
            return
        self._items[kind][index] = item

    def _loaded_item(self, kind: ItemKind, item_id: str, default: Item) -> Item:
        try:
            return self._find_item(kind, item_id)[1]
        except ItemNotFoundError:
            return default

    def _find_item(self, kind: ItemKind, item_id: str) -> tuple[int, Item]:
        for index, item in enumerate(self._items[kind]):
            if item.id == item_id:
                return index, item
        raise ItemNotFoundError(f"Unknown {kind.label}: {item_id}")

    def _find_stage(self, stage_id: str) -> Stage | None:
        for stage in self._stages:
            if stage.id == stage_id:
                return stage
        return None
