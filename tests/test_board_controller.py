"""Tests for BoardController: grouping, moves, reorders and request supersession."""

import threading
from unittest.mock import DEFAULT, MagicMock

import pytest

from stageboard.api import ApiClientError, ApiRejectedError
from stageboard.models import UNASSIGNED, Assigned, ItemKind, Stage, StageType, Task
from stageboard.repositories import InMemoryBoardRepository
from stageboard.services import (
    BOARD_REFRESHED,
    ITEMS_CHANGED,
    STAGES_CHANGED,
    BoardController,
    InsertSide,
    InvalidMoveError,
    InvalidReorderError,
    ItemNotFoundError,
    OperationFailedError,
)


def record(events, topic) -> list[dict]:
    """Collect the payloads published on a topic."""
    received: list[dict] = []
    events.subscribe(topic, lambda **payload: received.append(payload))
    return received


class TestLoad:
    """Tests for loading project state."""

    def test_load_sorts_stages(self, controller):
        assert [s.id for s in controller.stages_for(ItemKind.TASK)] == ["S1", "S2"]

    def test_load_fetches_every_kind(self, spy_repo, events):
        controller = BoardController(spy_repo, events=events)
        controller.load()
        fetched = {c.args[0] for c in spy_repo.get_items.call_args_list}
        assert fetched == set(ItemKind)

    def test_load_publishes_refresh(self, spy_repo, events):
        received = record(events, BOARD_REFRESHED)
        BoardController(spy_repo, events=events).load()
        assert received == [{}]

    def test_load_failure_keeps_state(self, controller, spy_repo):
        """A failed refetch leaves the previous working copy in place."""
        spy_repo.get_stages.side_effect = ApiClientError("Request failed: timeout")

        with pytest.raises(OperationFailedError) as exc_info:
            controller.load()

        assert exc_info.value.user_message == "Failed to load project board"
        assert len(controller.stages) == 3
        assert len(controller.items(ItemKind.TASK)) == 3

    def test_load_kind_uses_server_message(self, controller, spy_repo):
        spy_repo.get_items.side_effect = ApiRejectedError("x", 403, "Not a project member")
        with pytest.raises(OperationFailedError, match="Not a project member"):
            controller.load_kind(ItemKind.INCIDENT)

    def test_load_kind_publishes(self, controller, events):
        received = record(events, ITEMS_CHANGED)
        controller.load_kind(ItemKind.INCIDENT)
        assert received == [{"kind": ItemKind.INCIDENT}]

    def test_load_stages_publishes(self, controller, events):
        received = record(events, STAGES_CHANGED)
        controller.load_stages()
        assert received == [{"stage_type": None}]


class TestMoveItem:
    """Tests for move_item."""

    def test_reference_scenario(self, controller):
        """Moving 2 to S2 yields S1:[1], S2:[2], unassigned:[3]."""
        controller.move_item(ItemKind.TASK, "2", "S2")

        assert controller.board(ItemKind.TASK).as_mapping() == {
            Assigned("S1"): ["1"],
            Assigned("S2"): ["2"],
            UNASSIGNED: ["3"],
        }

    def test_sends_stage_id(self, controller, spy_repo):
        controller.move_item(ItemKind.TASK, "1", Assigned("S2"))
        spy_repo.move_item.assert_called_once_with(ItemKind.TASK, "1", "S2")

    def test_unassign_sends_null(self, controller, spy_repo):
        """None and UNASSIGNED both clear the stage."""
        controller.move_item(ItemKind.TASK, "1", None)
        controller.move_item(ItemKind.TASK, "2", UNASSIGNED)

        assert [c.args for c in spy_repo.move_item.call_args_list] == [
            (ItemKind.TASK, "1", None),
            (ItemKind.TASK, "2", None),
        ]
        assert controller.get_item(ItemKind.TASK, "1").placement == UNASSIGNED

    def test_assign_from_unassigned(self, controller):
        updated = controller.move_item(ItemKind.TASK, "3", "S2")
        assert updated.stage_id == "S2"
        assert controller.board(ItemKind.TASK).locate("3") == Assigned("S2")

    def test_noop_makes_no_request(self, controller, spy_repo, events):
        """Moving to the current stage performs no network call and changes nothing."""
        received = record(events, ITEMS_CHANGED)
        before = controller.items(ItemKind.TASK)

        result = controller.move_item(ItemKind.TASK, "1", "S1")
        controller.move_item(ItemKind.TASK, "3", None)

        spy_repo.move_item.assert_not_called()
        assert result is before[0]
        assert controller.items(ItemKind.TASK) == before
        assert received == []

    def test_replaces_item_with_server_response(self, controller, spy_repo):
        """The local item becomes exactly what the server returned."""
        spy_repo.move_item.side_effect = lambda kind, item_id, stage_id: Task(
            id=item_id, title="Renamed by server", stage_id=stage_id, status="IN_PROGRESS"
        )

        controller.move_item(ItemKind.TASK, "1", "S2")

        item = controller.get_item(ItemKind.TASK, "1")
        assert item.title == "Renamed by server"
        assert item.status == "IN_PROGRESS"

    def test_keeps_position_in_server_order(self, controller):
        """A moved item keeps its slot in the item list."""
        controller.move_item(ItemKind.TASK, "1", "S2")
        assert [i.id for i in controller.items(ItemKind.TASK)] == ["1", "2", "3"]

    def test_publishes_items_changed(self, controller, events):
        received = record(events, ITEMS_CHANGED)
        controller.move_item(ItemKind.TASK, "1", "S2")
        assert received == [{"kind": ItemKind.TASK}]

    def test_stage_of_other_type_rejected(self, controller, spy_repo):
        """A task cannot be moved into an incident stage."""
        with pytest.raises(InvalidMoveError):
            controller.move_item(ItemKind.TASK, "1", "I1")

        spy_repo.move_item.assert_not_called()
        assert controller.get_item(ItemKind.TASK, "1").stage_id == "S1"

    def test_unknown_stage_rejected(self, controller, spy_repo):
        with pytest.raises(InvalidMoveError):
            controller.move_item(ItemKind.TASK, "1", "nope")
        spy_repo.move_item.assert_not_called()

    def test_unknown_item(self, controller):
        with pytest.raises(ItemNotFoundError):
            controller.move_item(ItemKind.TASK, "404", "S2")

    def test_item_of_other_kind_not_found(self, controller):
        """Item ids are looked up within their own kind."""
        with pytest.raises(ItemNotFoundError):
            controller.move_item(ItemKind.TASK, "i1", "S2")


class TestMoveFailure:
    """Tests for failed moves."""

    def test_rollback_on_rejection(self, controller, spy_repo, events):
        """The stage after a failed attempt equals the stage before it."""
        received = record(events, ITEMS_CHANGED)
        spy_repo.move_item.side_effect = ApiRejectedError(
            "Invalid stage for this project", 400, "Invalid stage for this project"
        )

        with pytest.raises(OperationFailedError):
            controller.move_item(ItemKind.TASK, "2", "S2")

        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S1"
        assert received == []
        assert not controller.is_pending(ItemKind.TASK, "2")

    def test_server_message_verbatim(self, controller, spy_repo):
        spy_repo.move_item.side_effect = ApiRejectedError("HTTP 400", 400, "Stage is locked")

        with pytest.raises(OperationFailedError) as exc_info:
            controller.move_item(ItemKind.TASK, "2", "S2")

        assert exc_info.value.user_message == "Stage is locked"

    def test_transport_failure_uses_fallback(self, controller, spy_repo):
        spy_repo.move_item.side_effect = ApiClientError("Request failed: connection refused")

        with pytest.raises(OperationFailedError) as exc_info:
            controller.move_item(ItemKind.TASK, "2", "S2")

        assert exc_info.value.user_message == "Failed to move task"

    def test_retry_after_failure(self, controller, spy_repo):
        """No automatic retry; a second attempt goes through normally."""
        spy_repo.move_item.side_effect = [ApiClientError("down"), DEFAULT]

        with pytest.raises(OperationFailedError):
            controller.move_item(ItemKind.TASK, "2", "S2")
        controller.move_item(ItemKind.TASK, "2", "S2")

        assert spy_repo.move_item.call_count == 2
        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S2"


class TestMoveSupersession:
    """Tests for overlapping moves of the same item."""

    def test_latest_request_wins(self, controller, spy_repo, repo):
        """A response for a superseded move is discarded."""

        def move(kind, item_id, stage_id):
            result = repo.move_item(kind, item_id, stage_id)
            if stage_id == "S2":
                # The user moves the item again before this response arrives
                controller.move_item(kind, item_id, None)
            return result

        spy_repo.move_item.side_effect = move

        result = controller.move_item(ItemKind.TASK, "2", "S2")

        assert result.placement == UNASSIGNED
        assert controller.get_item(ItemKind.TASK, "2").placement == UNASSIGNED
        assert not controller.is_pending(ItemKind.TASK, "2")

    def test_superseded_failure_is_silent(self, controller, spy_repo, repo):
        """A failure of a superseded move is not reported."""

        def move(kind, item_id, stage_id):
            if stage_id == "S2":
                controller.move_item(kind, item_id, None)
                raise ApiClientError("Request failed: reset")
            return repo.move_item(kind, item_id, stage_id)

        spy_repo.move_item.side_effect = move

        result = controller.move_item(ItemKind.TASK, "2", "S2")

        assert result.placement == UNASSIGNED

    def test_repeat_of_pending_target_coalesces(self, controller, spy_repo, repo):
        """Repeating a move that is already in flight sends nothing new."""

        def move(kind, item_id, stage_id):
            assert controller.is_pending(kind, item_id)
            controller.move_item(kind, item_id, "S2")
            return repo.move_item(kind, item_id, stage_id)

        spy_repo.move_item.side_effect = move

        controller.move_item(ItemKind.TASK, "2", "S2")

        assert spy_repo.move_item.call_count == 1
        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S2"

    def test_moving_back_while_pending_is_sent(self, controller, spy_repo, repo):
        """Returning to the original stage while a move is pending is a real request."""

        def move(kind, item_id, stage_id):
            result = repo.move_item(kind, item_id, stage_id)
            if stage_id == "S2":
                controller.move_item(kind, item_id, "S1")
            return result

        spy_repo.move_item.side_effect = move

        controller.move_item(ItemKind.TASK, "2", "S2")

        assert [c.args[2] for c in spy_repo.move_item.call_args_list] == ["S2", "S1"]
        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S1"

    def test_other_items_are_independent(self, controller, spy_repo, repo):
        """Requests for different items never supersede each other."""

        def move(kind, item_id, stage_id):
            result = repo.move_item(kind, item_id, stage_id)
            if item_id == "1":
                controller.move_item(kind, "2", "S2")
            return result

        spy_repo.move_item.side_effect = move

        controller.move_item(ItemKind.TASK, "1", "S2")

        assert controller.get_item(ItemKind.TASK, "1").stage_id == "S2"
        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S2"



    def test_accepted_move_survives_failed_successor(self, controller, spy_repo, repo):
        """A move the server accepted stays visible when the newer move fails."""

        def move(kind, item_id, stage_id):
            if stage_id is None:
                raise ApiRejectedError("Stage is locked", 409, "Stage is locked")
            result = repo.move_item(kind, item_id, stage_id)
            with pytest.raises(OperationFailedError):
                controller.move_item(kind, item_id, None)
            return result

        spy_repo.move_item.side_effect = move

        controller.move_item(ItemKind.TASK, "2", "S2")

        assert next(i for i in repo.get_items(ItemKind.TASK) if i.id == "2").stage_id == "S2"
        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S2"

    def test_held_response_applied_when_latest_fails(self, controller, spy_repo, repo):
        """A success that arrives while a newer move is in flight is held, then applied on its failure."""
        second_sent = threading.Event()
        first_done = threading.Event()
        errors: list[OperationFailedError] = []

        def unassign():
            try:
                controller.move_item(ItemKind.TASK, "2", None)
            except OperationFailedError as e:
                errors.append(e)

        worker = threading.Thread(target=unassign)

        def move(kind, item_id, stage_id):
            if stage_id is None:
                second_sent.set()
                first_done.wait(timeout=5)
                raise ApiRejectedError("Stage is locked", 409, "Stage is locked")
            result = repo.move_item(kind, item_id, stage_id)
            worker.start()
            second_sent.wait(timeout=5)
            return result

        spy_repo.move_item.side_effect = move

        controller.move_item(ItemKind.TASK, "2", "S2")
        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S1"
        first_done.set()
        worker.join(timeout=5)

        assert [e.user_message for e in errors] == ["Stage is locked"]
        assert controller.get_item(ItemKind.TASK, "2").stage_id == "S2"
        assert not controller.is_pending(ItemKind.TASK, "2")


@pytest.fixture
def abc_controller() -> tuple[BoardController, MagicMock, InMemoryBoardRepository]:
    """Controller with task stages A, B, C and one incident stage."""
    repo = InMemoryBoardRepository(
        [
            Stage(id="A", name="A", order=0),
            Stage(id="B", name="B", order=1),
            Stage(id="C", name="C", order=2),
            Stage(id="X", name="X", order=0, stage_type=StageType.INCIDENT),
        ]
    )
    spy = MagicMock(wraps=repo)
    controller = BoardController(spy)
    controller.load()
    spy.reset_mock()
    return controller, spy, repo


def orders(stages) -> list[tuple[str, int]]:
    return [(s.id, s.order) for s in stages]


class TestReorderStages:
    """Tests for stage reordering."""

    def test_move_c_before_a(self, abc_controller):
        """[A,B,C] with C dropped before A becomes C:0, A:1, B:2."""
        controller, spy, _ = abc_controller

        result = controller.move_stage("C", "A", InsertSide.BEFORE)

        assert orders(result) == [("C", 0), ("A", 1), ("B", 2)]
        sent = spy.reorder_stages.call_args.args[0]
        assert [o.to_api() for o in sent] == [
            {"stageId": "C", "order": 0},
            {"stageId": "A", "order": 1},
            {"stageId": "B", "order": 2},
        ]

    def test_insert_after(self, abc_controller):
        controller, _, _ = abc_controller
        result = controller.move_stage("A", "B", InsertSide.AFTER)
        assert [s.id for s in result] == ["B", "A", "C"]

    def test_reference_scenario(self, controller):
        """S2 before S1 yields [S2:0, S1:1]."""
        result = controller.move_stage("S2", "S1", InsertSide.BEFORE)
        assert orders(result) == [("S2", 0), ("S1", 1)]
        assert orders(controller.stages_for(StageType.TASK)) == [("S2", 0), ("S1", 1)]

    def test_other_types_untouched(self, abc_controller):
        controller, spy, _ = abc_controller
        controller.reorder_stages(StageType.TASK, ["B", "C", "A"])

        sent_ids = {o.stage_id for o in spy.reorder_stages.call_args.args[0]}
        assert sent_ids == {"A", "B", "C"}
        assert orders(controller.stages_for(StageType.INCIDENT)) == [("X", 0)]

    def test_unchanged_order_is_noop(self, abc_controller):
        controller, spy, _ = abc_controller
        result = controller.reorder_stages(StageType.TASK, ["A", "B", "C"])
        spy.reorder_stages.assert_not_called()
        assert [s.id for s in result] == ["A", "B", "C"]

    def test_drop_in_place_is_noop(self, abc_controller):
        """Dropping A before B leaves the sequence as it was."""
        controller, spy, _ = abc_controller
        controller.move_stage("A", "B", InsertSide.BEFORE)
        spy.reorder_stages.assert_not_called()

    def test_incomplete_ids_rejected(self, abc_controller):
        controller, spy, _ = abc_controller
        with pytest.raises(InvalidReorderError):
            controller.reorder_stages(StageType.TASK, ["C", "A"])
        with pytest.raises(InvalidReorderError):
            controller.reorder_stages(StageType.TASK, ["C", "A", "A"])
        spy.reorder_stages.assert_not_called()

    def test_cross_type_rejected(self, abc_controller):
        controller, spy, _ = abc_controller
        with pytest.raises(InvalidReorderError):
            controller.move_stage("X", "A", InsertSide.BEFORE)
        with pytest.raises(InvalidReorderError):
            controller.reorder_stages(StageType.TASK, ["A", "B", "X"])
        spy.reorder_stages.assert_not_called()

    def test_drop_on_itself_rejected(self, abc_controller):
        controller, _, _ = abc_controller
        with pytest.raises(InvalidReorderError):
            controller.move_stage("A", "A", InsertSide.AFTER)

    def test_failure_keeps_stages(self, abc_controller):
        controller, spy, _ = abc_controller
        spy.reorder_stages.side_effect = ApiRejectedError("HTTP 500", 500, None)

        with pytest.raises(OperationFailedError) as exc_info:
            controller.move_stage("C", "A", InsertSide.BEFORE)

        assert exc_info.value.user_message == "Failed to reorder stages"
        assert orders(controller.stages_for(StageType.TASK)) == [("A", 0), ("B", 1), ("C", 2)]

    def test_publishes_stages_changed(self, abc_controller):
        controller, _, _ = abc_controller
        received = record(controller.events, STAGES_CHANGED)
        controller.move_stage("C", "A", InsertSide.BEFORE)
        assert received == [{"stage_type": StageType.TASK}]

    def test_local_list_is_server_response(self, abc_controller):
        """Stages are replaced by the server's list, not patched locally."""
        controller, spy, _ = abc_controller
        spy.reorder_stages.side_effect = lambda stage_orders: [
            Stage(id="C", name="C renamed", order=0),
            Stage(id="A", name="A", order=1),
            Stage(id="B", name="B", order=2),
            Stage(id="X", name="X", order=0, stage_type=StageType.INCIDENT),
        ]

        controller.move_stage("C", "A", InsertSide.BEFORE)

        assert controller.get_stage("C").name == "C renamed"

    def test_latest_reorder_wins(self, abc_controller):
        """A reorder issued while another is in flight decides the final order."""
        controller, spy, real = abc_controller

        def reorder(stage_orders):
            result = real.reorder_stages(stage_orders)
            if stage_orders[0].stage_id == "C":
                controller.reorder_stages(StageType.TASK, ["B", "A", "C"])
            return result

        spy.reorder_stages.side_effect = reorder

        controller.move_stage("C", "A", InsertSide.BEFORE)

        assert [s.id for s in controller.stages_for(StageType.TASK)] == ["B", "A", "C"]

    def test_move_stage_builds_on_pending_order(self, abc_controller):
        """A drop during an in-flight reorder is computed from the pending sequence."""
        controller, spy, real = abc_controller
        sent: list[list[str]] = []

        def reorder(stage_orders):
            sent.append([o.stage_id for o in stage_orders])
            result = real.reorder_stages(stage_orders)
            if len(sent) == 1:
                controller.move_stage("B", "C", InsertSide.AFTER)
            return result

        spy.reorder_stages.side_effect = reorder

        controller.move_stage("C", "A", InsertSide.BEFORE)

        assert sent == [["C", "A", "B"], ["C", "B", "A"]]
        assert [s.id for s in controller.stages_for(StageType.TASK)] == ["C", "B", "A"]



    def test_accepted_reorder_survives_failed_successor(self, abc_controller):
        """A reorder the server accepted stays visible when the newer reorder fails."""
        controller, spy, real = abc_controller

        def reorder(stage_orders):
            if stage_orders[0].stage_id == "B":
                raise ApiClientError("Request failed: reset")
            result = real.reorder_stages(stage_orders)
            with pytest.raises(OperationFailedError):
                controller.reorder_stages(StageType.TASK, ["B", "C", "A"])
            return result

        spy.reorder_stages.side_effect = reorder

        controller.move_stage("C", "A", InsertSide.BEFORE)

        assert [s.id for s in controller.stages_for(StageType.TASK)] == ["C", "A", "B"]


class TestShiftAndNeighbors:
    """Tests for keyboard helpers."""

    def test_shift_stage_left(self, controller):
        result = controller.shift_stage("S2", -1)
        assert [s.id for s in result] == ["S2", "S1"]

    def test_shift_stage_at_edge_is_noop(self, controller, spy_repo):
        controller.shift_stage("S1", -1)
        controller.shift_stage("S2", 1)
        spy_repo.reorder_stages.assert_not_called()

    def test_shift_unknown_stage(self, controller):
        with pytest.raises(InvalidReorderError):
            controller.shift_stage("nope", 1)

    def test_neighbor_placement(self, controller):
        kind = ItemKind.TASK
        assert controller.neighbor_placement(kind, Assigned("S1"), 1) == Assigned("S2")
        assert controller.neighbor_placement(kind, Assigned("S2"), 1) == UNASSIGNED
        assert controller.neighbor_placement(kind, UNASSIGNED, -1) == Assigned("S2")
        assert controller.neighbor_placement(kind, UNASSIGNED, 1) is None
        assert controller.neighbor_placement(kind, Assigned("S1"), -1) is None

    def test_repeated_shift_builds_on_pending_order(self, abc_controller):
        """Pressing shift twice moves the stage two places even while the first is in flight."""
        controller, spy, real = abc_controller
        sent: list[list[str]] = []

        def reorder(stage_orders):
            sent.append([o.stage_id for o in stage_orders])
            result = real.reorder_stages(stage_orders)
            if len(sent) == 1:
                controller.shift_stage("A", 1)
            return result

        spy.reorder_stages.side_effect = reorder

        controller.shift_stage("A", 1)

        assert sent == [["B", "A", "C"], ["B", "C", "A"]]
        assert [s.id for s in controller.stages_for(StageType.TASK)] == ["B", "C", "A"]

    def test_effective_placement_follows_pending_move(self, controller, spy_repo, repo):
        """Stepping an item right twice reaches the column after next."""
        kind = ItemKind.TASK
        targets: list = []

        def move(kind, item_id, stage_id):
            targets.append(stage_id)
            result = repo.move_item(kind, item_id, stage_id)
            if len(targets) == 1:
                assert controller.effective_placement(kind, item_id) == Assigned("S2")
                step = controller.neighbor_placement(
                    kind, controller.effective_placement(kind, item_id), 1
                )
                controller.move_item(kind, item_id, step)
            return result

        spy_repo.move_item.side_effect = move

        controller.move_item(kind, "1", "S2")

        assert targets == ["S2", None]
        assert controller.get_item(kind, "1").placement == UNASSIGNED
        assert controller.effective_placement(kind, "1") == UNASSIGNED
