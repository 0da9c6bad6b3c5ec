"""Shared fixtures: a two-stage task board with one incident stage."""

from unittest.mock import MagicMock

import pytest

from stageboard.models import Incident, Stage, StageType, Task
from stageboard.repositories import InMemoryBoardRepository
from stageboard.services import BoardController, EventBus


@pytest.fixture
def stages() -> list[Stage]:
    """S1 and S2 task stages, deliberately listed out of order, plus one incident stage."""
    return [
        Stage(id="S2", name="Doing", order=1),
        Stage(id="S1", name="Todo", order=0),
        Stage(id="I1", name="Reported", order=0, stage_type=StageType.INCIDENT),
    ]


@pytest.fixture
def items() -> list:
    return [
        Task(id="1", title="One", stage_id="S1"),
        Task(id="2", title="Two", stage_id="S1"),
        Task(id="3", title="Three", stage_id=None),
        Incident(id="i1", title="Outage", stage_id="I1", severity="HIGH"),
    ]


@pytest.fixture
def repo(stages, items) -> InMemoryBoardRepository:
    return InMemoryBoardRepository(stages, items)


@pytest.fixture
def spy_repo(repo) -> MagicMock:
    """Repository spy: real in-memory behaviour, recorded calls."""
    return MagicMock(wraps=repo)


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def controller(spy_repo, events) -> BoardController:
    """Controller with the board already loaded; load calls are reset."""
    controller = BoardController(spy_repo, events=events)
    controller.load()
    spy_repo.reset_mock()
    return controller
