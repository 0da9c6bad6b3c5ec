"""HTTP repository backed by the project REST API."""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import partial
from typing import TYPE_CHECKING, Any, TypeVar

from ..api import ApiClientError, ProjectApiClient
from ..models import Item, ItemKind, Stage, StageOrder, item_from_api, sort_stages

if TYPE_CHECKING:
    from ..config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _unwrap(data: dict[str, Any], key: str, expected: type) -> Any:
    """Pull the payload out of its response envelope."""
    value = data.get(key)
    if not isinstance(value, expected):
        raise ApiClientError(f"Unexpected response: missing '{key}'")
    return value


def _parse(parser: Callable[[dict[str, Any]], T], record: Any, what: str) -> T:
    """Parse one server record, reporting malformed ones as client errors."""
    if not isinstance(record, dict):
        raise ApiClientError(f"Unexpected response: {what} is not an object")
    try:
        return parser(record)
    except (KeyError, TypeError, ValueError) as e:
        raise ApiClientError(f"Unexpected response: invalid {what}: {e}") from e


class HttpBoardRepository:
    """Repository implementation over `ProjectApiClient`."""

    def __init__(self, client: ProjectApiClient) -> None:
        self.client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> HttpBoardRepository:
        """Create a repository from application settings."""
        if not settings.api_url or not settings.project_id:
            raise ValueError("An API URL and a project id are required")
        client = ProjectApiClient(
            settings.api_url,
            settings.project_id,
            token=settings.api_token,
            timeout=settings.timeout,
        )
        return cls(client)

    def close(self) -> None:
        """Close the underlying client."""
        self.client.close()

    def get_stages(self) -> list[Stage]:
        """Fetch all stages of the project."""
        data = self.client.get("stages")
        stages = [_parse(Stage.from_api, s, "stage") for s in _unwrap(data, "stages", list)]
        logger.debug("Loaded %d stages", len(stages))
        return sort_stages(stages)

    def get_items(self, kind: ItemKind) -> list[Item]:
        """Fetch all items of one kind."""
        data = self.client.get(kind.path_segment)
        records = _unwrap(data, kind.collection_key, list)
        items = [_parse(partial(item_from_api, kind), r, kind.label) for r in records]
        logger.debug("Loaded %d %s items", len(items), kind.value)
        return items

    def move_item(self, kind: ItemKind, item_id: str, stage_id: str | None) -> Item:
        """Move an item to a stage (or unassign it)."""
        data = self.client.post(
            f"{kind.path_segment}/{item_id}/move",
            json={"stageId": stage_id},
        )
        return _parse(partial(item_from_api, kind), _unwrap(data, kind.envelope_key, dict), kind.label)

    def reorder_stages(self, stage_orders: list[StageOrder]) -> list[Stage]:
        """Send a full stage ordering and return the updated stages."""
        data = self.client.post(
            "stages/reorder",
            json={"stageOrders": [o.to_api() for o in stage_orders]},
        )
        return sort_stages(
            [_parse(Stage.from_api, s, "stage") for s in _unwrap(data, "stages", list)]
        )
