"""Repository protocol for project board backends."""

from typing import Protocol

from ..models import Item, ItemKind, Stage, StageOrder


class BoardRepositoryProtocol(Protocol):
    """Interface to the system of record for one project's boards.

    The board controller never writes anything except an item's stage and
    stage ordering, so that is all this protocol exposes. Implementations
    raise `ApiClientError` (or a subclass) when a call fails.
    """

    def get_stages(self) -> list[Stage]:
        """Load all stages of the project, of every stage type.

        Returns:
            Stages ordered ascending by `order`.
        """
        ...

    def get_items(self, kind: ItemKind) -> list[Item]:
        """Load all items of one kind.

        Args:
            kind: Tasks, incidents or resource requests

        Returns:
            Items in server order, each carrying its current stage id.
        """
        ...

    def move_item(self, kind: ItemKind, item_id: str, stage_id: str | None) -> Item:
        """Persist a new stage for an item.

        Args:
            kind: Kind of the item
            item_id: The item identifier
            stage_id: Target stage, or None to unassign

        Returns:
            The server's representation of the updated item.
        """
        ...

    def reorder_stages(self, stage_orders: list[StageOrder]) -> list[Stage]:
        """Persist new stage positions.

        Args:
            stage_orders: Complete `{stageId, order}` set for one stage type

        Returns:
            The full, updated stage list of the project.
        """
        ...

    def close(self) -> None:
        """Release connections held by the backend."""
        ...
