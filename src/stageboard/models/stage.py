"""Stage domain model."""

from enum import Enum

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

DEFAULT_STAGE_COLOR = "#6366F1"


class StageType(str, Enum):
    """Which board a stage belongs to."""

    TASK = "TASK"
    INCIDENT = "INCIDENT"
    RESOURCE = "RESOURCE"


class Stage(BaseModel):
    """A named, ordered column on one board of a project."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str
    name: str
    color: str = DEFAULT_STAGE_COLOR
    order: int = 0
    stage_type: StageType = Field(
        default=StageType.TASK,
        validation_alias=AliasChoices("stageType", "stage_type"),
    )
    item_count: int | None = None  # From the server's _count block, if any

    @field_validator("color", mode="before")
    @classmethod
    def default_color(cls, v: str | None) -> str:
        """Null colors fall back to the default stage color."""
        return v or DEFAULT_STAGE_COLOR

    @classmethod
    def from_api(cls, data: dict) -> "Stage":
        """Create a Stage from an API record."""
        counts = data.get("_count") or {}
        item_count = None
        if counts:
            item_count = sum(v for v in counts.values() if isinstance(v, int))
        return cls.model_validate({**data, "item_count": item_count})

    def with_order(self, order: int) -> "Stage":
        """Copy of this stage at a new position."""
        return self.model_copy(update={"order": order})


class StageOrder(BaseModel):
    """A single `{stageId, order}` entry of a reorder request."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    stage_id: str = Field(alias="stageId")
    order: int

    def to_api(self) -> dict:
        """Serialize with the server's camelCase keys."""
        return self.model_dump(by_alias=True)


def sort_stages(stages: list[Stage]) -> list[Stage]:
    """Sort stages ascending by order, stable for equal orders."""
    return sorted(stages, key=lambda s: s.order)
