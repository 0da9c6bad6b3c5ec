"""Configuration models for stageboard.yml."""

import re

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import ItemKind, ItemOrder

_PRIORITY_ID = re.compile(r"^[a-z][a-z0-9_]*$")
_HEX_COLOR = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


class PriorityConfig(BaseModel):
    """How one priority or severity label is drawn on a card.

    The server sends labels like `HIGH` or `URGENT`; they are matched
    against `id` and `aliases` without regard to case.
    """

    id: str
    label: str = Field(..., min_length=1)
    color: str = Field(default="white", description="Rich color name or hex code")
    symbol: str = "●"
    aliases: list[str] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if not _PRIORITY_ID.match(v):
            raise ValueError(
                f"Priority id '{v}' must be lowercase letters, digits or underscores"
            )
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if v.startswith("#") and not _HEX_COLOR.match(v):
            raise ValueError(f"Invalid hex color '{v}' (use #rgb or #rrggbb)")
        return v

    @field_validator("aliases")
    @classmethod
    def lowercase_aliases(cls, v: list[str]) -> list[str]:
        return [alias.lower() for alias in v]

    @property
    def keys(self) -> list[str]:
        """Every label this entry answers to."""
        return [self.id, *self.aliases]


class BoardConfig(BaseModel):
    """Board display configuration."""

    item_order: ItemOrder = ItemOrder.INSERTION
    default_kind: ItemKind = ItemKind.TASK
    priorities: list[PriorityConfig] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_priority_labels(self) -> "BoardConfig":
        """Each label may belong to one priority only."""
        owners: dict[str, str] = {}
        for priority in self.priorities:
            for key in priority.keys:
                if key in owners:
                    raise ValueError(
                        f"Priority label '{key}' is used by both '{owners[key]}' and '{priority.id}'"
                    )
                owners[key] = priority.id
        return self

    def get_priority(self, label: str | None) -> PriorityConfig | None:
        """Display settings for a server label, if configured."""
        if not label:
            return None
        key = label.lower()
        return next((p for p in self.priorities if key in p.keys), None)

    @classmethod
    def default(cls) -> "BoardConfig":
        """Insertion order and the server's four priority levels."""
        return cls(
            priorities=[
                PriorityConfig(id="low", label="Low", color="green"),
                PriorityConfig(id="medium", label="Medium", color="yellow", aliases=["normal"]),
                PriorityConfig(id="high", label="High", color="orange1"),
                PriorityConfig(id="critical", label="Critical", color="red", aliases=["urgent"]),
            ],
        )


class StageboardConfig(BaseModel):
    """Root of stageboard.yml."""

    version: int = 1
    project_id: str | None = Field(
        default=None, description="Project shown when none is given on the command line"
    )
    board: BoardConfig = Field(default_factory=BoardConfig.default)

    @classmethod
    def default(cls) -> "StageboardConfig":
        return cls(board=BoardConfig.default())
