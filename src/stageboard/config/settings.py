"""Application settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..models import ItemKind, ItemOrder


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_prefix="STAGEBOARD_")

    api_url: str | None = Field(
        default=None,
        description="Backend root URL, e.g. https://erp.example.com",
    )

    api_token: str | None = Field(
        default=None,
        description="Bearer token sent with every API request",
    )

    project_id: str | None = Field(
        default=None,
        description="Project whose boards are shown",
    )

    timeout: float = Field(
        default=30.0,
        description="HTTP timeout in seconds",
    )

    project_root: Path = Field(
        default=Path(),
        description="Directory containing stageboard.yml",
    )

    kind: ItemKind | None = Field(
        default=None,
        description="Board shown first (overrides stageboard.yml)",
    )

    item_order: ItemOrder | None = Field(
        default=None,
        description="Ordering inside columns (overrides stageboard.yml)",
    )

    demo: bool = Field(
        default=False,
        description="Use built-in sample data instead of the API",
    )

    verbose: int = Field(
        default=0,
        description="Verbosity level (0=off, 1=INFO, 2+=DEBUG)",
    )

    log_file: Path | None = Field(
        default=None,
        description="Optional path to write logs to file",
    )
