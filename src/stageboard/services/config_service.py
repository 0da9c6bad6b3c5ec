"""Loading of stageboard.yml."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..models import BoardConfig, StageboardConfig

logger = logging.getLogger(__name__)


class ConfigService:
    """Reads stageboard.yml once and keeps the result.

    A broken file never stops the app: the defaults are used and the problem
    is kept in `config_error` so the UI or CLI can show it.
    """

    CONFIG_FILE = "stageboard.yml"

    def __init__(self, project_root: Path) -> None:
        self.project_root = project_root
        self._config: StageboardConfig | None = None
        self.config_error: str | None = None

    @property
    def config_path(self) -> Path:
        return self.project_root / self.CONFIG_FILE

    @property
    def has_config_error(self) -> bool:
        return self.config_error is not None

    def get_config(self) -> StageboardConfig:
        if self._config is None:
            self.config_error = None
            self._config = self._read()
        return self._config

    def get_board_config(self) -> BoardConfig:
        return self.get_config().board

    def reload(self) -> None:
        """Forget the cached config; the next access reads the file again."""
        self._config = None
        self.config_error = None

    def _fallback(self, message: str) -> StageboardConfig:
        self.config_error = message
        logger.warning("%s; using defaults", message)
        return StageboardConfig.default()

    def _read(self) -> StageboardConfig:
        path = self.config_path
        if not path.is_file():
            logger.debug("No %s in %s", self.CONFIG_FILE, self.project_root)
            return StageboardConfig.default()

        try:
            data = yaml.safe_load(path.read_text())
        except yaml.YAMLError as e:
            return self._fallback(f"Invalid YAML in {self.CONFIG_FILE}: {e}")
        except OSError as e:
            return self._fallback(f"Error reading {self.CONFIG_FILE}: {e}")

        if data is None:
            return self._fallback(f"{self.CONFIG_FILE} is empty")
        if not isinstance(data, dict):
            return self._fallback(f"Invalid {self.CONFIG_FILE}: expected a mapping at top level")

        try:
            config = StageboardConfig.model_validate(data)
        except ValidationError as e:
            return self._fallback(f"Invalid {self.CONFIG_FILE}: {e}")

        logger.info("Loaded %s (item order: %s)", path, config.board.item_order.value)
        return config
