"""Generate command for creating a default stageboard.yml."""

import logging
from pathlib import Path

import yaml

from ..models import StageboardConfig
from ..services import ConfigService
from .output import error, info, success

logger = logging.getLogger(__name__)

# Header comments for generated file
CONFIG_HEADER = """\
# stageboard configuration
#
# project_id: Project opened when --project is not given
#
# board.item_order: Ordering of items inside a column
#   insertion - as returned by the server (default)
#   due_date  - earliest due date first, undated items last
#   priority  - critical/urgent first, then high, medium, low
#
# board.default_kind: Board shown at startup
#   task | incident | resource_request
#
# board.priorities: Display of priority and severity labels
#   id matches the label case-insensitively; aliases adds synonyms
#   color: Named color (green, red, etc.) or hex (#ff0000)

"""


def run_generate(project_root: Path) -> int:
    """
    Write stageboard.yml with default settings.

    Returns:
        Exit code (0 = success, 1 = error)
    """
    config_path = project_root / ConfigService.CONFIG_FILE
    if config_path.exists():
        info(f"{ConfigService.CONFIG_FILE} already exists at {config_path}")
        return 0

    data = StageboardConfig.default().model_dump(mode="json")
    try:
        project_root.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w") as f:
            f.write(CONFIG_HEADER)
            yaml.safe_dump(data, f, sort_keys=False, allow_unicode=True)
    except OSError as e:
        logger.error("Failed to write %s: %s", config_path, e)
        error(f"Failed to write {config_path}: {e}")
        return 1

    success(f"Created {config_path}")
    return 0
