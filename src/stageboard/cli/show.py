"""Print boards to stdout without starting the TUI."""

import logging

from ..config import Settings
from ..models import ItemKind
from ..repositories import create_repository
from ..services import BoardController, ConfigService, OperationFailedError
from .output import error, print_board

logger = logging.getLogger(__name__)


def run_print(settings: Settings) -> int:
    """
    Load the project and print one board, or all three.

    Returns:
        Exit code (0 = success, 1 = error)
    """
    config_service = ConfigService(settings.project_root)
    board_config = config_service.get_board_config()
    if config_service.has_config_error:
        error(config_service.config_error or "Invalid configuration")

    try:
        repository = create_repository(settings)
    except ValueError as e:
        error(str(e))
        return 1

    controller = BoardController(repository, settings.item_order or board_config.item_order)
    try:
        controller.load()
    except OperationFailedError as e:
        error(e.user_message)
        return 1
    finally:
        repository.close()

    kinds = [settings.kind] if settings.kind else list(ItemKind)
    for kind in kinds:
        print_board(controller.board(kind), board_config)
    return 0
