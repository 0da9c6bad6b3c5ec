"""Repository selection from settings."""

import logging

from ..config import Settings
from .http import HttpBoardRepository
from .memory import InMemoryBoardRepository
from .protocol import BoardRepositoryProtocol

logger = logging.getLogger(__name__)


def create_repository(settings: Settings) -> BoardRepositoryProtocol:
    """Demo data when asked for, the project API otherwise.

    Raises:
        ValueError: if the API is selected but not configured
    """
    if settings.demo:
        logger.info("Using built-in demo project")
        return InMemoryBoardRepository.demo()
    logger.info("Using project %s at %s", settings.project_id, settings.api_url)
    return HttpBoardRepository.from_settings(settings)
