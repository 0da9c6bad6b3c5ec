"""Repository layer for data access."""

from .factory import create_repository
from .http import HttpBoardRepository
from .memory import InMemoryBoardRepository
from .protocol import BoardRepositoryProtocol

__all__ = [
    "BoardRepositoryProtocol",
    "HttpBoardRepository",
    "InMemoryBoardRepository",
    "create_repository",
]
