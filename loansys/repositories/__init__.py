"""
Repository Layer

Data access over injectable storage backends, following the Repository
pattern for clean separation of concerns.
"""

from .storage import (
    JsonFileStorage,
    LoadResult,
    LoadStatus,
    MemoryStorage,
    SqliteStorage,
    StorageBackend,
)
from .base import BaseRepository
from .loan_repository import LoanRepository
from .user_repository import UserRepository

__all__ = [
    "StorageBackend",
    "MemoryStorage",
    "JsonFileStorage",
    "SqliteStorage",
    "LoadResult",
    "LoadStatus",
    "BaseRepository",
    "LoanRepository",
    "UserRepository",
]
