"""Repository implementations for promptcron.

Implements Repository pattern with Dependency Inversion principle.
"""

from promptcron.infrastructure.database.repositories.base import BaseRepository
from promptcron.infrastructure.database.repositories.executions import ExecutionRepository
from promptcron.infrastructure.database.repositories.jobs import JobRepository

__all__ = [
    "BaseRepository",
    "ExecutionRepository",
    "JobRepository",
]
