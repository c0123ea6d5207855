"""Database module for promptcron.

Provides the Supabase client wrapper and repositories for the Job Store and
Execution Store.
"""

from promptcron.infrastructure.database.client import SupabaseClient
from promptcron.infrastructure.database.models import (
    ExecutionStatus,
    ExecutionTrigger,
    Job,
    JobExecution,
    RunStatus,
)
from promptcron.infrastructure.database.repositories import (
    BaseRepository,
    ExecutionRepository,
    JobRepository,
)

__all__ = [
    "SupabaseClient",
    "Job",
    "JobExecution",
    "RunStatus",
    "ExecutionStatus",
    "ExecutionTrigger",
    "BaseRepository",
    "JobRepository",
    "ExecutionRepository",
]
