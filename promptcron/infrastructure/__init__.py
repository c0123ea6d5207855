"""Infrastructure modules for promptcron.

- Database: Supabase client wrapper and Job/Execution repositories
- Scheduling: EventBridge trigger registry
"""

from promptcron.infrastructure.database import (
    ExecutionRepository,
    Job,
    JobExecution,
    JobRepository,
    SupabaseClient,
)
from promptcron.infrastructure.scheduling import TriggerRegistry

__all__ = [
    "SupabaseClient",
    "Job",
    "JobExecution",
    "JobRepository",
    "ExecutionRepository",
    "TriggerRegistry",
]
