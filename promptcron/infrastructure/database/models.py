"""Database models for promptcron.

Type-safe dataclasses representing Job and JobExecution records.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class RunStatus(str, Enum):
    """Job.last_run_status values."""

    SUCCESS = "success"
    FAILED = "failed"
    RUNNING = "running"


class ExecutionStatus(str, Enum):
    """JobExecution.status values."""

    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"


class ExecutionTrigger(str, Enum):
    """What caused an execution attempt."""

    SCHEDULED = "scheduled"
    MANUAL = "manual"
    RETRY = "retry"


@dataclass
class Job:
    """Represents a recurring prompt job in the jobs table.

    Run state and aggregates are written only by the executor. retry_count
    is incremented only by the retry coordinator and reset on success.
    """

    id: str
    name: str
    prompt: str
    schedule: str
    system_prompt: Optional[str] = None
    enabled: bool = True
    max_turns: int = 10
    last_run_at: Optional[str] = None
    next_run_at: Optional[str] = None
    last_run_status: Optional[RunStatus] = None
    last_run_error: Optional[str] = None
    last_run_duration: Optional[int] = None
    total_runs: int = 0
    success_count: int = 0
    failure_count: int = 0
    retry_count: int = 0
    max_retries: int = 3
    auto_retry: bool = True
    created_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class JobExecution:
    """Represents one immutable execution attempt in the job_executions table."""

    id: str
    job_id: str
    started_at: str
    completed_at: str
    status: ExecutionStatus
    trigger: ExecutionTrigger
    duration_ms: int
    response: Any = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None
    api_latency_ms: Optional[int] = None
    tools_executed: int = 0
    created_at: Optional[str] = None
