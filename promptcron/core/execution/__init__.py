"""Execution module for promptcron.

Provides the job executor, retry coordinator and error classification.
"""

from promptcron.core.execution.error_classifier import ErrorClassifier
from promptcron.core.execution.job_executor import ExecutionResult, JobExecutor
from promptcron.core.execution.retry_coordinator import (
    RetryCoordinator,
    RetryDecision,
    RetryState,
    retry_state,
)

__all__ = [
    "ErrorClassifier",
    "ExecutionResult",
    "JobExecutor",
    "RetryCoordinator",
    "RetryDecision",
    "RetryState",
    "retry_state",
]
