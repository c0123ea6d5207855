"""Error classifier for promptcron.

Maps a failed completion call to what gets persisted on the execution record.
"""

import asyncio

from promptcron.core.errors import PromptCronError
from promptcron.infrastructure.database.models import ExecutionStatus


class ErrorClassifier:
    """Classifies execution errors into status, type and message.

    Static methods for stateless classification. Every class of failure is
    retry-eligible; the classification only affects what is recorded.
    """

    @staticmethod
    def execution_status(error: BaseException) -> ExecutionStatus:
        """Return TIMEOUT for deadline expiry, FAILED for anything else."""
        if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
            return ExecutionStatus.TIMEOUT
        return ExecutionStatus.FAILED

    @staticmethod
    def error_type(error: BaseException) -> str:
        """Short type name stored as errorType (e.g. "Timeout", "HTTPStatusError")."""
        if isinstance(error, PromptCronError):
            return error.error_type
        return type(error).__name__

    @staticmethod
    def describe(error: BaseException) -> str:
        """Human-readable message, never empty."""
        message = str(error).strip()
        return message or type(error).__name__
