"""Error taxonomy for promptcron.

Every failure the core can report is a PromptCronError subclass. ``error_type``
is the short name persisted on failed JobExecution records.
"""

from typing import List, Optional


class PromptCronError(Exception):
    """Base class for all promptcron errors."""

    error_type = "PromptCronError"


class ConfigurationError(PromptCronError):
    """Required configuration is missing or malformed."""

    error_type = "ConfigurationError"

    def __init__(self, message: str, missing: Optional[List[str]] = None):
        super().__init__(message)
        self.missing = missing or []


class InvalidScheduleError(PromptCronError, ValueError):
    """A cron expression could not be parsed or never fires."""

    error_type = "InvalidScheduleError"

    def __init__(self, schedule: str, reason: str):
        super().__init__(f"Invalid schedule '{schedule}': {reason}")
        self.schedule = schedule
        self.reason = reason


class JobNotFoundError(PromptCronError, LookupError):
    """Execution was requested for a job that does not exist."""

    error_type = "JobNotFoundError"

    def __init__(self, job_id: str):
        super().__init__(f"Job {job_id} not found")
        self.job_id = job_id


class ExternalCallFailure(PromptCronError):
    """The completion service failed or answered with a non-2xx status."""

    error_type = "ExternalCallFailure"

    def __init__(self, message: str, status_code: Optional[int] = None, error_type: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        if error_type:
            self.error_type = error_type


class CompletionTimeoutError(PromptCronError, TimeoutError):
    """The completion call exceeded its hard deadline and was cancelled."""

    error_type = "Timeout"

    def __init__(self, timeout_seconds: float):
        super().__init__(f"Completion API timeout after {timeout_seconds:g} seconds")
        self.timeout_seconds = timeout_seconds


class PersistenceFailure(PromptCronError):
    """A Job Store or Execution Store operation failed."""

    error_type = "PersistenceFailure"

    def __init__(self, operation: str, message: str):
        super().__init__(f"{operation} failed: {message}")
        self.operation = operation


class TriggerRegistryFailure(PromptCronError):
    """The external scheduling facility rejected a trigger operation."""

    error_type = "TriggerRegistryFailure"

    def __init__(self, operation: str, name: str, message: str):
        super().__init__(f"{operation} '{name}' failed: {message}")
        self.operation = operation
        self.name = name
