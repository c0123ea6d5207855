"""Retry coordinator for promptcron.

Decides, after a failed execution, whether a job gets another automatic
attempt and arms a one-shot trigger for it.

Retry states of a job (overlaid on last_run_status/retry_count):

    IDLE --failure--> FAILED_ELIGIBLE --...--> FAILED_EXHAUSTED
      ^                     |                        |
      +------success--------+--------success---------+
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from promptcron.core.errors import PersistenceFailure, TriggerRegistryFailure
from promptcron.core.logging import logger
from promptcron.core.retry_config import DEFAULT_RETRY_POLICY, RetryPolicy
from promptcron.infrastructure.database.models import Job
from promptcron.infrastructure.database.repositories.jobs import JobRepository
from promptcron.infrastructure.scheduling.trigger_registry import TriggerRegistry


class RetryState(str, Enum):
    IDLE = "idle"
    FAILED_ELIGIBLE = "failed_eligible"
    FAILED_EXHAUSTED = "failed_exhausted"


def retry_state(job: Job) -> RetryState:
    """Retry state of a job from its retry_count and max_retries."""
    if job.retry_count <= 0:
        return RetryState.IDLE
    if job.retry_count >= job.max_retries:
        return RetryState.FAILED_EXHAUSTED
    return RetryState.FAILED_ELIGIBLE


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of one retry evaluation.

    reason is one of: scheduled, auto_retry_disabled, retries_exhausted,
    persistence_failed, trigger_failed.
    """

    job_id: str
    scheduled: bool
    reason: str
    retry_count: int
    delay_minutes: Optional[int] = None
    fire_at: Optional[datetime] = None


class RetryCoordinator:
    """Applies the retry policy to failed executions.

    Never raises: store and trigger failures become a "no retry" decision,
    so the caller's original error is what gets reported.
    """

    def __init__(
        self,
        job_repository: JobRepository,
        trigger_registry: TriggerRegistry,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
    ):
        self._jobs = job_repository
        self._triggers = trigger_registry
        self._policy = policy

    def maybe_schedule_retry(self, job: Job) -> RetryDecision:
        """Schedule a retry for a job whose execution just failed.

        Args:
            job: Job as loaded before the failed attempt

        Returns:
            RetryDecision describing what was (or was not) armed
        """
        if not job.auto_retry:
            logger.info("retry_skipped", job_id=job.id, reason="auto_retry_disabled")
            return RetryDecision(job.id, False, "auto_retry_disabled", job.retry_count)

        if job.retry_count >= job.max_retries:
            logger.info(
                "retry_skipped",
                job_id=job.id,
                reason="retries_exhausted",
                retry_count=job.retry_count,
                max_retries=job.max_retries,
            )
            return RetryDecision(job.id, False, "retries_exhausted", job.retry_count)

        try:
            new_count = self._jobs.increment_retry_count(job.id)
        except PersistenceFailure as e:
            logger.error("retry_count_not_incremented", job_id=job.id, error=str(e))
            return RetryDecision(job.id, False, "persistence_failed", job.retry_count)

        if new_count is None:
            # A concurrent attempt spent the last retry first.
            logger.info("retry_skipped", job_id=job.id, reason="retries_exhausted", race=True)
            return RetryDecision(job.id, False, "retries_exhausted", job.max_retries)

        job.retry_count = new_count
        delay = self._policy.delay_minutes(new_count - 1)

        try:
            fire_at = self._triggers.schedule_retry(job.id, delay)
        except TriggerRegistryFailure as e:
            logger.error("retry_not_armed", job_id=job.id, retry_count=new_count, error=str(e))
            return RetryDecision(job.id, False, "trigger_failed", new_count, delay)

        logger.info(
            "retry_decision",
            job_id=job.id,
            retry_count=new_count,
            max_retries=job.max_retries,
            delay_minutes=delay,
            state=retry_state(job).value,
        )
        return RetryDecision(job.id, True, "scheduled", new_count, delay, fire_at)
