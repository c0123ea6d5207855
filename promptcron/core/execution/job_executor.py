"""Job executor for promptcron.

Runs one attempt of a job: loads it, calls the completion service under a hard
timeout, records the JobExecution, updates the job's run state and hands
failures to the retry coordinator.
"""

import asyncio
import time
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional, Union

import structlog

from promptcron.core.errors import InvalidScheduleError, JobNotFoundError, PersistenceFailure
from promptcron.core.execution.error_classifier import ErrorClassifier
from promptcron.core.execution.retry_coordinator import RetryCoordinator, RetryDecision
from promptcron.core.logging import logger
from promptcron.infrastructure.database.models import (
    ExecutionStatus,
    ExecutionTrigger,
    Job,
    JobExecution,
)
from promptcron.infrastructure.database.repositories.executions import ExecutionRepository
from promptcron.infrastructure.database.repositories.jobs import JobRepository
from promptcron.infrastructure.scheduling.trigger_registry import TriggerRegistry
from promptcron.integrations.completion.client import CompletionClient
from promptcron.utils.scheduling import next_run


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _elapsed_ms(since: float) -> int:
    return int((time.monotonic() - since) * 1000)


def _count_tools(response: Any) -> int:
    if isinstance(response, dict) and isinstance(response.get("toolsUsed"), list):
        return len(response["toolsUsed"])
    return 0


@dataclass
class ExecutionResult:
    """Outcome of JobExecutor.execute, shaped for the invocation entry point."""

    success: bool
    job_id: str
    trigger: ExecutionTrigger
    message: str
    execution_id: Optional[str] = None
    status: Optional[ExecutionStatus] = None
    response: Any = None
    error_type: Optional[str] = None
    duration_ms: Optional[int] = None
    skipped: bool = False
    retry: Optional[RetryDecision] = None

    @property
    def status_code(self) -> int:
        return 200 if self.success else 500

    def to_payload(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "executionId": self.execution_id,
            "response": self.response,
            "message": self.message,
        }


class JobExecutor:
    """Executes jobs against the completion service.

    Follows Single Responsibility Principle: owns the attempt lifecycle, while
    storage, triggers and retry policy are injected collaborators.

    Secondary steps (marking the job running, writing records, refreshing the
    recurring trigger, arming retries) are best-effort: their failures are
    logged and never replace the attempt's own outcome.
    """

    def __init__(
        self,
        job_repository: JobRepository,
        execution_repository: ExecutionRepository,
        completion_client: CompletionClient,
        trigger_registry: TriggerRegistry,
        retry_coordinator: RetryCoordinator,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._jobs = job_repository
        self._executions = execution_repository
        self._completion = completion_client
        self._triggers = trigger_registry
        self._retries = retry_coordinator
        self._clock = clock or _utcnow

    async def execute(
        self, job_id: str, trigger: Union[ExecutionTrigger, str] = ExecutionTrigger.SCHEDULED
    ) -> ExecutionResult:
        """Run one attempt of a job.

        Args:
            job_id: Job ID
            trigger: scheduled, manual or retry

        Returns:
            ExecutionResult (never raises for job, store or service failures)
        """
        trigger = ExecutionTrigger(trigger)
        with structlog.contextvars.bound_contextvars(job_id=job_id, trigger=trigger.value):
            return await self._execute(job_id, trigger)

    async def _execute(self, job_id: str, trigger: ExecutionTrigger) -> ExecutionResult:
        try:
            job = await asyncio.to_thread(self._jobs.get_job, job_id)
        except PersistenceFailure as e:
            logger.error("job_load_failed", error=str(e))
            return ExecutionResult(False, job_id, trigger, str(e), error_type=e.error_type)

        if job is None:
            not_found = JobNotFoundError(job_id)
            logger.error("job_not_found")
            return ExecutionResult(False, job_id, trigger, str(not_found), error_type=not_found.error_type)

        if trigger is ExecutionTrigger.SCHEDULED and not job.enabled:
            logger.info("job_disabled_skipped")
            return ExecutionResult(
                True,
                job_id,
                trigger,
                f"Job {job_id} is disabled, skipping scheduled execution",
                skipped=True,
            )

        execution_id = f"exec_{uuid.uuid4().hex}"
        started_at = self._clock()
        started = time.monotonic()
        await self._best_effort("mark_running", self._jobs.mark_running, job_id, started_at.isoformat())

        logger.info("job_execution_started", execution_id=execution_id, max_turns=job.max_turns)

        api_started = time.monotonic()
        try:
            response = await self._completion.complete(job.prompt, job.system_prompt, job.max_turns)
        except Exception as e:
            return await self._handle_failure(job, trigger, execution_id, started_at, started, _elapsed_ms(api_started), e)

        return await self._handle_success(job, trigger, execution_id, started_at, started, _elapsed_ms(api_started), response)

    def _completed_at(self, started_at: datetime) -> datetime:
        return max(self._clock(), started_at)

    async def _handle_success(
        self,
        job: Job,
        trigger: ExecutionTrigger,
        execution_id: str,
        started_at: datetime,
        started: float,
        api_latency_ms: int,
        response: Any,
    ) -> ExecutionResult:
        completed_at = self._completed_at(started_at)
        duration_ms = _elapsed_ms(started)

        execution = JobExecution(
            id=execution_id,
            job_id=job.id,
            started_at=started_at.isoformat(),
            completed_at=completed_at.isoformat(),
            status=ExecutionStatus.SUCCESS,
            trigger=trigger,
            duration_ms=duration_ms,
            response=response,
            api_latency_ms=min(api_latency_ms, duration_ms),
            tools_executed=_count_tools(response),
        )
        await self._best_effort("create_execution", self._executions.create_execution, execution)

        next_run_at = await self._refresh_schedule(job, trigger, completed_at)
        await self._best_effort(
            "record_success",
            self._jobs.record_success,
            job.id,
            completed_at.isoformat(),
            duration_ms,
            next_run_at,
        )

        logger.info(
            "job_execution_succeeded",
            execution_id=execution_id,
            duration_ms=duration_ms,
            api_latency_ms=execution.api_latency_ms,
            next_run_at=next_run_at,
        )
        return ExecutionResult(
            True,
            job.id,
            trigger,
            f"Job {job.id} executed successfully in {duration_ms}ms",
            execution_id=execution_id,
            status=ExecutionStatus.SUCCESS,
            response=response,
            duration_ms=duration_ms,
        )

    async def _handle_failure(
        self,
        job: Job,
        trigger: ExecutionTrigger,
        execution_id: str,
        started_at: datetime,
        started: float,
        api_latency_ms: int,
        error: Exception,
    ) -> ExecutionResult:
        completed_at = self._completed_at(started_at)
        duration_ms = _elapsed_ms(started)
        status = ErrorClassifier.execution_status(error)
        error_type = ErrorClassifier.error_type(error)
        message = ErrorClassifier.describe(error)

        logger.error(
            "job_execution_failed",
            execution_id=execution_id,
            status=status.value,
            error_type=error_type,
            error=message,
            duration_ms=duration_ms,
        )

        execution = JobExecution(
            id=execution_id,
            job_id=job.id,
            started_at=started_at.isoformat(),
            completed_at=completed_at.isoformat(),
            status=status,
            trigger=trigger,
            duration_ms=duration_ms,
            error_message=message,
            error_type=error_type,
            api_latency_ms=min(api_latency_ms, duration_ms),
        )
        await self._best_effort("create_execution", self._executions.create_execution, execution)
        await self._best_effort(
            "record_failure",
            self._jobs.record_failure,
            job.id,
            completed_at.isoformat(),
            duration_ms,
            message,
        )
        decision = await self._best_effort("maybe_schedule_retry", self._retries.maybe_schedule_retry, job)

        return ExecutionResult(
            False,
            job.id,
            trigger,
            message,
            execution_id=execution_id,
            status=status,
            error_type=error_type,
            duration_ms=duration_ms,
            retry=decision,
        )

    async def _refresh_schedule(self, job: Job, trigger: ExecutionTrigger, completed_at: datetime) -> Optional[str]:
        """Compute next_run_at and, outside retry runs, refresh the recurring trigger."""
        try:
            next_run_at = next_run(job.schedule, completed_at)
        except InvalidScheduleError as e:
            logger.warning("next_run_not_computed", schedule=job.schedule, error=str(e))
            return None

        if trigger is not ExecutionTrigger.RETRY:
            await self._best_effort("refresh_trigger", self._triggers.upsert, job.id, job.schedule, job.enabled)

        return next_run_at.isoformat()

    async def _best_effort(self, step: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking secondary step in a thread; log and swallow its failure."""
        try:
            return await asyncio.to_thread(fn, *args)
        except Exception as e:
            logger.error("secondary_step_failed", step=step, error=str(e), error_type=type(e).__name__)
            return None
