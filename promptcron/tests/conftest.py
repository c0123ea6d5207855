"""Shared fixtures: in-memory stores, trigger registry and completion client."""

import dataclasses
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from promptcron.container import Services
from promptcron.core.errors import PersistenceFailure, TriggerRegistryFailure
from promptcron.core.execution import JobExecutor, RetryCoordinator
from promptcron.infrastructure.database.models import Job, JobExecution, RunStatus
from promptcron.utils.scheduling import check_external_compatible, next_run

START = datetime(2024, 1, 15, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeJobRepository:
    """Job Store kept in a dict, applying updates the way the SQL functions do."""

    def __init__(self):
        self.jobs: Dict[str, Job] = {}
        self.failing: set = set()
        self.calls: List[Tuple[str, str]] = []

    def add(self, job: Job) -> Job:
        self.jobs[job.id] = job
        return job

    def _check(self, operation: str, job_id: str) -> None:
        self.calls.append((operation, job_id))
        if operation in self.failing:
            raise PersistenceFailure(operation, "store unavailable")

    def get_job(self, job_id: str) -> Optional[Job]:
        self._check("get_job", job_id)
        job = self.jobs.get(job_id)
        return dataclasses.replace(job) if job else None

    def mark_running(self, job_id: str, started_at: str) -> None:
        self._check("mark_running", job_id)
        job = self.jobs[job_id]
        job.last_run_status = RunStatus.RUNNING
        job.last_run_at = started_at

    def record_success(self, job_id: str, completed_at: str, duration_ms: int, next_run_at: Optional[str]) -> None:
        self._check("record_success", job_id)
        job = self.jobs[job_id]
        job.last_run_status = RunStatus.SUCCESS
        job.last_run_at = completed_at
        job.last_run_duration = duration_ms
        job.last_run_error = None
        job.total_runs += 1
        job.success_count += 1
        job.retry_count = 0
        if next_run_at is not None:
            job.next_run_at = next_run_at

    def record_failure(self, job_id: str, completed_at: str, duration_ms: int, error_message: str) -> None:
        self._check("record_failure", job_id)
        job = self.jobs[job_id]
        job.last_run_status = RunStatus.FAILED
        job.last_run_at = completed_at
        job.last_run_duration = duration_ms
        job.last_run_error = error_message
        job.total_runs += 1
        job.failure_count += 1

    def increment_retry_count(self, job_id: str) -> Optional[int]:
        self._check("increment_retry_count", job_id)
        job = self.jobs.get(job_id)
        if job is None or job.retry_count >= job.max_retries:
            return None
        job.retry_count += 1
        return job.retry_count


class FakeExecutionRepository:
    """Append-only execution log in a list."""

    def __init__(self):
        self.records: List[JobExecution] = []
        self.fail = False

    def create_execution(self, execution: JobExecution) -> None:
        if self.fail:
            raise PersistenceFailure("create_execution", "store unavailable")
        self.records.append(execution)

    def list_for_job(self, job_id: str, limit: int = 20) -> List[JobExecution]:
        if self.fail:
            raise PersistenceFailure("list_executions", "store unavailable")
        matching = [r for r in self.records if r.job_id == job_id]
        return sorted(matching, key=lambda r: r.started_at, reverse=True)[:limit]


class FakeTriggerRegistry:
    """Records trigger operations instead of calling EventBridge."""

    def __init__(self, clock: FakeClock):
        self.clock = clock
        self.rules: Dict[str, Dict[str, Any]] = {}
        self.upserts: List[Tuple[str, str, bool]] = []
        self.removed: List[str] = []
        self.retries: List[Tuple[str, int, datetime]] = []
        self.fail_upsert = False
        self.fail_retry = False

    def upsert(self, job_id: str, schedule: str, enabled: bool) -> datetime:
        check_external_compatible(schedule)
        next_run_at = next_run(schedule, self.clock())
        if self.fail_upsert:
            raise TriggerRegistryFailure("upsert", f"promptcron-job-{job_id}", "throttled")
        self.upserts.append((job_id, schedule, enabled))
        self.rules[job_id] = {"schedule": schedule, "enabled": enabled}
        return next_run_at

    def remove(self, job_id: str) -> None:
        self.removed.append(job_id)
        self.rules.pop(job_id, None)

    def schedule_retry(self, job_id: str, delay_minutes: int) -> datetime:
        if self.fail_retry:
            raise TriggerRegistryFailure("schedule_retry", f"promptcron-retry-{job_id}", "throttled")
        fire_at = self.clock() + timedelta(minutes=delay_minutes)
        self.retries.append((job_id, delay_minutes, fire_at))
        return fire_at


class FakeCompletionClient:
    """Returns queued outcomes; an Exception in the queue is raised."""

    timeout_seconds = 300.0

    def __init__(self, *outcomes: Any):
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def queue(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    async def complete(self, prompt: str, system_prompt: Optional[str] = None, max_turns: int = 10) -> Any:
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "max_turns": max_turns})
        outcome = self.outcomes.pop(0) if self.outcomes else {"content": "ok"}
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome

    async def ping(self) -> Dict[str, Any]:
        return {"status": "healthy", "http_status": 200}


def make_job(job_id: str = "job-1", **overrides: Any) -> Job:
    fields = {
        "id": job_id,
        "name": "Daily digest",
        "prompt": "Summarize today's news",
        "schedule": "0 9 * * *",
        "system_prompt": "Be brief.",
    }
    fields.update(overrides)
    return Job(**fields)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def job_repo() -> FakeJobRepository:
    return FakeJobRepository()


@pytest.fixture
def execution_repo() -> FakeExecutionRepository:
    return FakeExecutionRepository()


@pytest.fixture
def triggers(clock) -> FakeTriggerRegistry:
    return FakeTriggerRegistry(clock)


@pytest.fixture
def completion() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def retry_coordinator(job_repo, triggers) -> RetryCoordinator:
    return RetryCoordinator(job_repo, triggers)


@pytest.fixture
def executor(job_repo, execution_repo, completion, triggers, retry_coordinator, clock) -> JobExecutor:
    return JobExecutor(job_repo, execution_repo, completion, triggers, retry_coordinator, clock=clock)


@pytest.fixture
def services(job_repo, execution_repo, completion, triggers, retry_coordinator, executor) -> Services:
    return Services(
        jobs=job_repo,
        executions=execution_repo,
        completion=completion,
        triggers=triggers,
        retries=retry_coordinator,
        executor=executor,
    )


@pytest.fixture
def add_job(job_repo):
    """Store a job built from make_job(**overrides) and return it."""

    def _add(job_id: str = "job-1", **overrides: Any) -> Job:
        return job_repo.add(make_job(job_id, **overrides))

    return _add
