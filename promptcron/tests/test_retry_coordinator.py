"""Unit tests for RetryCoordinator."""

import dataclasses
from datetime import timedelta

from promptcron.core.execution import RetryState, retry_state
from promptcron.core.execution.retry_coordinator import RetryCoordinator
from promptcron.core.retry_config import RetryPolicy


class TestMaybeScheduleRetry:
    """Test retry decisions after a failed execution."""

    def test_first_failure_schedules_thirty_minutes(self, retry_coordinator, add_job, job_repo, triggers, clock):
        """Test first retry is armed 30 minutes out and counted."""
        job = add_job()

        decision = retry_coordinator.maybe_schedule_retry(job)

        assert decision.scheduled is True
        assert decision.reason == "scheduled"
        assert decision.retry_count == 1
        assert decision.delay_minutes == 30
        assert decision.fire_at == clock() + timedelta(minutes=30)
        assert job_repo.jobs["job-1"].retry_count == 1
        assert triggers.retries == [("job-1", 30, clock() + timedelta(minutes=30))]

    def test_backoff_doubles(self, retry_coordinator, add_job, triggers):
        """Test delays double with each counted retry."""
        job = add_job(max_retries=5)

        delays = [retry_coordinator.maybe_schedule_retry(job).delay_minutes for _ in range(5)]

        assert delays == [30, 60, 120, 240, 240]

    def test_retries_exhausted(self, retry_coordinator, add_job, job_repo, triggers):
        """Test no retry once retry_count reaches max_retries."""
        job = add_job(retry_count=3, max_retries=3)

        decision = retry_coordinator.maybe_schedule_retry(job)

        assert decision.scheduled is False
        assert decision.reason == "retries_exhausted"
        assert job_repo.jobs["job-1"].retry_count == 3
        assert triggers.retries == []

    def test_auto_retry_disabled(self, retry_coordinator, add_job, job_repo, triggers):
        """Test auto_retry=False never arms a retry or touches the count."""
        job = add_job(auto_retry=False)

        decision = retry_coordinator.maybe_schedule_retry(job)

        assert decision.reason == "auto_retry_disabled"
        assert ("increment_retry_count", "job-1") not in job_repo.calls
        assert triggers.retries == []

    def test_zero_max_retries(self, retry_coordinator, add_job, triggers):
        """Test max_retries=0 disables retries."""
        job = add_job(max_retries=0)

        assert retry_coordinator.maybe_schedule_retry(job).reason == "retries_exhausted"
        assert triggers.retries == []

    def test_concurrent_attempt_spent_last_retry(self, retry_coordinator, add_job, job_repo, triggers):
        """Test a stale snapshot below the cap still respects the stored count."""
        job = dataclasses.replace(add_job(retry_count=2, max_retries=3))
        job_repo.jobs["job-1"].retry_count = 3

        decision = retry_coordinator.maybe_schedule_retry(job)

        assert decision.scheduled is False
        assert decision.reason == "retries_exhausted"
        assert triggers.retries == []

    def test_increment_failure_returns_no_retry(self, retry_coordinator, add_job, job_repo, triggers):
        """Test a store failure yields persistence_failed without raising."""
        job = add_job()
        job_repo.failing.add("increment_retry_count")

        decision = retry_coordinator.maybe_schedule_retry(job)

        assert decision.scheduled is False
        assert decision.reason == "persistence_failed"
        assert triggers.retries == []

    def test_trigger_failure_keeps_count(self, retry_coordinator, add_job, job_repo, triggers):
        """Test arming failure leaves retry_count incremented."""
        job = add_job()
        triggers.fail_retry = True

        decision = retry_coordinator.maybe_schedule_retry(job)

        assert decision.scheduled is False
        assert decision.reason == "trigger_failed"
        assert decision.retry_count == 1
        assert job_repo.jobs["job-1"].retry_count == 1

    def test_custom_policy(self, job_repo, triggers, add_job):
        """Test the injected policy sets the delay."""
        coordinator = RetryCoordinator(job_repo, triggers, RetryPolicy(initial_delay_minutes=5))

        assert coordinator.maybe_schedule_retry(add_job()).delay_minutes == 5


class TestRetryState:
    """Test retry state derived from the job."""

    def test_states(self, add_job):
        """Test idle, eligible and exhausted states."""
        assert retry_state(add_job("a")) is RetryState.IDLE
        assert retry_state(add_job("b", retry_count=1)) is RetryState.FAILED_ELIGIBLE
        assert retry_state(add_job("c", retry_count=3)) is RetryState.FAILED_EXHAUSTED
