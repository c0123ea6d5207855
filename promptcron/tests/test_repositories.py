"""Unit tests for the Supabase repositories with a mocked client."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from promptcron.core.errors import ConfigurationError, PersistenceFailure
from promptcron.infrastructure.database import SupabaseClient
from promptcron.infrastructure.database.models import (
    ExecutionStatus,
    ExecutionTrigger,
    JobExecution,
    RunStatus,
)
from promptcron.infrastructure.database.repositories import ExecutionRepository, JobRepository

JOB_ROW = {
    "id": "job-1",
    "name": "Daily digest",
    "prompt": "Summarize today's news",
    "schedule": "0 9 * * *",
    "system_prompt": None,
    "enabled": True,
    "max_turns": 5,
    "last_run_status": "failed",
    "retry_count": 1,
    "max_retries": 0,
    "auto_retry": False,
    "total_runs": 4,
}


@pytest.fixture
def supabase():
    return MagicMock()


@pytest.fixture
def jobs(supabase):
    return JobRepository(SupabaseClient(None, None, client=supabase), "jobs")


@pytest.fixture
def executions(supabase):
    return ExecutionRepository(SupabaseClient(None, None, client=supabase), "job_executions")


class TestSupabaseClient:
    """Test the client wrapper."""

    def test_unconfigured_client_raises(self):
        """Test missing credentials raise ConfigurationError on first use."""
        wrapper = SupabaseClient(None, None)

        assert wrapper.is_configured() is False
        with pytest.raises(ConfigurationError):
            _ = wrapper.client


class TestJobRepository:
    """Test Job Store operations."""

    def test_get_job_maps_row(self, jobs, supabase):
        """Test a row is converted to a Job."""
        supabase.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [JOB_ROW]

        job = jobs.get_job("job-1")

        supabase.table.assert_called_with("jobs")
        assert job.id == "job-1"
        assert job.max_turns == 5
        assert job.last_run_status is RunStatus.FAILED
        assert job.retry_count == 1
        assert job.max_retries == 0
        assert job.auto_retry is False
        assert job.total_runs == 4
        assert job.success_count == 0

    def test_get_job_missing(self, jobs, supabase):
        """Test no rows returns None."""
        supabase.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []

        assert jobs.get_job("missing") is None

    def test_get_job_error(self, jobs, supabase):
        """Test query errors raise PersistenceFailure."""
        supabase.table.return_value.select.return_value.eq.return_value.execute.side_effect = RuntimeError("down")

        with pytest.raises(PersistenceFailure):
            jobs.get_job("job-1")

    def test_mark_running(self, jobs, supabase):
        """Test the job is flagged running with its start time."""
        jobs.mark_running("job-1", "2024-01-15T09:00:00+00:00")

        update = supabase.table.return_value.update.call_args[0][0]
        assert update["last_run_status"] == "running"
        assert update["last_run_at"] == "2024-01-15T09:00:00+00:00"
        supabase.table.return_value.update.return_value.eq.assert_called_with("id", "job-1")

    def test_record_success_uses_atomic_function(self, jobs, supabase):
        """Test success goes through the counter function and resets retries."""
        jobs.record_success("job-1", "2024-01-15T09:00:02+00:00", 2000, "2024-01-16T09:00:00+00:00")

        name, params = supabase.rpc.call_args[0]
        assert name == "promptcron_record_job_outcome"
        assert params["p_table"] == "jobs"
        assert params["p_status"] == "success"
        assert params["p_reset_retry"] is True
        assert params["p_error"] is None
        assert params["p_next_run_at"] == "2024-01-16T09:00:00+00:00"

    def test_record_failure_keeps_retries(self, jobs, supabase):
        """Test failure records the error and leaves retry_count alone."""
        jobs.record_failure("job-1", "2024-01-15T09:00:02+00:00", 2000, "boom")

        _, params = supabase.rpc.call_args[0]
        assert params["p_status"] == "failed"
        assert params["p_error"] == "boom"
        assert params["p_reset_retry"] is False
        assert params["p_next_run_at"] is None

    def test_record_outcome_error(self, jobs, supabase):
        """Test RPC errors raise PersistenceFailure."""
        supabase.rpc.return_value.execute.side_effect = RuntimeError("down")

        with pytest.raises(PersistenceFailure):
            jobs.record_failure("job-1", "2024-01-15T09:00:02+00:00", 2000, "boom")

    @pytest.mark.parametrize("data,expected", [(2, 2), ([3], 3), ([{"promptcron_increment_retry_count": 1}], 1), (None, None), ([], None)])
    def test_increment_retry_count(self, jobs, supabase, data, expected):
        """Test the new count is read from any RPC result shape."""
        supabase.rpc.return_value.execute.return_value.data = data

        assert jobs.increment_retry_count("job-1") == expected
        supabase.rpc.assert_called_with(
            "promptcron_increment_retry_count", {"p_table": "jobs", "p_job_id": "job-1"}
        )


class TestExecutionRepository:
    """Test Execution Store operations."""

    def test_create_execution_inserts_row(self, executions, supabase):
        """Test the record is inserted with enum values."""
        execution = JobExecution(
            id="exec_1",
            job_id="job-1",
            started_at="2024-01-15T09:00:00+00:00",
            completed_at="2024-01-15T09:05:00+00:00",
            status=ExecutionStatus.TIMEOUT,
            trigger=ExecutionTrigger.RETRY,
            duration_ms=300000,
            error_message="Completion API timeout after 300 seconds",
            error_type="Timeout",
        )

        executions.create_execution(execution)

        supabase.table.assert_called_with("job_executions")
        row = supabase.table.return_value.insert.call_args[0][0]
        assert row["status"] == "timeout"
        assert row["trigger"] == "retry"
        assert row["error_type"] == "Timeout"
        assert row["duration_ms"] == 300000

    def test_create_execution_error(self, executions, supabase):
        """Test insert errors raise PersistenceFailure."""
        supabase.table.return_value.insert.return_value.execute.side_effect = RuntimeError("down")

        with pytest.raises(PersistenceFailure):
            executions.create_execution(
                JobExecution("exec_1", "job-1", "t0", "t1", ExecutionStatus.SUCCESS, ExecutionTrigger.MANUAL, 10)
            )

    def test_list_for_job_orders_newest_first(self, executions, supabase):
        """Test listing filters by job and orders by started_at desc."""
        query = supabase.table.return_value.select.return_value.eq.return_value
        query.order.return_value.limit.return_value.execute.return_value.data = [
            {
                "id": "exec_2",
                "job_id": "job-1",
                "started_at": "2024-01-15T10:00:00+00:00",
                "completed_at": "2024-01-15T10:00:01+00:00",
                "status": "success",
                "trigger": "manual",
                "duration_ms": 1000,
                "tools_executed": 2,
            }
        ]

        result = executions.list_for_job("job-1", limit=5)

        supabase.table.return_value.select.return_value.eq.assert_called_with("job_id", "job-1")
        query.order.assert_called_with("started_at", desc=True)
        query.order.return_value.limit.assert_called_with(5)
        assert result[0].status is ExecutionStatus.SUCCESS
        assert result[0].trigger is ExecutionTrigger.MANUAL
        assert result[0].tools_executed == 2


class TestMigration:
    """Test the SQL migration that backs the repositories."""

    MIGRATION = Path(__file__).resolve().parents[2] / "supabase" / "migrations" / "0001_promptcron.sql"

    @pytest.mark.parametrize("function", ["promptcron_record_job_outcome", "promptcron_increment_retry_count"])
    def test_functions_restricted_to_service_role(self, function):
        """Test client roles cannot call the table-parameterized functions."""
        sql = " ".join(self.MIGRATION.read_text().split())

        assert f"revoke execute on function {function}(" in sql
        assert "from public, anon, authenticated;" in sql
        assert f"grant execute on function {function}(" in sql
