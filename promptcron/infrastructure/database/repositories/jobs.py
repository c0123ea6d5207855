"""Job Store repository for promptcron.

Reads job definitions and applies the executor's run-state updates.

Counter updates go through Postgres functions (see
supabase/migrations/0001_promptcron.sql) so that concurrent executions of the
same job add to the stored values instead of overwriting a cached snapshot.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from promptcron.core.errors import PersistenceFailure
from promptcron.core.logging import logger
from promptcron.infrastructure.database.models import Job, RunStatus
from promptcron.infrastructure.database.repositories.base import BaseRepository


class JobRepository(BaseRepository[Job]):
    """Repository for the jobs table."""

    def get_job(self, job_id: str) -> Optional[Job]:
        """Get a single job by ID.

        Args:
            job_id: Job ID

        Returns:
            Job or None if not found

        Raises:
            PersistenceFailure: If the query fails
        """
        try:
            result = self.db.table(self.table_name()).select("*").eq("id", job_id).execute()
        except Exception as e:
            logger.error("job_fetch_failed", job_id=job_id, error=str(e))
            raise PersistenceFailure("get_job", str(e)) from e

        if not result.data:
            return None

        return self._row_to_model(result.data[0])

    def mark_running(self, job_id: str, started_at: str) -> None:
        """Set last_run_status=running and last_run_at for a starting attempt."""
        try:
            self.db.table(self.table_name()).update(
                {
                    "last_run_status": RunStatus.RUNNING.value,
                    "last_run_at": started_at,
                    "updated_at": datetime.now(timezone.utc).isoformat(),
                }
            ).eq("id", job_id).execute()
        except Exception as e:
            logger.error("job_mark_running_failed", job_id=job_id, error=str(e))
            raise PersistenceFailure("mark_running", str(e)) from e

    def record_success(
        self,
        job_id: str,
        completed_at: str,
        duration_ms: int,
        next_run_at: Optional[str],
    ) -> None:
        """Record a successful run.

        Increments total_runs and success_count, clears last_run_error and
        resets retry_count to 0. next_run_at is kept when None is given.
        """
        self._record_outcome(
            "record_success",
            {
                "p_job_id": job_id,
                "p_status": RunStatus.SUCCESS.value,
                "p_completed_at": completed_at,
                "p_duration_ms": duration_ms,
                "p_error": None,
                "p_next_run_at": next_run_at,
                "p_reset_retry": True,
            },
        )

    def record_failure(self, job_id: str, completed_at: str, duration_ms: int, error_message: str) -> None:
        """Record a failed run. Increments total_runs and failure_count."""
        self._record_outcome(
            "record_failure",
            {
                "p_job_id": job_id,
                "p_status": RunStatus.FAILED.value,
                "p_completed_at": completed_at,
                "p_duration_ms": duration_ms,
                "p_error": error_message,
                "p_next_run_at": None,
                "p_reset_retry": False,
            },
        )

    def increment_retry_count(self, job_id: str) -> Optional[int]:
        """Atomically increment retry_count while it is below max_retries.

        Args:
            job_id: Job ID

        Returns:
            The new retry_count, or None when the job is already at its cap
            (or no longer exists)

        Raises:
            PersistenceFailure: If the update fails
        """
        try:
            result = self.db.rpc(
                "promptcron_increment_retry_count",
                {"p_table": self.table_name(), "p_job_id": job_id},
            ).execute()
        except Exception as e:
            logger.error("job_retry_increment_failed", job_id=job_id, error=str(e))
            raise PersistenceFailure("increment_retry_count", str(e)) from e

        value = result.data
        if isinstance(value, list):
            value = value[0] if value else None
        if isinstance(value, dict):
            value = value.get("promptcron_increment_retry_count")
        return int(value) if value is not None else None

    def _record_outcome(self, operation: str, params: Dict[str, Any]) -> None:
        try:
            self.db.rpc(
                "promptcron_record_job_outcome",
                {"p_table": self.table_name(), **params},
            ).execute()
        except Exception as e:
            logger.error(f"job_{operation}_failed", job_id=params["p_job_id"], error=str(e))
            raise PersistenceFailure(operation, str(e)) from e

        logger.info("job_outcome_recorded", job_id=params["p_job_id"], status=params["p_status"])

    def _row_to_model(self, row: Dict[str, Any]) -> Job:
        """Convert database row to Job model.

        Args:
            row: Database row dict

        Returns:
            Job dataclass instance
        """
        status = row.get("last_run_status")
        return Job(
            id=row["id"],
            name=row["name"],
            prompt=row["prompt"],
            schedule=row["schedule"],
            system_prompt=row.get("system_prompt"),
            enabled=bool(row.get("enabled", True)),
            max_turns=row.get("max_turns") or 10,
            last_run_at=row.get("last_run_at"),
            next_run_at=row.get("next_run_at"),
            last_run_status=RunStatus(status) if status else None,
            last_run_error=row.get("last_run_error"),
            last_run_duration=row.get("last_run_duration"),
            total_runs=row.get("total_runs") or 0,
            success_count=row.get("success_count") or 0,
            failure_count=row.get("failure_count") or 0,
            retry_count=row.get("retry_count") or 0,
            max_retries=row.get("max_retries") if row.get("max_retries") is not None else 3,
            auto_retry=bool(row.get("auto_retry", True)),
            created_by=row.get("created_by"),
            created_at=row.get("created_at"),
            updated_at=row.get("updated_at"),
        )
