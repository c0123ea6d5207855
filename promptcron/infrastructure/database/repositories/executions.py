"""Execution Store repository for promptcron.

Append-only log of execution attempts. Records are inserted once and never
updated or deleted here.
"""

from typing import Any, Dict, List

from promptcron.core.errors import PersistenceFailure
from promptcron.core.logging import logger
from promptcron.infrastructure.database.models import ExecutionStatus, ExecutionTrigger, JobExecution
from promptcron.infrastructure.database.repositories.base import BaseRepository


class ExecutionRepository(BaseRepository[JobExecution]):
    """Repository for the job_executions table."""

    def create_execution(self, execution: JobExecution) -> None:
        """Insert one execution record.

        Raises:
            PersistenceFailure: If the insert fails
        """
        data = {
            "id": execution.id,
            "job_id": execution.job_id,
            "started_at": execution.started_at,
            "completed_at": execution.completed_at,
            "status": execution.status.value,
            "trigger": execution.trigger.value,
            "response": execution.response,
            "error_message": execution.error_message,
            "error_type": execution.error_type,
            "duration_ms": execution.duration_ms,
            "api_latency_ms": execution.api_latency_ms,
            "tools_executed": execution.tools_executed,
            "created_at": execution.completed_at,
        }

        try:
            self.db.table(self.table_name()).insert(data).execute()
        except Exception as e:
            logger.error(
                "execution_record_create_failed",
                execution_id=execution.id,
                job_id=execution.job_id,
                error=str(e),
            )
            raise PersistenceFailure("create_execution", str(e)) from e

        logger.info(
            "execution_record_created",
            execution_id=execution.id,
            job_id=execution.job_id,
            status=execution.status.value,
        )

    def list_for_job(self, job_id: str, limit: int = 20) -> List[JobExecution]:
        """List a job's most recent executions, newest start time first.

        Raises:
            PersistenceFailure: If the query fails
        """
        try:
            result = (
                self.db.table(self.table_name())
                .select("*")
                .eq("job_id", job_id)
                .order("started_at", desc=True)
                .limit(limit)
                .execute()
            )
        except Exception as e:
            logger.error("execution_list_failed", job_id=job_id, error=str(e))
            raise PersistenceFailure("list_executions", str(e)) from e

        return [self._row_to_model(row) for row in result.data or []]

    def _row_to_model(self, row: Dict[str, Any]) -> JobExecution:
        return JobExecution(
            id=row["id"],
            job_id=row["job_id"],
            started_at=row["started_at"],
            completed_at=row["completed_at"],
            status=ExecutionStatus(row["status"]),
            trigger=ExecutionTrigger(row.get("trigger") or ExecutionTrigger.SCHEDULED.value),
            duration_ms=row.get("duration_ms") or 0,
            response=row.get("response"),
            error_message=row.get("error_message"),
            error_type=row.get("error_type"),
            api_latency_ms=row.get("api_latency_ms"),
            tools_executed=row.get("tools_executed") or 0,
            created_at=row.get("created_at"),
        )
