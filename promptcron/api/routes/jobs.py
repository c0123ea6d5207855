"""Job routes for promptcron: manual runs, execution history and schedule previews."""

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from promptcron.api.dependencies import get_app_services
from promptcron.container import Services
from promptcron.core.errors import InvalidScheduleError, JobNotFoundError, PersistenceFailure
from promptcron.infrastructure.database.models import ExecutionTrigger, JobExecution
from promptcron.utils.scheduling import describe_schedule, to_external_trigger_expression, upcoming_runs

router = APIRouter(tags=["Jobs"])


def execution_to_dict(execution: JobExecution) -> Dict[str, Any]:
    """Serialize a JobExecution in the dashboard's camelCase shape."""
    return {
        "id": execution.id,
        "jobId": execution.job_id,
        "startedAt": execution.started_at,
        "completedAt": execution.completed_at,
        "status": execution.status.value,
        "trigger": execution.trigger.value,
        "durationMs": execution.duration_ms,
        "response": execution.response,
        "errorMessage": execution.error_message,
        "errorType": execution.error_type,
        "apiLatencyMs": execution.api_latency_ms,
        "toolsExecuted": execution.tools_executed,
    }


@router.post("/jobs/{job_id}/run")
async def run_job(job_id: str, services: Services = Depends(get_app_services)):
    """Run a job now (trigger ``manual``).

    Disabled jobs still run when triggered manually. Returns 404 for an
    unknown job and 500 when the attempt fails.
    """
    result = await services.executor.execute(job_id, ExecutionTrigger.MANUAL)

    status_code = result.status_code
    if result.error_type == JobNotFoundError.error_type:
        status_code = 404

    return JSONResponse(status_code=status_code, content=result.to_payload())


@router.get("/jobs/{job_id}/executions")
async def list_executions(
    job_id: str,
    limit: int = Query(20, ge=1, le=100),
    services: Services = Depends(get_app_services),
):
    """List a job's most recent executions, newest first."""
    try:
        executions = await asyncio.to_thread(services.executions.list_for_job, job_id, limit=limit)
    except PersistenceFailure as e:
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "data": [execution_to_dict(execution) for execution in executions],
        "count": len(executions),
    }


@router.get("/jobs/{job_id}/schedule/preview")
async def preview_job_schedule(
    job_id: str,
    count: int = Query(5, ge=1, le=50),
    services: Services = Depends(get_app_services),
):
    """Describe a job's schedule and list its next runs."""
    try:
        job = await asyncio.to_thread(services.jobs.get_job, job_id)
    except PersistenceFailure as e:
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})

    if job is None:
        return JSONResponse(status_code=404, content={"success": False, "error": str(JobNotFoundError(job_id))})

    try:
        runs = upcoming_runs(job.schedule, count)
    except InvalidScheduleError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "data": {
            "jobId": job.id,
            "schedule": job.schedule,
            "enabled": job.enabled,
            "description": describe_schedule(job.schedule),
            "triggerExpression": to_external_trigger_expression(job.schedule),
            "upcomingRuns": [run.isoformat() for run in runs],
        },
    }
