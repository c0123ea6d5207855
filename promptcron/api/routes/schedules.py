"""Schedule routes for promptcron: trigger management and cron previews."""

import asyncio
from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Query
from fastapi.responses import JSONResponse

from promptcron.api.dependencies import get_app_services
from promptcron.container import Services
from promptcron.core.errors import InvalidScheduleError
from promptcron.core.schedules import handle_schedule_event
from promptcron.utils.scheduling import describe_schedule, to_external_trigger_expression, upcoming_runs

router = APIRouter(tags=["Schedules"])


@router.post("/schedules")
async def manage_schedule(
    payload: Dict[str, Any] = Body(...),
    services: Services = Depends(get_app_services),
):
    """Create, update, delete or retry a job's trigger.

    - **action**: create | update | delete | retry
    - **jobId**: Job ID (required)
    - **schedule**: 5-field cron expression (create/update)
    - **enabled**: Whether the recurring trigger fires (default true)
    - **retryDelayMinutes**: Delay before a retry fires (retry, default 30)
    """
    status_code, body = await asyncio.to_thread(handle_schedule_event, payload, services.triggers)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/schedules/preview")
async def preview_schedule(
    schedule: str = Query(..., min_length=1),
    count: int = Query(5, ge=1, le=50),
):
    """Validate a cron expression and list its next runs (schedule builder)."""
    try:
        runs = upcoming_runs(schedule, count)
    except InvalidScheduleError as e:
        return JSONResponse(status_code=400, content={"success": False, "error": str(e)})

    return {
        "success": True,
        "data": {
            "schedule": schedule,
            "description": describe_schedule(schedule),
            "triggerExpression": to_external_trigger_expression(schedule),
            "upcomingRuns": [run.isoformat() for run in runs],
        },
    }
