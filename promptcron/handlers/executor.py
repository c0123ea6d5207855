"""Executor entry point for promptcron.

Invoked by recurring rules, one-shot retry schedules and manual runs with an
event of the form ``{"jobId": ..., "trigger": "scheduled" | "manual" | "retry"}``.
"""

import asyncio
import json
from typing import Any, Dict, Optional, Tuple

from promptcron.container import Services, get_services
from promptcron.core.errors import PromptCronError
from promptcron.core.logging import logger
from promptcron.infrastructure.database.models import ExecutionTrigger


def parse_event(event: Any) -> Tuple[Optional[str], ExecutionTrigger]:
    """Extract jobId and trigger from an invocation event.

    Accepts the payload at the top level, under ``detail`` (EventBridge
    envelope) or as a JSON string ``body`` (HTTP invocation). An unknown or
    missing trigger is treated as scheduled.
    """
    if not isinstance(event, dict):
        return None, ExecutionTrigger.SCHEDULED

    payload: Dict[str, Any] = event
    if isinstance(event.get("detail"), dict):
        payload = event["detail"]
    elif isinstance(event.get("body"), str):
        try:
            body = json.loads(event["body"])
        except ValueError:
            body = None
        if isinstance(body, dict):
            payload = body

    job_id = payload.get("jobId")
    if not isinstance(job_id, str) or not job_id.strip():
        job_id = None

    try:
        trigger = ExecutionTrigger(payload.get("trigger") or ExecutionTrigger.SCHEDULED)
    except ValueError:
        logger.warning("unknown_trigger_defaulted", trigger=payload.get("trigger"))
        trigger = ExecutionTrigger.SCHEDULED

    return job_id, trigger


async def handle_execute_event(event: Any, services: Services) -> Tuple[int, Dict[str, Any]]:
    """Run the job named by an event.

    Returns:
        (status_code, body): 400 without a jobId, 500 on failure, 200 otherwise
    """
    job_id, trigger = parse_event(event)
    if job_id is None:
        logger.warning("execute_event_rejected", reason="missing_job_id")
        return 400, {"success": False, "message": "Missing jobId"}

    result = await services.executor.execute(job_id, trigger)
    body = result.to_payload()
    if result.skipped:
        body["skipped"] = True
    return result.status_code, body


def lambda_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """AWS Lambda handler."""
    try:
        status_code, body = asyncio.run(handle_execute_event(event, get_services()))
    except PromptCronError as e:
        logger.error("execute_event_failed", error=str(e), error_type=e.error_type)
        status_code, body = 500, {"success": False, "message": str(e)}
    return {"statusCode": status_code, "body": json.dumps(body, default=str)}
