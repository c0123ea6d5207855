"""Schedule manager entry point for promptcron.

Keeps a job's triggers in sync when the job is created, edited or deleted,
and arms one-off retries on request. Event shape::

    {"action": "create" | "update" | "delete" | "retry",
     "jobId": "...", "schedule": "0 9 * * *", "enabled": true,
     "retryDelayMinutes": 30}
"""

import json
from typing import Any, Dict

from promptcron.container import get_services
from promptcron.core.errors import PromptCronError
from promptcron.core.logging import logger
from promptcron.core.schedules import handle_schedule_event


def lambda_handler(event: Dict[str, Any], context: Any = None) -> Dict[str, Any]:
    """AWS Lambda handler."""
    try:
        status_code, body = handle_schedule_event(event, get_services().triggers)
    except PromptCronError as e:
        raw = event if isinstance(event, dict) else {}
        echo = {"action": raw.get("action"), "jobId": raw.get("jobId")}
        logger.error("schedule_event_failed", error=str(e), error_type=e.error_type, **echo)
        status_code, body = 500, {"success": False, "message": str(e), **echo}
    return {"statusCode": status_code, "body": json.dumps(body)}
