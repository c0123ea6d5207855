"""Trigger management operations for promptcron.

Shared by the schedule manager Lambda and POST /schedules. Field names follow
the wire format (camelCase aliases); snake_case names are accepted too.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)

from promptcron.core.errors import InvalidScheduleError, TriggerRegistryFailure
from promptcron.core.logging import logger
from promptcron.core.retry_config import DEFAULT_RETRY_POLICY
from promptcron.infrastructure.scheduling import TriggerRegistry


class ScheduleAction(str, Enum):
    """Trigger management operations."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    RETRY = "retry"


class ScheduleRequest(BaseModel):
    """One trigger management request."""

    model_config = ConfigDict(populate_by_name=True)

    action: ScheduleAction
    job_id: str = Field(..., alias="jobId", min_length=1)
    schedule: Optional[str] = None
    enabled: bool = True
    delay_minutes: Optional[int] = Field(
        None,
        validation_alias=AliasChoices("retryDelayMinutes", "delayMinutes", "delay_minutes"),
        ge=1,
        le=24 * 60,
    )

    @field_validator("job_id", "schedule", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v

    @model_validator(mode="after")
    def require_schedule(self) -> "ScheduleRequest":
        """create and update need a cron expression."""
        if self.action in (ScheduleAction.CREATE, ScheduleAction.UPDATE) and not self.schedule:
            raise ValueError(f"schedule is required for action '{self.action.value}'")
        return self


def validation_message(error: ValidationError) -> str:
    """First validation problem as "field: message"."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


def apply_schedule_request(request: ScheduleRequest, triggers: TriggerRegistry) -> Dict[str, Any]:
    """Apply one trigger operation.

    Returns:
        Response body for a successful operation

    Raises:
        InvalidScheduleError: If a create/update schedule cannot be parsed
        TriggerRegistryFailure: If the scheduling facility rejects the change
    """
    body: Dict[str, Any] = {"success": True, "action": request.action.value, "jobId": request.job_id}

    if request.action in (ScheduleAction.CREATE, ScheduleAction.UPDATE):
        next_run_at = triggers.upsert(request.job_id, request.schedule, request.enabled)
        body["nextRunAt"] = next_run_at.isoformat()
        body["message"] = "Schedule saved" if request.enabled else "Schedule saved (disabled)"
    elif request.action is ScheduleAction.DELETE:
        triggers.remove(request.job_id)
        body["message"] = "Schedule removed"
    else:
        delay = request.delay_minutes or DEFAULT_RETRY_POLICY.initial_delay_minutes
        fire_at = triggers.schedule_retry(request.job_id, delay)
        body["fireAt"] = fire_at.isoformat()
        body["message"] = f"Retry scheduled in {delay} minutes"

    return body


def handle_schedule_event(event: Any, triggers: TriggerRegistry) -> Tuple[int, Dict[str, Any]]:
    """Validate and apply a schedule manager event.

    Returns:
        (status_code, body): 400 for invalid input, 500 when the scheduling
        facility fails, 200 otherwise
    """
    raw = event if isinstance(event, dict) else {}
    echo = {"action": raw.get("action"), "jobId": raw.get("jobId")}

    try:
        request = ScheduleRequest.model_validate(raw)
    except ValidationError as e:
        message = validation_message(e)
        logger.warning("schedule_event_rejected", error=message, **echo)
        return 400, {"success": False, "message": message, **echo}

    try:
        return 200, apply_schedule_request(request, triggers)
    except InvalidScheduleError as e:
        logger.warning("schedule_event_rejected", error=str(e), **echo)
        return 400, {"success": False, "message": str(e), **echo}
    except TriggerRegistryFailure as e:
        return 500, {"success": False, "message": str(e), **echo}
