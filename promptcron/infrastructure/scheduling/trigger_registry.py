"""External trigger registry for promptcron.

Keeps AWS EventBridge in sync with job schedules:

- one recurring EventBridge rule per job, named from the job id, with a single
  target (the executor function) receiving ``{"jobId", "trigger": "scheduled"}``
- one-shot EventBridge Scheduler ``at(...)`` schedules for retries, uniquely
  named per attempt and deleted by AWS after they fire
"""

import json
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from botocore.exceptions import BotoCoreError, ClientError

from promptcron.core.errors import TriggerRegistryFailure
from promptcron.core.logging import logger
from promptcron.utils.scheduling import check_external_compatible, next_run, to_external_trigger_expression

EXECUTOR_TARGET_ID = "promptcron-executor"

# EventBridge rule and schedule names are limited to 64 characters.
_MAX_NAME_LENGTH = 64

_NOT_FOUND_CODES = {"ResourceNotFoundException", "ResourceNotFound"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_not_found(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _NOT_FOUND_CODES


class TriggerRegistry:
    """Creates, updates and deletes the triggers that invoke the executor.

    Follows Single Responsibility Principle: only talks to the external
    scheduler. Clients are injected so tests can pass stubs.
    """

    def __init__(
        self,
        events_client: Any,
        scheduler_client: Any,
        executor_arn: str,
        scheduler_role_arn: str,
        schedule_group: str = "default",
        name_prefix: str = "promptcron",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize TriggerRegistry.

        Args:
            events_client: boto3 ``events`` client (recurring rules)
            scheduler_client: boto3 ``scheduler`` client (one-shot retries)
            executor_arn: ARN of the executor function every trigger targets
            scheduler_role_arn: IAM role EventBridge Scheduler assumes to invoke it
            schedule_group: EventBridge Scheduler group for retry schedules
            name_prefix: Prefix for rule and schedule names
            clock: Returns the current UTC time (defaults to datetime.now)
        """
        self._events = events_client
        self._scheduler = scheduler_client
        self._executor_arn = executor_arn
        self._scheduler_role_arn = scheduler_role_arn
        self._schedule_group = schedule_group
        self._prefix = name_prefix
        self._clock = clock or _utcnow

    def rule_name(self, job_id: str) -> str:
        """Deterministic name of a job's recurring rule."""
        return f"{self._prefix}-job-{job_id}"[:_MAX_NAME_LENGTH]

    def retry_schedule_name(self, job_id: str, fire_at: datetime) -> str:
        """Unique name for one retry attempt (fire time plus random suffix)."""
        suffix = f"{fire_at:%Y%m%d%H%M%S}-{secrets.token_hex(3)}"
        head = f"{self._prefix}-retry-"
        room = _MAX_NAME_LENGTH - len(head) - len(suffix) - 1
        return f"{head}{job_id[:room]}-{suffix}"

    def _payload(self, job_id: str, trigger: str) -> str:
        return json.dumps({"jobId": job_id, "trigger": trigger})

    def upsert(self, job_id: str, schedule: str, enabled: bool) -> datetime:
        """Create or update the recurring trigger of a job.

        Args:
            job_id: Job ID
            schedule: 5-field cron expression
            enabled: Whether the rule should fire

        Returns:
            Next run time computed from the schedule (for display)

        Raises:
            InvalidScheduleError: If the schedule cannot be parsed or restricts
                both day fields
            TriggerRegistryFailure: If EventBridge rejects the rule or target
        """
        check_external_compatible(schedule)
        next_run_at = next_run(schedule, self._clock())
        expression = to_external_trigger_expression(schedule)
        name = self.rule_name(job_id)

        try:
            self._events.put_rule(
                Name=name,
                ScheduleExpression=expression,
                State="ENABLED" if enabled else "DISABLED",
                Description=f"promptcron schedule for job {job_id}",
            )
            self._events.put_targets(
                Rule=name,
                Targets=[
                    {
                        "Id": EXECUTOR_TARGET_ID,
                        "Arn": self._executor_arn,
                        "Input": self._payload(job_id, "scheduled"),
                    }
                ],
            )

            # Exactly one target: drop anything else attached to the rule.
            listed = self._events.list_targets_by_rule(Rule=name)
            stale_ids = [t["Id"] for t in listed.get("Targets", []) if t["Id"] != EXECUTOR_TARGET_ID]
            if stale_ids:
                self._events.remove_targets(Rule=name, Ids=stale_ids)
                logger.info("trigger_stale_targets_removed", rule=name, target_ids=stale_ids)

        except (ClientError, BotoCoreError) as e:
            logger.error("trigger_upsert_failed", job_id=job_id, rule=name, error=str(e))
            raise TriggerRegistryFailure("upsert", name, str(e)) from e

        logger.info(
            "trigger_upserted",
            job_id=job_id,
            rule=name,
            expression=expression,
            enabled=enabled,
            next_run_at=next_run_at.isoformat(),
        )
        return next_run_at

    def remove(self, job_id: str) -> None:
        """Remove a job's recurring trigger.

        Targets are removed before the rule. Missing resources count as
        removed; other failures are logged and suppressed.
        """
        name = self.rule_name(job_id)

        try:
            self._events.remove_targets(Rule=name, Ids=[EXECUTOR_TARGET_ID])
        except ClientError as e:
            if not _is_not_found(e):
                logger.warning("trigger_targets_remove_failed", job_id=job_id, rule=name, error=str(e))
        except BotoCoreError as e:
            logger.warning("trigger_targets_remove_failed", job_id=job_id, rule=name, error=str(e))

        try:
            self._events.delete_rule(Name=name)
        except ClientError as e:
            if not _is_not_found(e):
                logger.warning("trigger_delete_failed", job_id=job_id, rule=name, error=str(e))
                return
        except BotoCoreError as e:
            logger.warning("trigger_delete_failed", job_id=job_id, rule=name, error=str(e))
            return

        logger.info("trigger_removed", job_id=job_id, rule=name)

    def schedule_retry(self, job_id: str, delay_minutes: int) -> datetime:
        """Arm a one-shot trigger that re-runs a job after a delay.

        Args:
            job_id: Job ID
            delay_minutes: Minutes from now until the retry fires

        Returns:
            UTC time the retry fires

        Raises:
            TriggerRegistryFailure: If EventBridge Scheduler rejects the schedule
        """
        fire_at = (self._clock() + timedelta(minutes=delay_minutes)).astimezone(timezone.utc).replace(microsecond=0)
        name = self.retry_schedule_name(job_id, fire_at)

        try:
            self._scheduler.create_schedule(
                Name=name,
                GroupName=self._schedule_group,
                ScheduleExpression=f"at({fire_at:%Y-%m-%dT%H:%M:%S})",
                ScheduleExpressionTimezone="UTC",
                FlexibleTimeWindow={"Mode": "OFF"},
                ActionAfterCompletion="DELETE",
                Target={
                    "Arn": self._executor_arn,
                    "RoleArn": self._scheduler_role_arn,
                    "Input": self._payload(job_id, "retry"),
                },
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("retry_schedule_failed", job_id=job_id, schedule=name, error=str(e))
            raise TriggerRegistryFailure("schedule_retry", name, str(e)) from e

        logger.info(
            "retry_scheduled",
            job_id=job_id,
            schedule=name,
            delay_minutes=delay_minutes,
            fire_at=fire_at.isoformat(),
        )
        return fire_at
