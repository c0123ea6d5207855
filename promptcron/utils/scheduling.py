"""Scheduling utilities for promptcron.

Helpers for turning 5-field cron expressions (minute, hour, day-of-month,
month, day-of-week) into next run times, previews, and the 6-field dialect
used by AWS EventBridge. Expansion and next-run search are done by croniter.

All computations are in UTC. Day-of-month and day-of-week are both applied
(AND), so ``0 9 13 * 5`` only fires on Friday the 13th.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import FrozenSet, List, Optional, Tuple

from croniter import CroniterBadCronError, CroniterBadDateError, croniter  # type: ignore[import-untyped]

from promptcron.core.errors import InvalidScheduleError
from promptcron.core.logging import logger

# (lowest, highest) accepted value per field; day-of-week 7 is Sunday.
_RANGES: Tuple[Tuple[int, int], ...] = ((0, 59), (0, 23), (1, 31), (1, 12), (0, 7))

# Numeric subset the EventBridge translation supports: *, N, a-b, optional /N, comma lists.
_ENTRY = r"(\*|\d+(-\d+)?)(/\d+)?"
_FIELD_SYNTAX = re.compile(rf"^{_ENTRY}(,{_ENTRY})*$")

_NATIVE_EXPRESSION = re.compile(r"^(cron|rate|at)\(.*\)$")
_NUMBER = re.compile(r"^\d+$")

DEFAULT_EXTERNAL_EXPRESSION = "cron(0 * * * ? *)"

_WEEKDAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


@dataclass(frozen=True)
class CronSchedule:
    """A parsed 5-field cron expression.

    Each field is expanded to the set of values it allows. Day-of-week uses
    0-6 with 0 = Sunday.
    """

    expression: str
    fields: Tuple[str, str, str, str, str]
    minutes: Tuple[int, ...]
    hours: Tuple[int, ...]
    days_of_month: FrozenSet[int]
    months: FrozenSet[int]
    days_of_week: FrozenSet[int]

    @property
    def day_of_month_restricted(self) -> bool:
        return self.fields[2] != "*"

    @property
    def day_of_week_restricted(self) -> bool:
        return self.fields[4] != "*"

    def iterate(self, from_time: datetime) -> croniter:
        """croniter positioned at ``from_time`` (floored to the minute, UTC)."""
        start = _as_utc(from_time).replace(second=0, microsecond=0)
        return croniter(self.expression, start, day_or=False)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _values(expanded: list, low: int, high: int) -> FrozenSet[int]:
    # croniter collapses a field covering its whole range to "*".
    if expanded == ["*"]:
        return frozenset(range(low, high + 1))
    return frozenset(int(v) for v in expanded)


def parse_schedule(schedule: str) -> CronSchedule:
    """Parse a 5-field cron expression.

    Args:
        schedule: Expression such as ``"0 */4 * * *"`` or ``"30 8 * * 1-5"``

    Returns:
        CronSchedule with every field expanded

    Raises:
        InvalidScheduleError: If the expression is not five valid fields
    """
    text = (schedule or "").strip()
    parts = text.split()
    if len(parts) != 5:
        raise InvalidScheduleError(schedule, f"expected 5 fields, got {len(parts)}")

    for token in parts:
        if not _FIELD_SYNTAX.match(token):
            raise InvalidScheduleError(schedule, f"unsupported field '{token}'")

    try:
        expanded, _ = croniter.expand(text)
    except (CroniterBadCronError, ValueError) as e:
        raise InvalidScheduleError(schedule, str(e)) from e

    minutes, hours, days_of_month, months, days_of_week = (
        _values(values, low, high) for values, (low, high) in zip(expanded, _RANGES)
    )

    return CronSchedule(
        expression=text,
        fields=tuple(parts),  # type: ignore[arg-type]
        minutes=tuple(sorted(minutes)),
        hours=tuple(sorted(hours)),
        days_of_month=days_of_month,
        months=months,
        days_of_week=frozenset(d % 7 for d in days_of_week),
    )


def next_run(schedule: str, from_time: Optional[datetime] = None) -> datetime:
    """Calculate the next run time of a cron schedule.

    Args:
        schedule: 5-field cron expression
        from_time: Starting time (defaults to now, UTC). Naive values are UTC.

    Returns:
        Timezone-aware UTC datetime strictly after ``from_time``

    Raises:
        InvalidScheduleError: If the expression is invalid or never fires

    Example:
        >>> next_run("0 */4 * * *", datetime(2024, 1, 1, 1, 0, tzinfo=timezone.utc))
        datetime.datetime(2024, 1, 1, 4, 0, tzinfo=datetime.timezone.utc)
    """
    return upcoming_runs(schedule, 1, from_time)[0]


def upcoming_runs(schedule: str, count: int = 10, from_time: Optional[datetime] = None) -> List[datetime]:
    """List the next ``count`` run times of a schedule, oldest first."""
    cron = parse_schedule(schedule)
    it = cron.iterate(from_time if from_time is not None else datetime.now(timezone.utc))

    try:
        return [it.get_next(datetime) for _ in range(max(0, count))]
    except CroniterBadDateError as e:
        raise InvalidScheduleError(schedule, "expression never fires") from e
    except CroniterBadCronError as e:
        raise InvalidScheduleError(schedule, str(e)) from e


def check_external_compatible(schedule: str) -> CronSchedule:
    """Parse a schedule and reject what EventBridge cannot fire as written.

    EventBridge takes "?" in one day field, so a schedule restricting both
    day-of-month and day-of-week would fire on every matching weekday.

    Raises:
        InvalidScheduleError: If the schedule is invalid or restricts both day fields
    """
    cron = parse_schedule(schedule)
    if cron.day_of_month_restricted and cron.day_of_week_restricted:
        raise InvalidScheduleError(schedule, "day-of-month and day-of-week cannot both be restricted")
    return cron


def _external_token(token: str, low: int) -> str:
    # EventBridge writes "every N" as "<start>/N" rather than "*/N".
    return ",".join(f"{low}/{part[2:]}" if part.startswith("*/") else part for part in token.split(","))


def to_external_trigger_expression(schedule: str) -> str:
    """Convert a 5-field cron expression to the EventBridge 6-field dialect.

    EventBridge needs ``?`` in exactly one of day-of-month/day-of-week, numbers
    weekdays 1-7 starting at Sunday, and adds a trailing year field.

    Args:
        schedule: 5-field cron expression, or an expression already in the
            EventBridge dialect (``cron(...)``, ``rate(...)``, ``at(...)``)

    Returns:
        EventBridge schedule expression. Native expressions are returned
        unchanged; untranslatable input yields ``cron(0 * * * ? *)`` (hourly).

    Example:
        >>> to_external_trigger_expression("0 */4 * * *")
        'cron(0 0/4 * * ? *)'
        >>> to_external_trigger_expression("30 8 * * 1-5")
        'cron(30 8 ? * 2,3,4,5,6 *)'
    """
    text = (schedule or "").strip()
    if _NATIVE_EXPRESSION.match(text):
        return text

    try:
        cron = parse_schedule(text)
    except InvalidScheduleError as e:
        logger.warning("schedule_translation_fallback", schedule=schedule, error=str(e))
        return DEFAULT_EXTERNAL_EXPRESSION

    minute, hour, day_of_month, month, _ = cron.fields
    minute = _external_token(minute, 0)
    hour = _external_token(hour, 0)
    month = _external_token(month, 1)

    if cron.day_of_week_restricted:
        if cron.day_of_month_restricted:
            logger.warning(
                "schedule_day_of_month_dropped",
                schedule=text,
                reason="EventBridge cannot restrict both day fields",
            )
        day_of_month = "?"
        day_of_week = ",".join(str(d + 1) for d in sorted(cron.days_of_week))
    else:
        day_of_month = _external_token(day_of_month, 1)
        day_of_week = "?"

    return f"cron({minute} {hour} {day_of_month} {month} {day_of_week} *)"


def _hhmm(hour: str, minute: str) -> str:
    return f"{int(hour):02d}:{int(minute):02d}"


def describe_schedule(schedule: str) -> str:
    """Human-readable summary of a cron expression for schedule previews."""
    try:
        cron = parse_schedule(schedule)
    except InvalidScheduleError:
        return "Invalid cron expression"

    minute, hour, day_of_month, month, day_of_week = cron.fields
    fixed_time = bool(_NUMBER.match(minute) and _NUMBER.match(hour))

    if _NUMBER.match(minute) and hour.startswith("*/") and (day_of_month, month, day_of_week) == ("*", "*", "*"):
        return f"Every {hour[2:]} hours at minute {int(minute)}."

    if fixed_time and month == "*":
        at = _hhmm(hour, minute)
        if day_of_month == "*" and day_of_week == "*":
            return f"Daily at {at}."
        if day_of_month == "*":
            days = ", ".join(_WEEKDAY_NAMES[d] for d in sorted(cron.days_of_week))
            return f"Weekly on {days} at {at}."
        if day_of_week == "*" and _NUMBER.match(day_of_month):
            return f"Monthly on day {int(day_of_month)} at {at}."

    return f"Cron: {cron.expression}"
