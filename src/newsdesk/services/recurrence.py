"""Recurring publication date projection.

Turns an anchor instant and a recurrence cadence into the short list of
upcoming publication instants shown to an editor before a schedule is
submitted. Projection is a pure function: no I/O, no state between calls.
"""

import calendar
import re
from datetime import datetime, timedelta
from typing import Optional, Union

import structlog

from newsdesk.models.schedule import IntervalUnit, RecurrencePattern, ScheduleSpec

logger = structlog.get_logger(__name__)

DEFAULT_PREVIEW_OCCURRENCES = 5

_FIXED_STEPS: dict[RecurrencePattern, timedelta] = {
    RecurrencePattern.DAILY: timedelta(days=1),
    RecurrencePattern.WEEKLY: timedelta(days=7),
    RecurrencePattern.BIWEEKLY: timedelta(days=14),
}

_FIRST_INTEGER = re.compile(r"\d+")


def parse_custom_interval(descriptor: str) -> Optional[tuple[int, IntervalUnit]]:
    """Parse a free-text interval such as "every 3 days" or "2 weeks".

    "day" is checked before "week". The first integer in the text is the
    step count and defaults to 1 when absent.

    Args:
        descriptor: Operator-entered interval text

    Returns:
        (step count, unit) or None if no unit is found or the step is zero
    """
    text = descriptor.lower()
    if "day" in text:
        unit = IntervalUnit.DAYS
    elif "week" in text:
        unit = IntervalUnit.WEEKS
    else:
        return None

    match = _FIRST_INTEGER.search(text)
    value = int(match.group()) if match else 1
    if value < 1:
        return None
    return value, unit


def add_months(value: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the target month's last day."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _interval_step(value: int, unit: IntervalUnit) -> timedelta:
    if unit == IntervalUnit.WEEKS:
        return timedelta(weeks=value)
    return timedelta(days=value)


def _coerce_pattern(
    pattern: Union[RecurrencePattern, str, None],
) -> Optional[RecurrencePattern]:
    if isinstance(pattern, RecurrencePattern):
        return pattern
    if not pattern:
        return RecurrencePattern.NONE
    try:
        return RecurrencePattern(str(pattern).lower())
    except ValueError:
        return None


def _project(
    anchor: datetime,
    pattern: RecurrencePattern,
    interval: Optional[tuple[int, IntervalUnit]],
    occurrences: int,
) -> list[datetime]:
    dates = [anchor]

    if pattern == RecurrencePattern.NONE:
        return dates
    if pattern == RecurrencePattern.CUSTOM and interval is None:
        logger.debug(
            "Custom recurrence without a usable interval",
            anchor=anchor.isoformat(),
        )
        return dates

    current = anchor
    for _ in range(max(0, occurrences)):
        try:
            if pattern == RecurrencePattern.MONTHLY:
                current = add_months(current, 1)
            elif pattern == RecurrencePattern.CUSTOM:
                current = current + _interval_step(*interval)
            else:
                current = current + _FIXED_STEPS[pattern]
        except (OverflowError, ValueError):
            logger.debug(
                "Projection stopped at calendar limit",
                pattern=pattern.value,
                last=current.isoformat(),
            )
            break
        dates.append(current)

    return dates


def project_publication_dates(
    anchor: datetime,
    pattern: Union[RecurrencePattern, str, None],
    custom_descriptor: Optional[str] = None,
    occurrences: int = DEFAULT_PREVIEW_OCCURRENCES,
) -> list[datetime]:
    """Project upcoming publication instants for a recurring schedule.

    Returns the anchor followed by up to ``occurrences`` further instants,
    each one step after the previous. Steps: daily 1 day, weekly 7 days,
    biweekly 14 days, monthly 1 calendar month (day clamped to month end),
    custom N days or N weeks as parsed from ``custom_descriptor``.

    No repetition, an unknown pattern, or an unparseable custom descriptor
    yields only the anchor. Never raises.

    Args:
        anchor: First publication instant
        pattern: Recurrence cadence (enum member or its string value)
        custom_descriptor: Interval text used when pattern is custom
        occurrences: Number of instants to project after the anchor

    Returns:
        Ordered list of publication instants starting with the anchor
    """
    resolved = _coerce_pattern(pattern)
    if resolved is None:
        logger.debug("Unrecognized recurrence pattern", pattern=str(pattern))
        return [anchor]

    interval = None
    if resolved == RecurrencePattern.CUSTOM:
        interval = parse_custom_interval(custom_descriptor or "")

    return _project(anchor, resolved, interval, occurrences)


def project_schedule(
    spec: ScheduleSpec,
    occurrences: int = DEFAULT_PREVIEW_OCCURRENCES,
) -> list[datetime]:
    """Project upcoming publication instants for a ScheduleSpec."""
    interval = None
    if spec.custom_interval_value is not None and spec.custom_interval_unit is not None:
        interval = (spec.custom_interval_value, spec.custom_interval_unit)
    return _project(spec.anchor, spec.pattern, interval, occurrences)
