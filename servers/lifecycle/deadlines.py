"""
Deadline constraint policies for projects.

Three formulas coexist and are kept apart on purpose:

* creation-relative window: used while reviewing/approving an application
* commitment-relative window: used when moving the deadline of an existing project
* retrospective check: whole-month difference used to decide whether a project may start

All comparisons happen on calendar dates in UTC; time-of-day is dropped.
"""

from datetime import date, datetime, timezone
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from servers.lifecycle.models import DeadlineCheck, DeadlineWindow, ProjectType

DateLike = Union[date, datetime, str, None]

GRACE_MONTHS = 1


def parse_calendar_date(value: DateLike) -> Optional[date]:
    """
    Normalize a date-like value to a calendar date in UTC.

    Accepts ``date``, ``datetime``, ``YYYY-MM-DD`` strings and ISO timestamps.
    Returns None for empty or malformed input.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None
    try:
        if "T" in text or " " in text:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            return parse_calendar_date(parsed)
        return date.fromisoformat(text)
    except ValueError:
        return None


def format_calendar_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def add_months(value: date, months: int) -> date:
    # relativedelta clamps to the last day of shorter months
    return value + relativedelta(months=months)


def months_between(start: date, end: date) -> int:
    """Whole calendar months from ``start`` to ``end``, ignoring the day of month."""
    return (end.year - start.year) * 12 + (end.month - start.month)


def _window(created: date, project_type: ProjectType) -> DeadlineWindow:
    min_months = project_type.min_estimated_months or 0
    min_date = add_months(created, min_months)
    max_date = add_months(min_date, GRACE_MONTHS)
    return DeadlineWindow(
        min_date=min_date,
        max_date=max_date,
        min_months=min_months,
        max_months=min_months + GRACE_MONTHS,
        suggested_date=min_date,
        project_type_name=project_type.name,
    )


def creation_relative_window(created_at: DateLike,
                             project_type: Optional[ProjectType]) -> Optional[DeadlineWindow]:
    """
    Legal deadline window while an application is being reviewed.

    ``min_date = created_at + min_estimated_months`` and ``max_date = min_date + 1 month``.
    The grace month does not depend on ``max_estimated_months``.
    """
    created = parse_calendar_date(created_at)
    if created is None or project_type is None:
        return None
    return _window(created, project_type)


def commitment_relative_window(created_at: DateLike,
                               project_type: Optional[ProjectType],
                               current_deadline: DateLike = None) -> Optional[DeadlineWindow]:
    """
    Legal deadline window for an already approved or started project.

    The window matches the creation-relative one; the suggested date is the
    committed deadline, raised to ``min_date`` when it falls below it.
    """
    created = parse_calendar_date(created_at)
    if created is None or project_type is None:
        return None

    window = _window(created, project_type)
    current = parse_calendar_date(current_deadline)
    if current is not None and current >= window.min_date:
        window.suggested_date = current
    return window


def check_candidate(window: DeadlineWindow, candidate: DateLike) -> DeadlineCheck:
    """Check a candidate deadline against a window, inclusive on both ends."""
    picked = parse_calendar_date(candidate)
    if picked is None:
        return DeadlineCheck(valid=False, message="Deadline must be a valid date in YYYY-MM-DD format.")

    if picked < window.min_date:
        return DeadlineCheck(
            valid=False,
            message=(f"The selected date ({format_calendar_date(picked)}) is earlier than the "
                     f"minimum allowed: {format_calendar_date(window.min_date)}"),
        )
    if picked > window.max_date:
        return DeadlineCheck(
            valid=False,
            message=(f"The selected date ({format_calendar_date(picked)}) exceeds the "
                     f"allowed limit: {format_calendar_date(window.max_date)}"),
        )
    return DeadlineCheck(valid=True)


def retrospective_deadline_check(created_at: DateLike,
                                 deadline: DateLike,
                                 project_type: Optional[ProjectType]) -> DeadlineCheck:
    """
    Whole-month check applied before a project may start.

    Valid iff ``min_estimated_months <= months_between(created_at, deadline) <= max_estimated_months + 1``.
    Missing inputs make the check fail without a message.
    """
    created = parse_calendar_date(created_at)
    committed = parse_calendar_date(deadline)
    if created is None or committed is None or project_type is None:
        return DeadlineCheck(valid=False)

    months_diff = months_between(created, committed)
    min_months = project_type.min_estimated_months or 0
    max_months = project_type.max_estimated_months + GRACE_MONTHS

    if min_months <= months_diff <= max_months:
        return DeadlineCheck(valid=True, months_diff=months_diff)
    return DeadlineCheck(
        valid=False,
        months_diff=months_diff,
        message=f"The deadline must fall between {min_months} and {max_months} months from the creation date",
    )
