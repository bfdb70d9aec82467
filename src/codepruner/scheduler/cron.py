"""Cron helpers for the maintenance schedule."""

from datetime import datetime, timezone

from croniter import croniter


def calculate_next_run(schedule: str, base_time: datetime | None = None) -> datetime:
    """
    Calculate the next run time for a 5-field cron schedule, evaluated in UTC.

    >>> calculate_next_run("0 2 * * *", datetime(2026, 1, 1, 3, tzinfo=timezone.utc))
    datetime.datetime(2026, 1, 2, 2, 0, tzinfo=datetime.timezone.utc)
    """
    if base_time is None:
        base_time = datetime.now(timezone.utc)
    elif base_time.tzinfo is None:
        base_time = base_time.replace(tzinfo=timezone.utc)

    next_run = croniter(schedule, base_time).get_next(datetime)

    # croniter may return float or datetime depending on version/config
    if not isinstance(next_run, datetime):
        next_run = datetime.fromtimestamp(next_run, timezone.utc)
    if next_run.tzinfo is None:
        next_run = next_run.replace(tzinfo=timezone.utc)
    return next_run


def validate_schedule(schedule: str) -> None:
    """Raise ValueError for an unparseable cron expression."""
    if len(schedule.split()) != 5 or not croniter.is_valid(schedule):
        raise ValueError(f"Invalid cron expression: {schedule!r}")
