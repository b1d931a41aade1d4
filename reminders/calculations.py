"""Due-status evaluation and due-point helpers for reminders."""

import math
from datetime import datetime, timedelta
from dateutil.relativedelta import relativedelta
from typing import Optional

from .kind import ReminderKind
from .priority import Priority
from .reminder import Reminder
from .reminder_due import ReminderDue

SECONDS_PER_DAY = 24 * 60 * 60

# Priority thresholds: (days, km) at or under which the level applies
HIGH_DAYS, HIGH_KM = 7, 1000
MEDIUM_DAYS, MEDIUM_KM = 30, 5000


def calc_due_km(odometer_km: Optional[int], km_offset: Optional[int]) -> Optional[int]:
    """Calculate next due odometer reading: odometer at service + interval."""
    if km_offset is None or odometer_km is None:
        return None
    return int(odometer_km + km_offset)


def calc_due_date(
    start: Optional[datetime], interval_months: Optional[float]
) -> Optional[datetime]:
    """Calculate next due date: start + interval months (calendar months)."""
    if interval_months is None or start is None:
        return None
    months = int(interval_months)
    days = int((interval_months - months) * 30)
    return start + relativedelta(months=months, days=days)


def naive_local(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an offset-aware datetime to naive local time; naive values pass through."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


def _resolve_now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now()


def _time_check(reminder: Reminder, now: datetime) -> bool:
    return reminder.due_date is not None and reminder.due_date <= now


def _distance_check(reminder: Reminder, current_odometer_km: Optional[int]) -> bool:
    if reminder.due_odometer_km is None or current_odometer_km is None:
        return False
    return current_odometer_km >= reminder.due_odometer_km


def is_due(
    reminder: Reminder,
    current_odometer_km: Optional[int] = None,
    now: Optional[datetime] = None,
) -> bool:
    """
    Check whether a reminder is due.

    - TIME: due_date <= now
    - DISTANCE: current odometer >= due odometer (needs both values)
    - BOTH: whichever comes first (either check)
    """
    now = _resolve_now(now)
    if reminder.kind == ReminderKind.TIME:
        return _time_check(reminder, now)
    if reminder.kind == ReminderKind.DISTANCE:
        return _distance_check(reminder, current_odometer_km)
    return _time_check(reminder, now) or _distance_check(reminder, current_odometer_km)


def days_until_due(reminder: Reminder, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days until the due date, rounded up. Negative = overdue."""
    if reminder.kind == ReminderKind.DISTANCE or reminder.due_date is None:
        return None
    delta = reminder.due_date - _resolve_now(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def distance_until_due(
    reminder: Reminder, current_odometer_km: Optional[int]
) -> Optional[int]:
    """Km left until the due odometer reading, floored at zero."""
    if reminder.kind == ReminderKind.TIME or reminder.due_odometer_km is None:
        return None
    if current_odometer_km is None:
        return None
    return max(0, reminder.due_odometer_km - current_odometer_km)


def reminder_priority(
    reminder: Reminder,
    current_odometer_km: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Priority:
    """Priority from the most severe level whose day or km threshold is met."""
    days = days_until_due(reminder, now)
    km = distance_until_due(reminder, current_odometer_km)

    if (days is not None and days < 0) or (km is not None and km <= 0):
        return Priority.URGENT
    if (days is not None and days <= HIGH_DAYS) or (km is not None and km <= HIGH_KM):
        return Priority.HIGH
    if (days is not None and days <= MEDIUM_DAYS) or (
        km is not None and km <= MEDIUM_KM
    ):
        return Priority.MEDIUM
    return Priority.LOW


def evaluate(
    reminder: Reminder,
    current_odometer_km: Optional[int] = None,
    now: Optional[datetime] = None,
) -> ReminderDue:
    """Evaluate all due figures for a reminder at a single instant."""
    now = _resolve_now(now)
    return ReminderDue(
        reminder=reminder,
        is_due=is_due(reminder, current_odometer_km, now),
        priority=reminder_priority(reminder, current_odometer_km, now),
        days_remaining=days_until_due(reminder, now),
        km_remaining=distance_until_due(reminder, current_odometer_km),
    )


def add_days(now: Optional[datetime], days: float) -> datetime:
    """now + days, with now defaulting to the current time."""
    return _resolve_now(now) + timedelta(days=days)
