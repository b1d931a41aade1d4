"""Status transitions for reminders: done, snooze, dismiss."""

from datetime import datetime
from typing import Optional

from .calculations import add_days
from .errors import InvalidTransitionError
from .reminder import Reminder
from .status import ReminderStatus

DEFAULT_SNOOZE_DAYS = 7


def _transition(reminder: Reminder, target: ReminderStatus, now: Optional[datetime]) -> Reminder:
    if reminder.status.is_terminal:
        raise InvalidTransitionError(reminder.id, reminder.status, target)
    reminder.status = target
    reminder.updated_at = now or datetime.now()
    return reminder


def mark_done(reminder: Reminder, now: Optional[datetime] = None) -> Reminder:
    """
    Mark a reminder DONE.

    No successor is created here; the next reminder comes from the next
    matching maintenance event.
    """
    return _transition(reminder, ReminderStatus.DONE, now)


def dismiss(reminder: Reminder, now: Optional[datetime] = None) -> Reminder:
    """Mark a reminder DISMISSED (user declines to act)."""
    return _transition(reminder, ReminderStatus.DISMISSED, now)


def snooze(
    reminder: Reminder, days: int = DEFAULT_SNOOZE_DAYS, now: Optional[datetime] = None
) -> Reminder:
    """
    Snooze a reminder: status SNOOZED, due_date = now + days.

    Only the calendar trigger moves; due_odometer_km and kind are left as
    they are, so a DISTANCE reminder is still evaluated on its odometer.
    """
    if days < 0:
        raise ValueError(f"Snooze days must be non-negative, got {days}")
    now = now or datetime.now()
    _transition(reminder, ReminderStatus.SNOOZED, now)
    reminder.due_date = add_days(now, days)
    return reminder
