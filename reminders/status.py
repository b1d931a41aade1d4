"""ReminderStatus enum for the reminder lifecycle."""

from enum import Enum


class ReminderStatus(Enum):
    """Lifecycle states of a reminder."""

    ACTIVE = "active"
    SNOOZED = "snoozed"
    DONE = "done"  # Terminal
    DISMISSED = "dismissed"  # Terminal

    @property
    def is_terminal(self) -> bool:
        return self in (ReminderStatus.DONE, ReminderStatus.DISMISSED)
