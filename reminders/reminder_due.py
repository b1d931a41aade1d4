"""ReminderDue dataclass for evaluated reminder status."""

from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

from .priority import Priority

if TYPE_CHECKING:
    from .reminder import Reminder


@dataclass
class ReminderDue:
    """Evaluated due information for a reminder at a given instant."""

    reminder: "Reminder"
    is_due: bool
    priority: Priority
    days_remaining: Optional[int] = None
    km_remaining: Optional[int] = None

    @property
    def is_overdue(self) -> bool:
        return self.days_remaining is not None and self.days_remaining < 0

    @property
    def is_this_week(self) -> bool:
        return self.days_remaining is not None and 0 <= self.days_remaining <= 7
