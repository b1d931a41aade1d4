"""Priority enum for reminder urgency."""

from enum import Enum


class Priority(Enum):
    """Reminder priority. Lower value = more urgent."""

    URGENT = 1
    HIGH = 2
    MEDIUM = 3
    LOW = 4

    @property
    def label(self) -> str:
        return self.name.lower()
