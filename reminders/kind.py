"""ReminderKind enum: which trigger(s) a reminder uses."""

from enum import Enum


class ReminderKind(Enum):
    """Trigger type. BOTH fires when either trigger is crossed."""

    TIME = "time"
    DISTANCE = "distance"
    BOTH = "both"

    @property
    def uses_date(self) -> bool:
        return self in (ReminderKind.TIME, ReminderKind.BOTH)

    @property
    def uses_distance(self) -> bool:
        return self in (ReminderKind.DISTANCE, ReminderKind.BOTH)

    @classmethod
    def from_offsets(cls, months_offset, km_offset) -> "ReminderKind":
        """Pick the kind implied by which interval offsets are defined."""
        if months_offset is not None and km_offset is not None:
            return cls.BOTH
        if km_offset is not None:
            return cls.DISTANCE
        return cls.TIME
