"""Exceptions raised by the reminder engine."""


class ReminderError(Exception):
    """Base class for reminder engine errors."""


class UnauthenticatedError(ReminderError):
    """No authenticated principal was supplied."""

    def __init__(self, message: str = "unauthenticated"):
        super().__init__(message)


class ReminderNotFoundError(ReminderError):
    """A reminder id did not resolve to a stored reminder."""

    def __init__(self, reminder_id: str):
        super().__init__(f"Reminder '{reminder_id}' not found")
        self.reminder_id = reminder_id


class InvalidTransitionError(ReminderError):
    """A status change was requested on a reminder that cannot move there."""

    def __init__(self, reminder_id, current, target):
        super().__init__(
            f"Cannot move reminder '{reminder_id}' from {current.value} to {target.value}"
        )
        self.reminder_id = reminder_id
        self.current = current
        self.target = target


class ConfigError(ReminderError):
    """Configuration file could not be loaded or failed validation."""
