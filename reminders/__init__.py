"""
Vehicle maintenance reminder engine.

This package decides when maintenance is due and what to remind next:
- ReminderStatus / ReminderKind / Priority: lifecycle, trigger type, urgency
- Category: normalized maintenance categories and their aliases
- Reminder: a scheduled maintenance obligation
- calculations: due-status evaluation (time, distance, or either)
- suggestions: catalog mapping a category to its next due point
- ReminderCoordinator: generation + dedup when maintenance is logged
- lifecycle: done / snooze / dismiss transitions
- provisioning: starter reminders for a newly registered vehicle
- ReminderEngine: authenticated entry point tying it together
"""

from .status import ReminderStatus
from .kind import ReminderKind
from .priority import Priority
from .category import Category, normalize_key
from .reminder import Reminder, Threshold, OilChangeEnrichment
from .reminder_due import ReminderDue
from .maintenance_event import MaintenanceEvent
from .vehicle import VehicleProfile
from .errors import (
    ReminderError,
    UnauthenticatedError,
    ReminderNotFoundError,
    InvalidTransitionError,
    ConfigError,
)
from .auth import Principal, require_principal
from .calculations import (
    calc_due_date,
    calc_due_km,
    naive_local,
    is_due,
    days_until_due,
    distance_until_due,
    reminder_priority,
    evaluate,
)
from .suggestions import SuggestionRule, SuggestionSpec, catalog, suggest_next
from .lifecycle import mark_done, snooze, dismiss
from .provisioning import (
    generate_initial_reminders,
    estimate_date_for_distance,
    inspection_priority,
    tax_priority,
)
from .dispatch import SideEffectDispatcher, SideEffectFailure
from .store import ReminderStore, MemoryReminderStore, YamlReminderStore
from .coordinator import ReminderCoordinator
from .config import EngineConfig, load_config
from .engine import ReminderEngine

__all__ = [
    "ReminderStatus",
    "ReminderKind",
    "Priority",
    "Category",
    "normalize_key",
    "Reminder",
    "Threshold",
    "OilChangeEnrichment",
    "ReminderDue",
    "MaintenanceEvent",
    "VehicleProfile",
    "ReminderError",
    "UnauthenticatedError",
    "ReminderNotFoundError",
    "InvalidTransitionError",
    "ConfigError",
    "Principal",
    "require_principal",
    "calc_due_date",
    "calc_due_km",
    "naive_local",
    "is_due",
    "days_until_due",
    "distance_until_due",
    "reminder_priority",
    "evaluate",
    "SuggestionRule",
    "SuggestionSpec",
    "catalog",
    "suggest_next",
    "mark_done",
    "snooze",
    "dismiss",
    "generate_initial_reminders",
    "estimate_date_for_distance",
    "inspection_priority",
    "tax_priority",
    "SideEffectDispatcher",
    "SideEffectFailure",
    "ReminderStore",
    "MemoryReminderStore",
    "YamlReminderStore",
    "ReminderCoordinator",
    "EngineConfig",
    "load_config",
    "ReminderEngine",
]
