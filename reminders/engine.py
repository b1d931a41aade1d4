"""ReminderEngine - the caller-facing entry point over the reminder subsystem."""

import contextlib
import logging
from datetime import datetime
from typing import List, Optional

from . import calculations, lifecycle
from .auth import Principal, require_principal
from .category import Category
from .config import EngineConfig
from .coordinator import ReminderCoordinator
from .dispatch import SideEffectDispatcher
from .errors import ReminderNotFoundError
from .priority import Priority
from .provisioning import generate_initial_reminders, generate_inspection_reminder
from .reminder import Reminder, auto_generated_note
from .reminder_due import ReminderDue
from .status import ReminderStatus
from .store import ReminderStore
from .suggestions import SuggestionSpec
from .vehicle import VehicleProfile

logger = logging.getLogger("reminders.engine")

# Sort key for reminders with no calendar trigger
NO_DAYS = 10 ** 9


class ReminderEngine:
    """
    Reminder operations for an authenticated principal.

    Every method takes the principal first and refuses to run without one.
    Collaborators:
    - store: ReminderStore
    - vehicles: current_odometer_km(principal, car_id), optionally oil_spec(principal, car_id)
    - enricher: resolve_purchase_and_booking(car_id, oil_spec)
    - audit: record(principal, action, reminder)
    """

    def __init__(
        self,
        store: ReminderStore,
        vehicles=None,
        enricher=None,
        audit=None,
        dispatcher: Optional[SideEffectDispatcher] = None,
        config: Optional[EngineConfig] = None,
        coordinator: Optional[ReminderCoordinator] = None,
    ):
        self.store = store
        self.vehicles = vehicles
        self.audit = audit
        self.config = config or EngineConfig()
        self.dispatcher = dispatcher or SideEffectDispatcher()
        self.coordinator = coordinator or ReminderCoordinator(
            store, enricher=enricher, vehicles=vehicles, audit=audit, dispatcher=self.dispatcher
        )

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _odometer(self, principal: Principal, car_id: str, current_odometer_km: Optional[int]) -> Optional[int]:
        if current_odometer_km is not None:
            return current_odometer_km
        if self.vehicles is None:
            return None
        return self.vehicles.current_odometer_km(principal, car_id)

    def _notify(self, principal: Principal, action: str, reminder: Reminder) -> None:
        if self.audit is not None:
            self.dispatcher.submit(
                f"audit:{action}:{reminder.id}", self.audit.record, principal, action, reminder
            )

    # -------------------------------------------------------------------------
    # Evaluation
    # -------------------------------------------------------------------------

    def is_due(self, principal, reminder: Reminder, current_odometer_km=None, now=None) -> bool:
        principal = require_principal(principal)
        odometer = self._odometer(principal, reminder.car_id, current_odometer_km)
        return calculations.is_due(reminder, odometer, now)

    def days_until_due(self, principal, reminder: Reminder, now=None) -> Optional[int]:
        require_principal(principal)
        return calculations.days_until_due(reminder, now)

    def distance_until_due(self, principal, reminder: Reminder, current_odometer_km=None) -> Optional[int]:
        principal = require_principal(principal)
        odometer = self._odometer(principal, reminder.car_id, current_odometer_km)
        return calculations.distance_until_due(reminder, odometer)

    def priority(self, principal, reminder: Reminder, current_odometer_km=None, now=None) -> Priority:
        principal = require_principal(principal)
        odometer = self._odometer(principal, reminder.car_id, current_odometer_km)
        return calculations.reminder_priority(reminder, odometer, now)

    def reminders_for_car(
        self,
        principal: Principal,
        car_id: str,
        current_odometer_km: Optional[int] = None,
        now: Optional[datetime] = None,
        include_closed: bool = False,
    ) -> List[ReminderDue]:
        """Evaluate a car's reminders, most urgent first. DONE/DISMISSED are skipped unless asked for."""
        principal = require_principal(principal)
        odometer = self._odometer(principal, car_id, current_odometer_km)
        now = now or datetime.now()

        results = [
            calculations.evaluate(r, odometer, now)
            for r in self.store.list_by_car(principal, car_id)
            if include_closed or r.is_open
        ]
        results.sort(
            key=lambda d: (
                d.priority.value,
                d.days_remaining if d.days_remaining is not None else NO_DAYS,
                d.reminder.title,
            )
        )
        return results

    # -------------------------------------------------------------------------
    # Manual reminders
    # -------------------------------------------------------------------------

    def create_reminder(self, principal: Principal, reminder: Reminder) -> Reminder:
        """Save a user-created reminder. New reminders always start ACTIVE."""
        principal = require_principal(principal)
        reminder.status = ReminderStatus.ACTIVE
        self.store.save(principal, reminder)
        self._notify(principal, "create", reminder)
        return reminder

    def get_reminder(self, principal: Principal, reminder_id: str) -> Reminder:
        principal = require_principal(principal)
        reminder = self.store.get(principal, reminder_id)
        if reminder is None:
            raise ReminderNotFoundError(reminder_id)
        return reminder

    def delete_reminder(self, principal: Principal, reminder_id: str) -> None:
        reminder = self.get_reminder(principal, reminder_id)
        self.store.delete(principal, reminder_id)
        self._notify(principal, "delete", reminder)

    # -------------------------------------------------------------------------
    # Maintenance-driven generation
    # -------------------------------------------------------------------------

    def generate_from_maintenance_event(
        self,
        principal: Principal,
        car_id: str,
        category_key: str,
        performed_at: datetime,
        odometer_at_service: Optional[int],
        source_event_id: Optional[str],
    ) -> Optional[Reminder]:
        return self.coordinator.generate_from_maintenance_event(
            principal, car_id, category_key, performed_at, odometer_at_service, source_event_id
        )

    def delete_reminders_for_maintenance_event(
        self, principal: Principal, car_id: str, source_event_id: str
    ) -> int:
        return self.coordinator.delete_reminders_for_maintenance_event(
            principal, car_id, source_event_id
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def _guard(self, principal: Principal, reminder: Reminder):
        if reminder.category is None:
            return contextlib.nullcontext()
        return self.coordinator.lock_for(principal, reminder.car_id, reminder.category)

    def _apply(self, principal, reminder_id: str, action: str, transition, *args) -> Reminder:
        reminder = self.get_reminder(principal, reminder_id)
        with self._guard(principal, reminder):
            reminder = self.get_reminder(principal, reminder_id)
            transition(reminder, *args)
            self.store.save(principal, reminder)
        logger.info("Reminder %s: %s -> %s", reminder_id, action, reminder.status.value)
        self._notify(principal, action, reminder)
        return reminder

    def mark_done(self, principal: Principal, reminder_id: str, now: Optional[datetime] = None) -> Reminder:
        return self._apply(principal, reminder_id, "done", lifecycle.mark_done, now)

    def dismiss(self, principal: Principal, reminder_id: str, now: Optional[datetime] = None) -> Reminder:
        return self._apply(principal, reminder_id, "dismiss", lifecycle.dismiss, now)

    def snooze(
        self,
        principal: Principal,
        reminder_id: str,
        days: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Reminder:
        if days is None:
            days = self.config.default_snooze_days
        return self._apply(principal, reminder_id, "snooze", lifecycle.snooze, days, now)

    # -------------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------------

    def generate_initial_reminders(
        self, principal: Principal, vehicle: VehicleProfile, now: Optional[datetime] = None
    ) -> List[SuggestionSpec]:
        require_principal(principal)
        return generate_initial_reminders(vehicle, now, self.config)

    def _save_suggestions(self, principal: Principal, car_id: str, specs: List[SuggestionSpec]) -> List[Reminder]:
        saved = []
        for spec in specs:
            reminder = spec.to_reminder(car_id, notes=auto_generated_note(spec.source))
            self.store.save(principal, reminder)
            self._notify(principal, "create", reminder)
            saved.append(reminder)
        return saved

    def provision_vehicle(
        self, principal: Principal, vehicle: VehicleProfile, now: Optional[datetime] = None
    ) -> List[Reminder]:
        """Generate and save the starter reminder set for a newly registered vehicle."""
        principal = require_principal(principal)
        specs = generate_initial_reminders(vehicle, now, self.config)
        saved = self._save_suggestions(principal, vehicle.id, specs)
        logger.info("Provisioned %d reminder(s) for car %s", len(saved), vehicle.id)
        return saved

    def update_inspection_reminder(
        self,
        principal: Principal,
        car_id: str,
        next_inspection_date: datetime,
        now: Optional[datetime] = None,
    ) -> Reminder:
        """Replace the provisioned inspection reminder after the inspection date changes."""
        principal = require_principal(principal)
        for old in self.store.find(principal, car_id, Category.INSPECTION):
            if old.is_auto_generated:
                self.store.delete(principal, old.id)
                self._notify(principal, "delete", old)
        spec = generate_inspection_reminder(next_inspection_date, now)
        return self._save_suggestions(principal, car_id, [spec])[0]

    def clear_auto_reminders(self, principal: Principal, car_id: str) -> int:
        """Delete every engine-generated reminder of a car. Manual reminders stay."""
        principal = require_principal(principal)
        return self._clear(principal, car_id, auto_only=True)

    def clear_all_reminders(self, principal: Principal, car_id: str) -> int:
        """Delete every reminder of a car."""
        principal = require_principal(principal)
        return self._clear(principal, car_id, auto_only=False)

    def _clear(self, principal: Principal, car_id: str, auto_only: bool) -> int:
        removed = 0
        for reminder in self.store.list_by_car(principal, car_id):
            if auto_only and not reminder.is_auto_generated:
                continue
            self.store.delete(principal, reminder.id)
            self._notify(principal, "delete", reminder)
            removed += 1
        logger.info("Cleared %d reminder(s) for car %s", removed, car_id)
        return removed
