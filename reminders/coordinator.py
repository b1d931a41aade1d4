"""Reminder generation from logged maintenance, with per-category dedup."""

import logging
import threading
from datetime import datetime
from typing import Dict, Optional, Tuple

from .auth import Principal, require_principal
from .category import Category
from .dispatch import SideEffectDispatcher
from .maintenance_event import MaintenanceEvent
from .reminder import OilChangeEnrichment, Reminder, auto_generated_note
from .store import ReminderStore
from .suggestions import ENRICH_OIL_CHANGE, suggest_next

logger = logging.getLogger("reminders.coordinator")


class ReminderCoordinator:
    """
    Turns maintenance events into reminders.

    Flow for each event:
    1. Look up the suggestion for the category (unknown -> nothing happens)
    2. Delete every reminder of the car in the same category
    3. Save the new ACTIVE reminder pointing back at the event
    4. For oil changes, enrich with purchase/booking data (best effort)

    Steps 2-3 run under a lock per (user, car, category) so two events for
    the same pair in this process cannot interleave.
    """

    def __init__(
        self,
        store: ReminderStore,
        enricher=None,
        vehicles=None,
        audit=None,
        dispatcher: Optional[SideEffectDispatcher] = None,
    ):
        self.store = store
        self.enricher = enricher
        self.vehicles = vehicles
        self.audit = audit
        self.dispatcher = dispatcher or SideEffectDispatcher()
        self._locks: Dict[Tuple[str, str, Category], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def lock_for(self, principal: Principal, car_id: str, category: Category) -> threading.Lock:
        """Lock serializing writes to one (user, car, category) reminder slot."""
        key = (principal.user_id, car_id, category)
        with self._locks_guard:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _notify(self, principal: Principal, action: str, reminder: Reminder) -> None:
        if self.audit is not None:
            self.dispatcher.submit(
                f"audit:{action}:{reminder.id}", self.audit.record, principal, action, reminder
            )

    def generate_from_maintenance_event(
        self,
        principal: Principal,
        car_id: str,
        category_key: str,
        performed_at: datetime,
        odometer_at_service: Optional[int],
        source_event_id: Optional[str],
    ) -> Optional[Reminder]:
        """Create the next reminder for a logged maintenance event, replacing stale ones."""
        principal = require_principal(principal)

        suggestion = suggest_next(category_key, performed_at, odometer_at_service)
        if suggestion is None:
            logger.debug("No suggestion for category %r on car %s", category_key, car_id)
            return None

        category = suggestion.category
        with self.lock_for(principal, car_id, category):
            self._remove_stale(principal, car_id, category)
            reminder = suggestion.to_reminder(
                car_id,
                base_entry_ref=source_event_id,
                notes=auto_generated_note(category.value.replace("_", " ")),
            )
            self.store.save(principal, reminder)

        logger.info(
            "Generated %s reminder %s for car %s from event %s",
            category.value, reminder.id, car_id, source_event_id,
        )
        self._notify(principal, "create", reminder)

        if suggestion.special_flag == ENRICH_OIL_CHANGE and self.enricher is not None:
            self.dispatcher.submit(
                f"enrich:{reminder.id}", self._enrich, principal, reminder, performed_at
            )

        return reminder

    def generate_from_event(
        self, principal: Principal, event: MaintenanceEvent
    ) -> Optional[Reminder]:
        """Same as generate_from_maintenance_event, taking a MaintenanceEvent."""
        return self.generate_from_maintenance_event(
            principal,
            event.car_id,
            event.category_key,
            event.performed_at,
            event.odometer_at_service,
            event.event_id,
        )

    def _remove_stale(self, principal: Principal, car_id: str, category: Category) -> int:
        """Delete existing reminders of the category. Failed deletions are logged and skipped."""
        removed = 0
        for stale in self.store.find(principal, car_id, category):
            try:
                self.store.delete(principal, stale.id)
            except Exception as e:
                logger.warning(
                    "Could not delete stale %s reminder %s for car %s: %s",
                    category.value, stale.id, car_id, e,
                )
                continue
            removed += 1
            self._notify(principal, "delete", stale)
        if removed:
            logger.info("Removed %d stale %s reminder(s) for car %s", removed, category.value, car_id)
        return removed

    def _enrich(self, principal: Principal, reminder: Reminder, performed_at: datetime) -> None:
        oil_spec = None
        if self.vehicles is not None and hasattr(self.vehicles, "oil_spec"):
            oil_spec = self.vehicles.oil_spec(principal, reminder.car_id)

        result = self.enricher.resolve_purchase_and_booking(reminder.car_id, oil_spec) or {}
        enrichment = OilChangeEnrichment(
            purchase_candidates=list(result.get("purchase_candidates") or []),
            reservation_url=result.get("reservation_url"),
            oil_spec=oil_spec,
            last_oil_change_at=performed_at,
        )

        # Merge into the stored copy; it may have been replaced or closed meanwhile
        with self.lock_for(principal, reminder.car_id, Category.OIL_CHANGE):
            current = self.store.get(principal, reminder.id)
            if current is None or not current.is_open:
                logger.debug("Skipping enrichment of replaced or closed reminder %s", reminder.id)
                return
            current.enrichment = enrichment
            self.store.save(principal, current)
        reminder.enrichment = enrichment
        logger.debug("Enriched oil change reminder %s", reminder.id)

    def delete_reminders_for_maintenance_event(
        self, principal: Principal, car_id: str, source_event_id: str
    ) -> int:
        """Delete every reminder generated from the given maintenance event."""
        principal = require_principal(principal)
        removed = 0
        for reminder in self.store.list_by_car(principal, car_id):
            if reminder.base_entry_ref == source_event_id:
                self.store.delete(principal, reminder.id)
                removed += 1
                self._notify(principal, "delete", reminder)
        logger.info(
            "Deleted %d reminder(s) for maintenance event %s on car %s",
            removed, source_event_id, car_id,
        )
        return removed
