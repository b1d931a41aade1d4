"""Reminder class - a scheduled maintenance obligation for a vehicle."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .category import Category
from .kind import ReminderKind
from .status import ReminderStatus


@dataclass
class Threshold:
    """Interval used to compute a reminder's due point."""

    months_offset: Optional[float] = None
    km_offset: Optional[int] = None

    @property
    def is_empty(self) -> bool:
        return self.months_offset is None and self.km_offset is None


@dataclass
class OilChangeEnrichment:
    """Purchase/booking metadata attached to oil-change reminders by an external resolver."""

    purchase_candidates: List[Dict[str, Any]] = field(default_factory=list)
    reservation_url: Optional[str] = None
    oil_spec: Optional[str] = None
    last_oil_change_at: Optional[datetime] = None


class Reminder:
    """A maintenance reminder with a calendar and/or odometer trigger."""

    def __init__(
            self,
            car_id: str,
            kind: ReminderKind,
            title: str,
            due_date: Optional[datetime] = None,
            due_odometer_km: Optional[int] = None,
            base_entry_ref: Optional[str] = None,
            threshold: Optional[Threshold] = None,
            status: ReminderStatus = ReminderStatus.ACTIVE,
            notes: str = "",
            category: Optional[Category] = None,
            enrichment: Optional[OilChangeEnrichment] = None,
            id: Optional[str] = None,
            created_at: Optional[datetime] = None,
            updated_at: Optional[datetime] = None,
    ):
        if due_odometer_km is not None and due_odometer_km < 0:
            raise ValueError(f"due_odometer_km must be non-negative, got {due_odometer_km}")
        self.id = id
        self.car_id = car_id
        self.kind = kind
        self.title = title
        self.due_date = due_date
        self.due_odometer_km = due_odometer_km
        self.base_entry_ref = base_entry_ref
        self.threshold = threshold or Threshold()
        self.status = status
        self.notes = notes or ""
        self.category = category
        self.enrichment = enrichment
        self.created_at = created_at
        self.updated_at = updated_at

    @property
    def is_open(self) -> bool:
        """True while the reminder can still change status."""
        return not self.status.is_terminal

    @property
    def is_auto_generated(self) -> bool:
        return self.notes.startswith(AUTO_GENERATED_PREFIX)

    def __repr__(self) -> str:
        return (
            f"Reminder(id={self.id!r}, car_id={self.car_id!r}, kind={self.kind.value}, "
            f"title={self.title!r}, status={self.status.value})"
        )


AUTO_GENERATED_PREFIX = "auto-generated:"


def auto_generated_note(source: str) -> str:
    """Provenance string stored in the notes of engine-generated reminders."""
    return f"{AUTO_GENERATED_PREFIX} {source}"
