"""Reminder persistence: the store contract plus YAML-file and in-memory stores."""

import copy
import re
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .auth import Principal
from .calculations import naive_local
from .category import Category
from .errors import ReminderNotFoundError
from .kind import ReminderKind
from .reminder import OilChangeEnrichment, Reminder, Threshold
from .status import ReminderStatus


def matches_category(reminder: Reminder, category: Category) -> bool:
    """
    True when a reminder belongs to a category.

    Reminders carrying an explicit category match on it alone; older
    reminders without one fall back to matching the title against aliases.
    """
    if reminder.category is not None:
        return reminder.category == category
    return category.matches_title(reminder.title)


class ReminderStore:
    """Persistence contract. All calls are scoped to a principal."""

    def save(self, principal: Principal, reminder: Reminder) -> str:
        raise NotImplementedError

    def delete(self, principal: Principal, reminder_id: str) -> None:
        raise NotImplementedError

    def get(self, principal: Principal, reminder_id: str) -> Optional[Reminder]:
        raise NotImplementedError

    def list_all(self, principal: Principal) -> List[Reminder]:
        raise NotImplementedError

    def list_by_car(self, principal: Principal, car_id: str) -> List[Reminder]:
        return [r for r in self.list_all(principal) if r.car_id == car_id]

    def find(self, principal: Principal, car_id: str, category: Category) -> List[Reminder]:
        """Reminders of a car that belong to the given category."""
        return [r for r in self.list_by_car(principal, car_id) if matches_category(r, category)]


def _stamp(reminder: Reminder) -> None:
    now = datetime.now()
    if reminder.id is None:
        reminder.id = uuid.uuid4().hex
    if reminder.created_at is None:
        reminder.created_at = now
    reminder.updated_at = now


class MemoryReminderStore(ReminderStore):
    """Keeps reminders in process memory; handy for tests and previews."""

    def __init__(self):
        self._lock = threading.Lock()
        self._data: Dict[str, Dict[str, Reminder]] = {}

    def save(self, principal: Principal, reminder: Reminder) -> str:
        with self._lock:
            _stamp(reminder)
            self._data.setdefault(principal.user_id, {})[reminder.id] = copy.deepcopy(reminder)
            return reminder.id

    def delete(self, principal: Principal, reminder_id: str) -> None:
        with self._lock:
            reminders = self._data.get(principal.user_id, {})
            if reminder_id not in reminders:
                raise ReminderNotFoundError(reminder_id)
            del reminders[reminder_id]

    def get(self, principal: Principal, reminder_id: str) -> Optional[Reminder]:
        with self._lock:
            reminder = self._data.get(principal.user_id, {}).get(reminder_id)
            return copy.deepcopy(reminder) if reminder is not None else None

    def list_all(self, principal: Principal) -> List[Reminder]:
        with self._lock:
            return [copy.deepcopy(r) for r in self._data.get(principal.user_id, {}).values()]


# =============================================================================
# YAML serialization
# =============================================================================


def _format_datetime(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_datetime(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return naive_local(value)
    return naive_local(datetime.fromisoformat(str(value)))


def reminder_to_dict(reminder: Reminder) -> Dict[str, Any]:
    """Serialize a Reminder to the YAML dict format (camelCase keys), omitting None."""
    d: Dict[str, Any] = {
        "id": reminder.id,
        "carId": reminder.car_id,
        "kind": reminder.kind.value,
        "title": reminder.title,
        "status": reminder.status.value,
    }
    if reminder.due_date is not None:
        d["dueDate"] = _format_datetime(reminder.due_date)
    if reminder.due_odometer_km is not None:
        d["dueOdoKm"] = reminder.due_odometer_km
    if reminder.base_entry_ref is not None:
        d["baseEntryRef"] = reminder.base_entry_ref
    threshold = {}
    if reminder.threshold.months_offset is not None:
        threshold["months"] = reminder.threshold.months_offset
    if reminder.threshold.km_offset is not None:
        threshold["km"] = reminder.threshold.km_offset
    if threshold:
        d["threshold"] = threshold
    if reminder.notes:
        d["notes"] = reminder.notes
    if reminder.category is not None:
        d["category"] = reminder.category.value
    if reminder.enrichment is not None:
        d["enrichment"] = _enrichment_to_dict(reminder.enrichment)
    if reminder.created_at is not None:
        d["createdAt"] = _format_datetime(reminder.created_at)
    if reminder.updated_at is not None:
        d["updatedAt"] = _format_datetime(reminder.updated_at)
    return d


def _enrichment_to_dict(enrichment: OilChangeEnrichment) -> Dict[str, Any]:
    d: Dict[str, Any] = {"purchaseCandidates": list(enrichment.purchase_candidates)}
    if enrichment.reservation_url is not None:
        d["reservationUrl"] = enrichment.reservation_url
    if enrichment.oil_spec is not None:
        d["oilSpec"] = enrichment.oil_spec
    if enrichment.last_oil_change_at is not None:
        d["lastOilChangeAt"] = _format_datetime(enrichment.last_oil_change_at)
    return d


def parse_reminder(dct: Dict[str, Any]) -> Reminder:
    """Parse a YAML dict into a Reminder."""
    threshold = dct.get("threshold") or {}
    enrichment = dct.get("enrichment")
    category = dct.get("category")
    return Reminder(
        car_id=dct["carId"],
        kind=ReminderKind(dct["kind"]),
        title=dct["title"],
        due_date=_parse_datetime(dct.get("dueDate")),
        due_odometer_km=dct.get("dueOdoKm"),
        base_entry_ref=dct.get("baseEntryRef"),
        threshold=Threshold(
            months_offset=threshold.get("months"),
            km_offset=threshold.get("km"),
        ),
        status=ReminderStatus(dct.get("status", ReminderStatus.ACTIVE.value)),
        notes=dct.get("notes") or "",
        category=Category(category) if category else None,
        enrichment=OilChangeEnrichment(
            purchase_candidates=enrichment.get("purchaseCandidates") or [],
            reservation_url=enrichment.get("reservationUrl"),
            oil_spec=enrichment.get("oilSpec"),
            last_oil_change_at=_parse_datetime(enrichment.get("lastOilChangeAt")),
        ) if enrichment else None,
        id=dct.get("id"),
        created_at=_parse_datetime(dct.get("createdAt")),
        updated_at=_parse_datetime(dct.get("updatedAt")),
    )


class YamlReminderStore(ReminderStore):
    """
    One YAML file per principal under a directory.

    Each file holds a top-level ``reminders`` list. Writes load the raw
    YAML, modify the list, and write the whole file back.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def path_for(self, principal: Principal) -> Path:
        """YAML file holding a principal's reminders."""
        safe_id = re.sub(r"[^A-Za-z0-9_.-]", "_", principal.user_id)
        return self.directory / f"{safe_id}.yaml"

    def _load(self, principal: Principal) -> Dict[str, Any]:
        path = self.path_for(principal)
        if not path.exists():
            return {"reminders": []}
        with open(path, "r") as fp:
            data = yaml.load(fp, Loader=yaml.SafeLoader) or {}
        if data.get("reminders") is None:
            data["reminders"] = []
        return data

    def _write(self, principal: Principal, data: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.path_for(principal), "w") as fp:
            yaml.dump(
                data,
                fp,
                default_flow_style=False,
                allow_unicode=True,
                sort_keys=False,
                width=120,
            )

    def save(self, principal: Principal, reminder: Reminder) -> str:
        with self._lock:
            data = self._load(principal)
            _stamp(reminder)
            entry = reminder_to_dict(reminder)
            rows = data["reminders"]
            for index, row in enumerate(rows):
                if row.get("id") == reminder.id:
                    rows[index] = entry
                    break
            else:
                rows.append(entry)
            self._write(principal, data)
            return reminder.id

    def delete(self, principal: Principal, reminder_id: str) -> None:
        with self._lock:
            data = self._load(principal)
            rows = data["reminders"]
            remaining = [row for row in rows if row.get("id") != reminder_id]
            if len(remaining) == len(rows):
                raise ReminderNotFoundError(reminder_id)
            data["reminders"] = remaining
            self._write(principal, data)

    def get(self, principal: Principal, reminder_id: str) -> Optional[Reminder]:
        with self._lock:
            for row in self._load(principal)["reminders"]:
                if row.get("id") == reminder_id:
                    return parse_reminder(row)
        return None

    def list_all(self, principal: Principal) -> List[Reminder]:
        with self._lock:
            return [parse_reminder(row) for row in self._load(principal)["reminders"]]
