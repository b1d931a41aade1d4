"""
Initial reminder set for a newly registered vehicle.

Produces, relative to "now":
- one inspection (車検) countdown reminder, if the next inspection date is known
- one annual vehicle-tax reminder on a fixed calendar date
- a standard maintenance bundle (oil, filter, brake fluid, coolant, tires)
- a distance-estimated oil reminder when monthly mileage is known
"""

import calendar
import math
from datetime import datetime
from typing import List, Optional, Tuple

from .calculations import SECONDS_PER_DAY, calc_due_date
from .category import Category
from .config import EngineConfig
from .kind import ReminderKind
from .priority import Priority
from .reminder import Threshold
from .suggestions import SuggestionSpec
from .vehicle import VehicleProfile

# (source, category, months, title, priority)
MAINTENANCE_BUNDLE: List[Tuple[str, Category, int, str, Priority]] = [
    ("oil_time", Category.OIL_CHANGE, 6, "エンジンオイル交換（6ヶ月）", Priority.MEDIUM),
    ("oil_filter", Category.OIL_FILTER, 12, "オイルフィルター交換（12ヶ月）", Priority.LOW),
    ("brake_fluid", Category.BRAKE_FLUID, 24, "ブレーキフルード交換（24ヶ月）", Priority.LOW),
    ("coolant", Category.COOLANT, 24, "クーラント交換（24ヶ月）", Priority.LOW),
    ("tire_check", Category.TIRE_CHECK, 12, "タイヤ点検（12ヶ月）", Priority.LOW),
]


def _days_between(target: datetime, now: datetime) -> int:
    return math.ceil((target - now).total_seconds() / SECONDS_PER_DAY)


def inspection_priority(days: int) -> Priority:
    """Inspection bucket: >30 LOW, >14 MEDIUM, >7 HIGH, else URGENT."""
    if days > 30:
        return Priority.LOW
    if days > 14:
        return Priority.MEDIUM
    if days > 7:
        return Priority.HIGH
    return Priority.URGENT


def inspection_title(days: int) -> str:
    if days > 30:
        return f"車検まであと{days}日"
    if days > 14:
        return f"車検まであと{days}日（準備開始）"
    if days > 7:
        return f"車検まであと{days}日（予約推奨）"
    if days > 0:
        return f"車検まであと{days}日（緊急）"
    if days == 0:
        return "車検期限日（本日）"
    return f"車検期限切れ（{abs(days)}日経過）"


def tax_priority(days: int) -> Priority:
    """Tax bucket: >30 LOW, >14 MEDIUM, >0 HIGH, else URGENT."""
    if days > 30:
        return Priority.LOW
    if days > 14:
        return Priority.MEDIUM
    if days > 0:
        return Priority.HIGH
    return Priority.URGENT


def tax_title(days: int) -> str:
    if days > 30:
        return "自動車税納付"
    if days > 14:
        return "自動車税納付（準備推奨）"
    if days > 0:
        return "自動車税納付（緊急）"
    if days == 0:
        return "自動車税納付期限日（本日）"
    return f"自動車税納付期限切れ（{abs(days)}日経過）"


def generate_inspection_reminder(
    next_inspection_date: datetime, now: Optional[datetime] = None
) -> SuggestionSpec:
    """Single countdown reminder for the inspection expiry date."""
    now = now or datetime.now()
    days = _days_between(next_inspection_date, now)
    return SuggestionSpec(
        category=Category.INSPECTION,
        kind=ReminderKind.TIME,
        title=inspection_title(days),
        due_date=next_inspection_date,
        threshold=Threshold(),
        priority=inspection_priority(days),
        source="shaken",
    )


def next_tax_due_date(
    now: Optional[datetime] = None, month: int = 5, day: int = 31
) -> datetime:
    """This year's tax due date, or next year's if it has already passed."""
    now = now or datetime.now()

    def on_year(year: int) -> datetime:
        last_day = calendar.monthrange(year, month)[1]
        return datetime(year, month, min(day, last_day))

    due = on_year(now.year)
    if due.date() < now.date():
        due = on_year(now.year + 1)
    return due


def generate_tax_reminder(
    now: Optional[datetime] = None, config: Optional[EngineConfig] = None
) -> SuggestionSpec:
    """Annual vehicle-tax reminder."""
    now = now or datetime.now()
    config = config or EngineConfig()
    due = next_tax_due_date(now, config.tax_due_month, config.tax_due_day)
    days = _days_between(due, now)
    return SuggestionSpec(
        category=Category.AUTO_TAX,
        kind=ReminderKind.TIME,
        title=tax_title(days),
        due_date=due,
        threshold=Threshold(months_offset=12),
        priority=tax_priority(days),
        source="auto_tax",
    )


def estimate_date_for_distance(
    current_km: float,
    avg_km_per_month: Optional[float],
    target_km: float,
    now: Optional[datetime] = None,
) -> Optional[datetime]:
    """
    Estimate when the odometer will reach target_km at the average monthly rate.

    Returns None when the rate is unknown or non-positive, or when the target
    is not ahead of the current reading.
    """
    if not avg_km_per_month or avg_km_per_month <= 0:
        return None
    remaining_km = target_km - current_km
    if remaining_km <= 0:
        return None
    months_needed = remaining_km / avg_km_per_month
    return calc_due_date(now or datetime.now(), months_needed)


def generate_maintenance_reminders(
    vehicle: VehicleProfile,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> List[SuggestionSpec]:
    """Standard time-based bundle plus the distance-estimated oil reminder."""
    now = now or datetime.now()
    config = config or EngineConfig()
    reminders = []

    for source, category, months, title, priority in MAINTENANCE_BUNDLE:
        reminders.append(
            SuggestionSpec(
                category=category,
                kind=ReminderKind.TIME,
                title=title,
                due_date=calc_due_date(now, months),
                threshold=Threshold(months_offset=months),
                priority=priority,
                source=source,
            )
        )

    if vehicle.average_km_per_month and vehicle.current_odometer_km is not None:
        target_km = vehicle.current_odometer_km + config.oil_distance_km
        estimated = estimate_date_for_distance(
            vehicle.current_odometer_km, vehicle.average_km_per_month, target_km, now
        )
        if estimated is not None:
            reminders.insert(
                1,
                SuggestionSpec(
                    category=Category.OIL_CHANGE,
                    kind=ReminderKind.DISTANCE,
                    title=f"エンジンオイル交換（{config.oil_distance_km:,}km）",
                    due_date=estimated,
                    due_odometer_km=target_km,
                    threshold=Threshold(km_offset=config.oil_distance_km),
                    priority=Priority.MEDIUM,
                    source="oil_km",
                ),
            )

    return reminders


def generate_initial_reminders(
    vehicle: VehicleProfile,
    now: Optional[datetime] = None,
    config: Optional[EngineConfig] = None,
) -> List[SuggestionSpec]:
    """Starter reminder set for a vehicle at onboarding."""
    now = now or datetime.now()
    reminders = []

    if vehicle.next_inspection_date is not None:
        reminders.append(generate_inspection_reminder(vehicle.next_inspection_date, now))

    reminders.append(generate_tax_reminder(now, config))
    reminders.extend(generate_maintenance_reminders(vehicle, now, config))

    return reminders
