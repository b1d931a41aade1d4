"""Suggestion catalog: maps a maintenance category to its next due point."""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .calculations import calc_due_date, calc_due_km
from .category import Category
from .kind import ReminderKind
from .priority import Priority
from .reminder import Reminder, Threshold

# Special flag: attach purchase/booking metadata after creation
ENRICH_OIL_CHANGE = "oil_change_enrichment"


@dataclass(frozen=True)
class SuggestionRule:
    """How far ahead the next service falls after a maintenance category is performed."""

    category: Category
    title: str
    months_offset: Optional[float] = None
    km_offset: Optional[int] = None
    special_flag: Optional[str] = None

    @property
    def kind(self) -> ReminderKind:
        return ReminderKind.from_offsets(self.months_offset, self.km_offset)

    @property
    def threshold(self) -> Threshold:
        return Threshold(months_offset=self.months_offset, km_offset=self.km_offset)


@dataclass
class SuggestionSpec:
    """A reminder ready to be created: due point, title, and provenance."""

    category: Optional[Category]
    kind: ReminderKind
    title: str
    due_date: Optional[datetime] = None
    due_odometer_km: Optional[int] = None
    threshold: Optional[Threshold] = None
    special_flag: Optional[str] = None
    priority: Optional[Priority] = None
    source: Optional[str] = None

    def to_reminder(
        self,
        car_id: str,
        base_entry_ref: Optional[str] = None,
        notes: str = "",
    ) -> Reminder:
        """Materialize an unsaved ACTIVE reminder from this suggestion."""
        return Reminder(
            car_id=car_id,
            kind=self.kind,
            title=self.title,
            due_date=self.due_date,
            due_odometer_km=self.due_odometer_km,
            base_entry_ref=base_entry_ref,
            threshold=self.threshold or Threshold(),
            notes=notes,
            category=self.category,
        )


CATALOG: List[SuggestionRule] = [
    SuggestionRule(
        Category.OIL_CHANGE,
        "次回オイル交換",
        months_offset=6,
        km_offset=5000,
        special_flag=ENRICH_OIL_CHANGE,
    ),
    SuggestionRule(
        Category.OIL_FILTER, "次回オイルフィルター交換", months_offset=12, km_offset=10000
    ),
    SuggestionRule(Category.BRAKE_FLUID, "次回ブレーキフルード交換", months_offset=24),
    SuggestionRule(Category.TIRE_ROTATION, "次回タイヤローテーション", km_offset=10000),
    SuggestionRule(
        Category.AIR_FILTER, "次回エアフィルター交換", months_offset=12, km_offset=20000
    ),
    SuggestionRule(Category.SPARK_PLUG, "次回スパークプラグ交換", km_offset=100000),
    SuggestionRule(Category.COOLANT, "次回クーラント交換", months_offset=24),
    SuggestionRule(Category.WIPER, "次回ワイパーゴム交換", months_offset=12),
]


def catalog() -> List[SuggestionRule]:
    """All known suggestion rules, in catalog order."""
    return list(CATALOG)


def get_rule(category: Category) -> Optional[SuggestionRule]:
    """Find the suggestion rule for a category, if any."""
    for rule in CATALOG:
        if rule.category == category:
            return rule
    return None


def find_rule(category_key: str) -> Optional[SuggestionRule]:
    """Resolve a free-text category key to its suggestion rule."""
    category = Category.from_key(category_key)
    if category is None:
        return None
    return get_rule(category)


def suggest_next(
    category_key: str,
    performed_at: datetime,
    odometer_at_service: Optional[int],
) -> Optional[SuggestionSpec]:
    """
    Suggest the next reminder after a maintenance category was performed.

    Unknown categories return None: free-text titles that don't map onto
    the catalog never produce reminders.
    """
    rule = find_rule(category_key)
    if rule is None:
        return None

    due_date = calc_due_date(performed_at, rule.months_offset)
    due_km = calc_due_km(odometer_at_service, rule.km_offset)

    return SuggestionSpec(
        category=rule.category,
        kind=rule.kind,
        title=rule.title,
        due_date=due_date,
        due_odometer_km=due_km,
        threshold=rule.threshold,
        special_flag=rule.special_flag,
        source=rule.category.value,
    )
