"""Maintenance categories, their aliases, and key normalization."""

import re
import unicodedata
from enum import Enum
from typing import Dict, Optional, Tuple


def normalize_key(text: Optional[str]) -> str:
    """
    Normalize a free-text maintenance title for matching.

    NFKC folds full-width/half-width variants, casefold handles case, and
    runs of whitespace collapse to a single space.
    """
    if not text:
        return ""
    folded = unicodedata.normalize("NFKC", text).casefold()
    return re.sub(r"\s+", " ", folded).strip()


class Category(Enum):
    """Normalized maintenance category assigned to generated reminders."""

    OIL_CHANGE = "oil_change"
    OIL_FILTER = "oil_filter"
    BRAKE_FLUID = "brake_fluid"
    COOLANT = "coolant"
    TIRE_ROTATION = "tire_rotation"
    TIRE_CHECK = "tire_check"
    AIR_FILTER = "air_filter"
    SPARK_PLUG = "spark_plug"
    WIPER = "wiper"
    INSPECTION = "inspection"
    AUTO_TAX = "auto_tax"

    @property
    def aliases(self) -> Tuple[str, ...]:
        """Normalized titles that identify this category."""
        return ALIASES[self]

    @classmethod
    def from_key(cls, category_key: Optional[str]) -> Optional["Category"]:
        """
        Resolve a free-text category key to a Category.

        Matches the enum value itself ("oil_change") or any alias exactly
        after normalization. Unknown keys return None.
        """
        key = normalize_key(category_key)
        if not key:
            return None
        for category in cls:
            if key == category.value or key in category.aliases:
                return category
        return None

    @classmethod
    def for_title(cls, title: Optional[str]) -> Optional["Category"]:
        """
        Category whose alias best matches a free-text title.

        The longest alias contained in the normalized title wins; on a tie
        the alias ending further right wins ("engine oil filter" is a
        filter). None when no alias occurs in the title.
        """
        normalized = normalize_key(title)
        if not normalized:
            return None
        best, best_key = None, (0, 0)
        for category in cls:
            for alias in category.aliases:
                start = normalized.rfind(alias)
                if start < 0:
                    continue
                key = (len(alias), start + len(alias))
                if key > best_key:
                    best, best_key = category, key
        return best

    def matches_title(self, title: Optional[str]) -> bool:
        """True when the title's best-matching category is this one."""
        return Category.for_title(title) is self


ALIASES: Dict[Category, Tuple[str, ...]] = {
    Category.OIL_CHANGE: (
        "oil change",
        "engine oil",
        "engine oil change",
        "オイル交換",
        "エンジンオイル",
        "エンジンオイル交換",
    ),
    Category.OIL_FILTER: (
        "oil filter",
        "oil element",
        "オイルフィルター",
        "オイルフィルター交換",
        "オイルエレメント",
        "エレメント交換",
    ),
    Category.BRAKE_FLUID: (
        "brake fluid",
        "ブレーキフルード",
        "ブレーキフルード交換",
        "ブレーキオイル",
    ),
    Category.COOLANT: (
        "coolant",
        "クーラント",
        "クーラント交換",
        "冷却水",
    ),
    Category.TIRE_ROTATION: (
        "tire rotation",
        "タイヤローテーション",
    ),
    Category.TIRE_CHECK: (
        "tire check",
        "tire inspection",
        "タイヤ点検",
    ),
    Category.AIR_FILTER: (
        "air filter",
        "air cleaner",
        "エアフィルター",
        "エアフィルター交換",
        "エアクリーナー",
    ),
    Category.SPARK_PLUG: (
        "spark plug",
        "spark plugs",
        "スパークプラグ",
        "スパークプラグ交換",
    ),
    Category.WIPER: (
        "wiper",
        "wiper blade",
        "ワイパー",
        "ワイパーゴム交換",
    ),
    Category.INSPECTION: (
        "inspection",
        "shaken",
        "車検",
    ),
    Category.AUTO_TAX: (
        "auto tax",
        "vehicle tax",
        "自動車税",
    ),
}
