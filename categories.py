"""
Business category registry.

Each category carries the weight profile used by the scorer plus the
baselines the survival estimator and the risk-card conditions read.
The registry is immutable; lookups go through ``get_category``.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from all_types.internal_types import MetricDimension
from risk_errors import UnknownCategory


@dataclass(frozen=True)
class WeightProfile:
    competition: float
    cost: float
    survival: float
    traffic: float
    anchor: float

    def as_mapping(self) -> Mapping[MetricDimension, float]:
        return MappingProxyType(
            {
                MetricDimension.COMPETITION: self.competition,
                MetricDimension.TRAFFIC: self.traffic,
                MetricDimension.COST: self.cost,
                MetricDimension.SURVIVAL: self.survival,
                MetricDimension.ANCHOR: self.anchor,
            }
        )

    def total(self) -> float:
        return self.competition + self.cost + self.survival + self.traffic + self.anchor


@dataclass(frozen=True)
class Category:
    key: str
    name: str
    group: str
    weights: WeightProfile
    base_survival_rate: float
    opening_trend: float = 25.0
    competition_multiplier: float = 1.0


def _category(key, name, group, weights, survival, opening=25.0, multiplier=1.0):
    return Category(
        key=key,
        name=name,
        group=group,
        weights=WeightProfile(*weights),
        base_survival_rate=survival,
        opening_trend=opening,
        competition_multiplier=multiplier,
    )


# weights are (competition, cost, survival, traffic, anchor)
_CATEGORIES = (
    # Restaurants
    _category("restaurant_korean", "Korean restaurant", "restaurant", (0.30, 0.30, 0.20, 0.15, 0.05), 55, 25, 1.2),
    _category("restaurant_western", "Western restaurant", "restaurant", (0.25, 0.25, 0.20, 0.25, 0.05), 52, 28, 1.6),
    _category("restaurant_japanese", "Japanese restaurant", "restaurant", (0.30, 0.25, 0.20, 0.20, 0.05), 58, 25, 1.5),
    _category("restaurant_chinese", "Chinese restaurant", "restaurant", (0.25, 0.25, 0.20, 0.15, 0.15), 60, 25, 1.2),
    _category("restaurant_chicken", "Fried chicken", "restaurant", (0.35, 0.25, 0.25, 0.10, 0.05), 48, 30, 1.3),
    _category("restaurant_pizza", "Pizza", "restaurant", (0.35, 0.25, 0.25, 0.10, 0.05), 50, 25, 1.3),
    _category("restaurant_fastfood", "Fast food", "restaurant", (0.30, 0.20, 0.20, 0.25, 0.05), 62, 25, 1.4),
    # Cafe / bakery
    _category("cafe", "Cafe", "cafe_bakery", (0.35, 0.20, 0.20, 0.20, 0.05), 45, 35, 2.2),
    _category("bakery", "Bakery", "cafe_bakery", (0.30, 0.25, 0.20, 0.20, 0.05), 55, 25, 1.6),
    _category("dessert", "Dessert", "cafe_bakery", (0.30, 0.20, 0.25, 0.20, 0.05), 50, 38, 1.8),
    # Bars
    _category("bar", "Bar / pub", "bar", (0.25, 0.25, 0.25, 0.20, 0.05), 52, 25, 1.4),
    # Retail
    _category("convenience", "Convenience store", "retail", (0.15, 0.20, 0.15, 0.25, 0.25), 72, 15, 1.1),
    _category("mart", "Supermarket", "retail", (0.20, 0.25, 0.20, 0.15, 0.20), 65, 25, 1.0),
    # Services
    _category("beauty", "Hair salon", "service", (0.25, 0.25, 0.20, 0.15, 0.15), 60, 22, 0.9),
    _category("nail", "Nail salon", "service", (0.30, 0.25, 0.25, 0.15, 0.05), 55, 25, 0.8),
    _category("laundry", "Laundry", "service", (0.20, 0.20, 0.15, 0.15, 0.30), 70, 25, 0.6),
    _category("pharmacy", "Pharmacy", "service", (0.15, 0.25, 0.10, 0.20, 0.30), 85, 25, 0.5),
    # Other
    _category("gym", "Gym", "other", (0.25, 0.30, 0.20, 0.10, 0.15), 55, 28, 0.9),
    _category("academy", "Academy", "other", (0.25, 0.25, 0.20, 0.10, 0.20), 62, 25, 0.8),
)

CATEGORY_REGISTRY: Mapping[str, Category] = MappingProxyType({c.key: c for c in _CATEGORIES})

CATEGORY_GROUPS = ("restaurant", "cafe_bakery", "bar", "retail", "service", "other")

# Store-mix groupings read by the area classifier
COMMERCIAL_CATEGORY_KEYS = frozenset(
    [c.key for c in _CATEGORIES if c.group in ("restaurant", "cafe_bakery", "bar")]
)
RESIDENTIAL_CATEGORY_KEYS = frozenset(["convenience", "laundry", "pharmacy", "mart", "beauty"])


def find_category(key: Optional[str]) -> Optional[Category]:
    if not key:
        return None
    return CATEGORY_REGISTRY.get(key)


def get_category(key: Optional[str]) -> Category:
    category = find_category(key)
    if category is None:
        raise UnknownCategory("target_category", f"unknown category '{key}'")
    return category
