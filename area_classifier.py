"""
Area type classification.

Rules are evaluated in precedence order: lower priority number first, and
among equal priorities the rule declared earlier. The first matching rule
decides the area type. The last rule always matches, so running out of
rules means the rule table itself is broken.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Tuple

from all_types.internal_types import (
    AnchorMetrics,
    AreaType,
    CompetitionMetrics,
    LevelBucket,
    TrafficLevel,
    TrafficMetrics,
)
from categories import COMMERCIAL_CATEGORY_KEYS, RESIDENTIAL_CATEGORY_KEYS
from risk_errors import AreaClassificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AreaFeatures:
    competition: CompetitionMetrics
    traffic: TrafficMetrics
    anchor: AnchorMetrics
    total_stores: int
    commercial_ratio: float
    residential_ratio: float

    @property
    def station_distance_m(self) -> Optional[int]:
        return self.anchor.station.distance_m if self.anchor.station else None


def store_mix_features(
    store_counts: Mapping[str, int],
    total_stores: int,
    competition: CompetitionMetrics,
    traffic: TrafficMetrics,
    anchor: AnchorMetrics,
) -> AreaFeatures:
    commercial = sum(v for k, v in store_counts.items() if k in COMMERCIAL_CATEGORY_KEYS)
    residential = sum(v for k, v in store_counts.items() if k in RESIDENTIAL_CATEGORY_KEYS)
    return AreaFeatures(
        competition=competition,
        traffic=traffic,
        anchor=anchor,
        total_stores=total_stores,
        commercial_ratio=commercial / total_stores if total_stores else 0.0,
        residential_ratio=residential / total_stores if total_stores else 0.0,
    )


@dataclass(frozen=True)
class AreaThresholds:
    weekend_ratio_min: float = 1.5
    hotspot_station_m: float = 300.0
    hotspot_commercial_ratio: float = 0.7
    core_commercial_ratio: float = 0.6
    residential_max_stores: int = 20
    residential_ratio: float = 0.4


@dataclass(frozen=True)
class AreaRule:
    name: str
    priority: int
    area_type: AreaType
    matches: Callable[[AreaFeatures, AreaThresholds], bool]


def _special_weekend(f: AreaFeatures, t: AreaThresholds) -> bool:
    return f.traffic.weekend_ratio >= t.weekend_ratio_min


def _special_station_hotspot(f: AreaFeatures, t: AreaThresholds) -> bool:
    distance = f.station_distance_m
    return distance is not None and distance <= t.hotspot_station_m and f.commercial_ratio > t.hotspot_commercial_ratio


def _commercial_core(f: AreaFeatures, t: AreaThresholds) -> bool:
    if f.commercial_ratio <= t.core_commercial_ratio:
        return False
    if f.traffic.level == TrafficLevel.HIGH:
        return True
    return f.traffic.level == TrafficLevel.MEDIUM and f.competition.density_level != LevelBucket.LOW


def _residential(f: AreaFeatures, t: AreaThresholds) -> bool:
    return f.total_stores < t.residential_max_stores or f.residential_ratio > t.residential_ratio


def _always(f: AreaFeatures, t: AreaThresholds) -> bool:
    return True


DEFAULT_AREA_RULES: Tuple[AreaRule, ...] = (
    AreaRule("special_weekend", 1, AreaType.SPECIAL, _special_weekend),
    AreaRule("special_station_hotspot", 1, AreaType.SPECIAL, _special_station_hotspot),
    AreaRule("commercial_core", 2, AreaType.COMMERCIAL_CORE, _commercial_core),
    AreaRule("residential", 3, AreaType.RESIDENTIAL, _residential),
    AreaRule("mixed", 9, AreaType.MIXED, _always),
)


class AreaClassifier:
    def __init__(self, rules: Tuple[AreaRule, ...] = DEFAULT_AREA_RULES, thresholds: AreaThresholds = AreaThresholds()):
        # Stable sort keeps declaration order among equal priorities
        self.rules = tuple(sorted(rules, key=lambda rule: rule.priority))
        self.thresholds = thresholds

    def matching_rule(self, features: AreaFeatures) -> AreaRule:
        for rule in self.rules:
            if rule.matches(features, self.thresholds):
                return rule
        logger.error(f"No area rule matched features {features}")
        raise AreaClassificationError("no area classification rule matched")

    def classify(self, features: AreaFeatures) -> AreaType:
        rule = self.matching_rule(features)
        logger.debug(f"Area classified as {rule.area_type.value} by rule {rule.name}")
        return rule.area_type
