"""
Survival (closure) metrics.

Real churn counts are used when the radius reports closures against a
non-empty previous period. Otherwise the closure rate is estimated from
the category baseline, adjusted for competition, traffic, rent and area
type. The two paths use different rate bases (period vs. annual) and are
bucketed with their own thresholds.

On the data-backed path net_change is the raw opening minus closure count
for the period; on the estimated path it is the rate difference.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from all_types.internal_types import (
    AreaType,
    CompetitionMetrics,
    CostMetrics,
    GridAggregate,
    LevelBucket,
    SurvivalMetrics,
    SurvivalTrend,
    TrafficLevel,
    TrafficMetrics,
)
from categories import Category
from risk_metrics.utils import clamp, round1

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SurvivalConfig:
    # Data-backed path, rate over one reporting period
    data_low_max: float = 5.0
    data_medium_max: float = 10.0

    # Estimated path, annual rate
    estimated_low_below: float = 30.0
    estimated_medium_below: float = 50.0
    min_rate: float = 5.0
    max_rate: float = 80.0

    # Same-category share of all stores in the radius
    crowded_share: float = 0.5
    crowded_slope: float = 40.0
    sparse_share: float = 0.2
    sparse_bonus: float = -5.0

    trend_band: float = 2.0

    traffic_adjustment: Mapping[TrafficLevel, float] = field(
        default_factory=lambda: MappingProxyType(
            {
                TrafficLevel.HIGH: -3.0,
                TrafficLevel.MEDIUM: 0.0,
                TrafficLevel.LOW: 3.0,
                TrafficLevel.VERY_LOW: 5.0,
            }
        )
    )
    rent_adjustment: Mapping[LevelBucket, float] = field(
        default_factory=lambda: MappingProxyType(
            {LevelBucket.LOW: -5.0, LevelBucket.MEDIUM: 0.0, LevelBucket.HIGH: 10.0}
        )
    )
    area_multiplier: Mapping[AreaType, float] = field(
        default_factory=lambda: MappingProxyType(
            {
                AreaType.RESIDENTIAL: 0.9,
                AreaType.MIXED: 1.0,
                AreaType.COMMERCIAL_CORE: 1.2,
                AreaType.SPECIAL: 1.3,
            }
        )
    )
    opening_area_adjustment: Mapping[AreaType, float] = field(
        default_factory=lambda: MappingProxyType(
            {
                AreaType.RESIDENTIAL: -5.0,
                AreaType.MIXED: 0.0,
                AreaType.COMMERCIAL_CORE: 10.0,
                AreaType.SPECIAL: 5.0,
            }
        )
    )


DEFAULT_SURVIVAL_CONFIG = SurvivalConfig()


def survival_trend(opening_rate: float, closure_rate: float, config: SurvivalConfig = DEFAULT_SURVIVAL_CONFIG) -> SurvivalTrend:
    net = opening_rate - closure_rate
    if net > config.trend_band:
        return SurvivalTrend.GROWING
    elif net < -config.trend_band:
        return SurvivalTrend.SHRINKING
    return SurvivalTrend.STABLE


def survival_summary(trend: SurvivalTrend, risk: LevelBucket, closure_rate: float, high_closure: float) -> str:
    if trend == SurvivalTrend.GROWING:
        if risk == LevelBucket.LOW:
            return "New stores keep opening here, which also means new competitors keep arriving."
        return "Openings are brisk but so is competition; entering without a clear edge is risky."
    if trend == SurvivalTrend.SHRINKING:
        if closure_rate > high_closure:
            return "Many stores have closed in this area; check on site why they left."
        return "The store count is shrinking; the area may be contracting."
    if risk == LevelBucket.LOW:
        return "The store count is holding steady with little churn."
    return "Openings and closures roughly cancel out; stores come and go easily here."


def _data_backed(aggregate: GridAggregate, config: SurvivalConfig) -> SurvivalMetrics:
    prev = aggregate.prev_period_count
    closure_rate = round1(aggregate.closure_count / prev * 100)
    opening_rate = round1(aggregate.opening_count / prev * 100)

    if closure_rate <= config.data_low_max:
        risk = LevelBucket.LOW
    elif closure_rate <= config.data_medium_max:
        risk = LevelBucket.MEDIUM
    else:
        risk = LevelBucket.HIGH

    trend = survival_trend(opening_rate, closure_rate, config)
    return SurvivalMetrics(
        closure_rate=closure_rate,
        opening_rate=opening_rate,
        net_change=float(aggregate.opening_count - aggregate.closure_count),
        risk=risk,
        trend=trend,
        is_estimated=False,
        summary=survival_summary(trend, risk, closure_rate, config.data_medium_max),
    )


def estimate_closure_rate(
    category: Category,
    competition: CompetitionMetrics,
    traffic: TrafficMetrics,
    cost: CostMetrics,
    area_type: AreaType,
    config: SurvivalConfig = DEFAULT_SURVIVAL_CONFIG,
) -> float:
    rate = 100.0 - category.base_survival_rate

    share = competition.same_category / competition.total if competition.total > 0 else 0.0
    if share > config.crowded_share:
        rate += (share - config.crowded_share) * config.crowded_slope
    elif share < config.sparse_share:
        rate += config.sparse_bonus

    rate += config.traffic_adjustment.get(traffic.level, 0.0)
    rate += config.rent_adjustment.get(cost.level, 0.0)
    rate *= config.area_multiplier.get(area_type, 1.0)
    return round1(clamp(rate, config.min_rate, config.max_rate))


def _estimated(category, competition, traffic, cost, area_type, config: SurvivalConfig) -> SurvivalMetrics:
    closure_rate = estimate_closure_rate(category, competition, traffic, cost, area_type, config)
    opening_rate = round1(category.opening_trend + config.opening_area_adjustment.get(area_type, 0.0))

    if closure_rate < config.estimated_low_below:
        risk = LevelBucket.LOW
    elif closure_rate < config.estimated_medium_below:
        risk = LevelBucket.MEDIUM
    else:
        risk = LevelBucket.HIGH

    trend = survival_trend(opening_rate, closure_rate, config)
    return SurvivalMetrics(
        closure_rate=closure_rate,
        opening_rate=opening_rate,
        net_change=round1(opening_rate - closure_rate),
        risk=risk,
        trend=trend,
        is_estimated=True,
        summary=survival_summary(trend, risk, closure_rate, config.estimated_medium_below),
    )


def calculate_survival(
    aggregate: GridAggregate,
    category: Category,
    competition: CompetitionMetrics,
    traffic: TrafficMetrics,
    cost: CostMetrics,
    area_type: AreaType,
    config: SurvivalConfig = DEFAULT_SURVIVAL_CONFIG,
) -> SurvivalMetrics:
    if aggregate.has_churn_data:
        return _data_backed(aggregate, config)
    logger.info(f"No churn data for {category.key}, estimating closure rate")
    return _estimated(category, competition, traffic, cost, area_type, config)
