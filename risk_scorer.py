"""
Composite risk score.

Each metric becomes a 0-100 sub-score where higher means riskier. The
category weight profile combines them, an area-type adjustment is added,
and the result is clamped to [0, 100] and rounded.
"""

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from all_types.internal_types import (
    AnchorMetrics,
    AreaType,
    MetricDimension,
    MetricsBundle,
    RiskLevel,
    ScoreBreakdown,
)
from categories import Category
from risk_metrics.utils import clamp, piecewise_linear, round1

logger = logging.getLogger(__name__)

Points = Tuple[Tuple[float, float], ...]


@dataclass(frozen=True)
class ScoringConfig:
    competition_points: Points = ((0, 0), (5, 30), (20, 100))
    cost_points: Points = ((0, 0), (80, 30), (200, 100))
    survival_data_points: Points = ((0, 0), (5, 30), (15, 100))
    survival_estimated_points: Points = ((0, 0), (30, 30), (50, 100))
    traffic_points: Points = ((20, 100), (60, 0))

    no_anchor_score: float = 80.0
    # (max station distance, points); farther or missing stations take station_far_score
    station_steps: Tuple[Tuple[float, float], ...] = ((100, 0), (300, 10), (500, 20))
    station_far_score: float = 40.0
    missing_mart_score: float = 10.0
    missing_department_score: float = 5.0
    # (min Starbucks branches in radius, points); fewer branches take brand_sparse_score
    brand_steps: Tuple[Tuple[int, float], ...] = ((3, 0), (1, 5))
    brand_sparse_score: float = 10.0
    missing_brand_score: float = 15.0
    anchor_cap: float = 80.0

    area_adjustment: Mapping[AreaType, float] = field(
        default_factory=lambda: MappingProxyType(
            {
                AreaType.RESIDENTIAL: -3.0,
                AreaType.MIXED: 0.0,
                AreaType.COMMERCIAL_CORE: 5.0,
                AreaType.SPECIAL: 8.0,
            }
        )
    )
    max_area_adjustment: float = 10.0


DEFAULT_SCORING_CONFIG = ScoringConfig()

# Lower bound of each band, ascending
DEFAULT_RISK_BANDS: Tuple[Tuple[float, RiskLevel], ...] = (
    (0, RiskLevel.LOW),
    (30, RiskLevel.MEDIUM),
    (50, RiskLevel.HIGH),
    (70, RiskLevel.VERY_HIGH),
)


def risk_level(score: float, bands: Tuple[Tuple[float, RiskLevel], ...] = DEFAULT_RISK_BANDS) -> RiskLevel:
    level = bands[0][1]
    for lower, band in bands:
        if score >= lower:
            level = band
    return level


class RiskScorer:
    def __init__(self, config: ScoringConfig = DEFAULT_SCORING_CONFIG):
        self.config = config

    def anchor_score(self, anchor: AnchorMetrics) -> float:
        conf = self.config
        if not anchor.has_any_anchor:
            return conf.no_anchor_score

        score = conf.station_far_score
        if anchor.station is not None:
            for max_distance, points in conf.station_steps:
                if anchor.station.distance_m <= max_distance:
                    score = points
                    break
        if anchor.mart is None:
            score += conf.missing_mart_score
        if anchor.department_store is None:
            score += conf.missing_department_score
        if anchor.starbucks is None:
            score += conf.missing_brand_score
        else:
            score += next(
                (points for min_count, points in conf.brand_steps if anchor.starbucks.count >= min_count),
                conf.brand_sparse_score,
            )
        return min(conf.anchor_cap, score)

    def sub_scores(self, metrics: MetricsBundle) -> Dict[MetricDimension, float]:
        conf = self.config
        survival_points = (
            conf.survival_estimated_points if metrics.survival.is_estimated else conf.survival_data_points
        )
        return {
            MetricDimension.COMPETITION: round1(piecewise_linear(metrics.competition.same_category, conf.competition_points)),
            MetricDimension.TRAFFIC: round1(piecewise_linear(metrics.traffic.index, conf.traffic_points)),
            MetricDimension.COST: round1(piecewise_linear(metrics.cost.avg_rent, conf.cost_points)),
            MetricDimension.SURVIVAL: round1(piecewise_linear(metrics.survival.closure_rate, survival_points)),
            MetricDimension.ANCHOR: round1(self.anchor_score(metrics.anchor)),
        }

    def area_adjustment(self, area_type: AreaType) -> float:
        bound = self.config.max_area_adjustment
        return clamp(self.config.area_adjustment.get(area_type, 0.0), -bound, bound)

    def breakdown(self, category: Category, metrics: MetricsBundle, area_type: AreaType) -> ScoreBreakdown:
        subs = self.sub_scores(metrics)
        weights = dict(category.weights.as_mapping())
        contributions = {dim: subs[dim] * weights[dim] for dim in subs}
        weighted_total = sum(contributions.values())
        adjustment = self.area_adjustment(area_type)
        final_score = int(round(clamp(weighted_total + adjustment, 0.0, 100.0)))

        logger.debug(
            f"Score for {category.key}: weighted {weighted_total:.2f}, "
            f"area {area_type.value} {adjustment:+.1f}, final {final_score}"
        )
        return ScoreBreakdown(
            sub_scores=subs,
            weights=weights,
            contributions={dim: round(value, 2) for dim, value in contributions.items()},
            weighted_total=round(weighted_total, 2),
            area_adjustment=adjustment,
            final_score=final_score,
        )

    def score(self, category: Category, metrics: MetricsBundle, area_type: AreaType) -> int:
        return self.breakdown(category, metrics, area_type).final_score
