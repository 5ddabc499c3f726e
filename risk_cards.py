"""
Risk card generation and ranking.

Every card template belongs to one metric dimension. A matching template
becomes a candidate with

    severity_score = severity base + sub-score of its dimension - priority

Candidates are reduced to the best card per dimension, sorted by severity
score (ties follow DIMENSION_ORDER) and cut to the top N.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, List, Mapping, Optional, Tuple

from all_types.internal_types import (
    AreaType,
    EvidenceBadge,
    LevelBucket,
    MetricDimension,
    MetricsBundle,
    RiskCard,
    Severity,
)
from categories import Category
from interpretation.generator import DIMENSION_ORDER, traffic_bucket

logger = logging.getLogger(__name__)

SEVERITY_BASE: Mapping[Severity, float] = MappingProxyType(
    {Severity.CRITICAL: 300.0, Severity.WARNING: 200.0, Severity.INFO: 100.0}
)


@dataclass(frozen=True)
class CardContext:
    category: Category
    metrics: MetricsBundle
    area_type: AreaType
    sub_scores: Mapping[MetricDimension, float]

    def competition_threshold(self, base: int) -> int:
        return max(1, int(round(base * self.category.competition_multiplier)))

    @property
    def same_category(self) -> int:
        return self.metrics.competition.same_category

    @property
    def traffic(self) -> str:
        return traffic_bucket(self.metrics.traffic.level)

    @property
    def rent(self) -> LevelBucket:
        return self.metrics.cost.level

    @property
    def station_distance(self) -> Optional[int]:
        station = self.metrics.anchor.station
        return station.distance_m if station else None


BadgeFn = Callable[[CardContext], List[EvidenceBadge]]


@dataclass(frozen=True)
class CardTemplate:
    id: str
    dimension: MetricDimension
    severity: Severity
    priority: int
    headline: str
    warning: str
    question: str
    condition: Callable[[CardContext], bool]
    badges: BadgeFn


def _competition_badge(ctx: CardContext) -> EvidenceBadge:
    return EvidenceBadge(metric=MetricDimension.COMPETITION, label="Same-category stores", value=str(ctx.same_category))


def _traffic_badge(ctx: CardContext) -> EvidenceBadge:
    return EvidenceBadge(metric=MetricDimension.TRAFFIC, label="Traffic index", value=f"{ctx.metrics.traffic.index:.0f}")


def _rent_badge(ctx: CardContext) -> EvidenceBadge:
    return EvidenceBadge(metric=MetricDimension.COST, label="Average rent", value=f"{ctx.metrics.cost.avg_rent:.0f}")


def _closure_badge(ctx: CardContext) -> EvidenceBadge:
    return EvidenceBadge(metric=MetricDimension.SURVIVAL, label="Closure rate", value=f"{ctx.metrics.survival.closure_rate:g}%")


def _anchor_badge(ctx: CardContext) -> EvidenceBadge:
    distance = ctx.station_distance
    return EvidenceBadge(
        metric=MetricDimension.ANCHOR,
        label="Nearest station",
        value=f"{distance} m" if distance is not None else "none",
    )


def _pattern_badge(ctx: CardContext) -> EvidenceBadge:
    return EvidenceBadge(metric=MetricDimension.TRAFFIC, label="Weekend ratio", value=f"{ctx.metrics.traffic.weekend_ratio:.2f}")


DEFAULT_CARD_TEMPLATES: Tuple[CardTemplate, ...] = (
    # Combination
    CardTemplate(
        id="worst_triple",
        dimension=MetricDimension.COMPETITION,
        severity=Severity.CRITICAL,
        priority=0,
        headline="Triple risk",
        warning="Crowded market, high rent and thin traffic; the numbers are hard to make work.",
        question="Compared with other sites, why does it have to be this one?",
        condition=lambda c: c.same_category >= c.competition_threshold(8) and c.rent == LevelBucket.HIGH and c.traffic == "low",
        badges=lambda c: [_competition_badge(c), _rent_badge(c), _traffic_badge(c)],
    ),
    # Competition
    CardTemplate(
        id="comp_high_traffic_low",
        dimension=MetricDimension.COMPETITION,
        severity=Severity.CRITICAL,
        priority=1,
        headline="Splitting a small pie",
        warning="Too many similar shops and too few passers-by; survival becomes a fight.",
        question="Why did so many open here if customers are scarce?",
        condition=lambda c: c.same_category >= c.competition_threshold(10) and c.traffic == "low",
        badges=lambda c: [_competition_badge(c), _traffic_badge(c)],
    ),
    CardTemplate(
        id="comp_high_traffic_high",
        dimension=MetricDimension.COMPETITION,
        severity=Severity.WARNING,
        priority=3,
        headline="Endurance race",
        warning="The category is saturated; without differentiation you get pushed out.",
        question="What will win customers away from the existing shops?",
        condition=lambda c: c.same_category >= c.competition_threshold(10) and c.traffic == "high",
        badges=lambda c: [_competition_badge(c), _traffic_badge(c)],
    ),
    CardTemplate(
        id="comp_zero",
        dimension=MetricDimension.COMPETITION,
        severity=Severity.WARNING,
        priority=4,
        headline="Unproven demand",
        warning="No shop of this kind nearby; demand may simply not exist.",
        question="Why has nobody opened this kind of shop here?",
        condition=lambda c: c.same_category == 0,
        badges=lambda c: [_competition_badge(c)],
    ),
    CardTemplate(
        id="comp_high",
        dimension=MetricDimension.COMPETITION,
        severity=Severity.WARNING,
        priority=5,
        headline="Entering a saturated market",
        warning="The market is already crowded; newcomers start at a disadvantage.",
        question="What separates the shops that do well from those that do not?",
        condition=lambda c: c.same_category >= c.competition_threshold(8),
        badges=lambda c: [_competition_badge(c)],
    ),
    # Cost
    CardTemplate(
        id="cost_high_comp_high",
        dimension=MetricDimension.COST,
        severity=Severity.CRITICAL,
        priority=2,
        headline="Double squeeze",
        warning="High rent on top of dense competition leaves little margin.",
        question="How much must you sell per day just to break even?",
        condition=lambda c: c.rent == LevelBucket.HIGH and c.same_category >= c.competition_threshold(8),
        badges=lambda c: [_rent_badge(c), _competition_badge(c)],
    ),
    CardTemplate(
        id="cost_high",
        dimension=MetricDimension.COST,
        severity=Severity.WARNING,
        priority=6,
        headline="Heavy fixed costs",
        warning="Rent is high; reaching break-even takes effort.",
        question="Can you carry this rent through the slow season?",
        condition=lambda c: c.rent == LevelBucket.HIGH,
        badges=lambda c: [_rent_badge(c)],
    ),
    CardTemplate(
        id="cost_low_trap",
        dimension=MetricDimension.COST,
        severity=Severity.INFO,
        priority=8,
        headline="Cheap for a reason",
        warning="Low rent may reflect a lack of demand.",
        question="Why is this space so cheap, and what did the previous tenant run?",
        condition=lambda c: c.rent == LevelBucket.LOW and c.traffic == "low",
        badges=lambda c: [_rent_badge(c), _traffic_badge(c)],
    ),
    # Survival
    CardTemplate(
        id="survival_critical",
        dimension=MetricDimension.SURVIVAL,
        severity=Severity.CRITICAL,
        priority=1,
        headline="Shrinking market",
        warning="High closure rate and a falling store count.",
        question="How many shops closed in the last year, and why?",
        condition=lambda c: c.metrics.survival.risk == LevelBucket.HIGH and c.metrics.survival.net_change < 0,
        badges=lambda c: [_closure_badge(c)],
    ),
    CardTemplate(
        id="survival_high",
        dimension=MetricDimension.SURVIVAL,
        severity=Severity.WARNING,
        priority=4,
        headline="Low survival",
        warning="Closures here run above average.",
        question="What do the long-lasting shops do differently?",
        condition=lambda c: c.metrics.survival.risk == LevelBucket.HIGH,
        badges=lambda c: [_closure_badge(c)],
    ),
    # Traffic
    CardTemplate(
        id="traffic_low_no_anchor",
        dimension=MetricDimension.TRAFFIC,
        severity=Severity.CRITICAL,
        priority=2,
        headline="No inflow path",
        warning="Little foot traffic and no station or large store nearby.",
        question="What would make customers come here on purpose?",
        condition=lambda c: c.traffic == "low" and not c.metrics.anchor.has_any_anchor,
        badges=lambda c: [_traffic_badge(c), _anchor_badge(c)],
    ),
    CardTemplate(
        id="traffic_low",
        dimension=MetricDimension.TRAFFIC,
        severity=Severity.WARNING,
        priority=5,
        headline="Weak inflow",
        warning="Few passers-by, so walk-in sales will be limited.",
        question="Can in-store sales alone sustain you without delivery?",
        condition=lambda c: c.traffic == "low",
        badges=lambda c: [_traffic_badge(c)],
    ),
    CardTemplate(
        id="traffic_night_heavy",
        dimension=MetricDimension.TRAFFIC,
        severity=Severity.INFO,
        priority=7,
        headline="Evening-heavy traffic",
        warning="Traffic concentrates in the evening, leaving a daytime gap.",
        question="How will you fill the daytime revenue gap?",
        condition=lambda c: c.metrics.traffic.time_pattern.night >= 45,
        badges=lambda c: [_traffic_badge(c)],
    ),
    # Area type
    CardTemplate(
        id="area_special",
        dimension=MetricDimension.TRAFFIC,
        severity=Severity.WARNING,
        priority=7,
        headline="Season-dependent area",
        warning="Demand concentrates on weekends or seasons, leaving weekday gaps.",
        question="Do you have cash to survive three slow months?",
        condition=lambda c: c.area_type == AreaType.SPECIAL,
        badges=lambda c: [_pattern_badge(c)],
    ),
    # Anchor
    CardTemplate(
        id="anchor_station_far",
        dimension=MetricDimension.ANCHOR,
        severity=Severity.WARNING,
        priority=6,
        headline="Off the station catchment",
        warning="The station is far, so little inflow comes from it.",
        question="Is there a reason to walk here from the station?",
        condition=lambda c: c.station_distance is not None and c.station_distance > 500,
        badges=lambda c: [_anchor_badge(c)],
    ),
    CardTemplate(
        id="anchor_none",
        dimension=MetricDimension.ANCHOR,
        severity=Severity.INFO,
        priority=8,
        headline="No anchor facility",
        warning="No station or large store nearby to draw customers.",
        question="How will you build your own pull through brand or marketing?",
        condition=lambda c: not c.metrics.anchor.has_any_anchor,
        badges=lambda c: [_anchor_badge(c)],
    ),
)


class RiskCardRanker:
    def __init__(self, templates: Tuple[CardTemplate, ...] = DEFAULT_CARD_TEMPLATES, top_n: int = 3):
        self.templates = templates
        self.top_n = top_n

    @staticmethod
    def severity_score(template: CardTemplate, ctx: CardContext) -> float:
        return SEVERITY_BASE[template.severity] + ctx.sub_scores.get(template.dimension, 0.0) - template.priority

    def candidates(self, ctx: CardContext) -> List[RiskCard]:
        cards = []
        for template in self.templates:
            if not template.condition(ctx):
                continue
            cards.append(
                RiskCard(
                    id=template.id,
                    dimension=template.dimension,
                    severity=template.severity,
                    severity_score=round(self.severity_score(template, ctx), 2),
                    headline=template.headline,
                    warning=template.warning,
                    evidence=template.badges(ctx),
                    field_question=template.question,
                )
            )
        return cards

    def rank(self, ctx: CardContext, top_n: Optional[int] = None) -> List[RiskCard]:
        limit = self.top_n if top_n is None else top_n
        if limit <= 0:
            return []

        best: Dict[MetricDimension, RiskCard] = {}
        for card in self.candidates(ctx):
            current = best.get(card.dimension)
            if current is None or card.severity_score > current.severity_score:
                best[card.dimension] = card

        ordered = sorted(
            best.values(),
            key=lambda card: (-card.severity_score, DIMENSION_ORDER.index(card.dimension)),
        )
        logger.debug(f"Ranked {min(limit, len(ordered))} risk cards from {len(best)} dimensions")
        return ordered[:limit]
