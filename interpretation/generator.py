import logging
import zlib
from string import Template
from typing import Dict, List, Mapping, Optional, Sequence

from all_types.internal_types import (
    AreaType,
    MetricDimension,
    MetricsBundle,
    RiskLevel,
    ScoreBreakdown,
    TrafficLevel,
)
from all_types.response_dtypes import Interpretation, ScoreContribution, TopFactors
from categories import Category
from interpretation import templates as tpl

logger = logging.getLogger(__name__)

DIMENSION_ORDER = (
    MetricDimension.COMPETITION,
    MetricDimension.TRAFFIC,
    MetricDimension.COST,
    MetricDimension.SURVIVAL,
    MetricDimension.ANCHOR,
)

RISK_SUB_SCORE = 60.0
OPPORTUNITY_SUB_SCORE = 30.0
MAX_TOP_FACTORS = 2


def select_phrase(phrases: Sequence[str], cell_id: Optional[str] = None) -> str:
    """Same cell id, same phrase. Without a cell id the first phrase is used."""
    if not cell_id:
        return phrases[0]
    return phrases[zlib.crc32(cell_id.encode("utf-8")) % len(phrases)]


def fill(phrase: str, variables: Mapping[str, str]) -> str:
    return Template(phrase).safe_substitute(variables)


def traffic_bucket(level: TrafficLevel) -> str:
    if level in (TrafficLevel.VERY_LOW, TrafficLevel.LOW):
        return "low"
    return level.value


def build_variables(category: Category, metrics: MetricsBundle, score: int, area_type: AreaType) -> Dict[str, str]:
    nearest = metrics.anchor.nearest
    return {
        "category_name": category.name.lower(),
        "score": str(score),
        "same_category": str(metrics.competition.same_category),
        "total": str(metrics.competition.total),
        "traffic_index": f"{metrics.traffic.index:.0f}",
        "avg_rent": f"{metrics.cost.avg_rent:.0f}",
        "closure_rate": f"{metrics.survival.closure_rate:g}",
        "anchor_name": nearest.name if nearest else "",
        "anchor_distance": str(nearest.distance_m) if nearest else "",
        "area_label": tpl.AREA_LABELS[area_type],
    }


class InterpretationEngine:
    """Fills narrative templates from the score, level, category and metrics. No I/O."""

    def __init__(self, summary_templates: Mapping = tpl.SUMMARY_TEMPLATES):
        if (None, None, None) not in summary_templates:
            raise ValueError("summary templates need a generic (None, None, None) entry")
        self.summary_templates = summary_templates

    # ----- summary -----

    def summary_phrases(self, category_key: str, level: RiskLevel, area_type: AreaType) -> Sequence[str]:
        for key in (
            (category_key, level, area_type),
            (category_key, level, None),
            (None, level, area_type),
            (None, level, None),
            (None, None, None),
        ):
            phrases = self.summary_templates.get(key)
            if phrases:
                return phrases
        return self.summary_templates[(None, None, None)]

    @staticmethod
    def structure_key(metrics: MetricsBundle) -> str:
        comp = metrics.competition.density_level.value
        traffic = traffic_bucket(metrics.traffic.level)
        cost = metrics.cost.level.value
        survival = metrics.survival.risk.value

        bad = [comp, cost, survival].count("high") + (traffic == "low")
        good = [comp, cost, survival].count("low") + (traffic == "high")

        if comp == "high" and traffic == "low" and cost == "high":
            return "worst"
        if comp == "low" and traffic == "low":
            return "quiet"
        if good >= 3:
            return "mostly_good"
        if bad >= 3:
            return "mostly_bad"
        if traffic == "high" and comp == "high":
            return "split_pie"
        if cost == "high" and survival == "high":
            return "cost_churn"
        if cost == "high":
            return "cost"
        if traffic == "low":
            return "low_traffic"
        return "average"

    def summary(self, category, metrics, level, area_type, variables, cell_id) -> str:
        headline = fill(select_phrase(self.summary_phrases(category.key, level, area_type), cell_id), variables)
        structure = fill(tpl.STRUCTURE_SENTENCES[self.structure_key(metrics)], variables)
        return f"{headline} {structure}"

    # ----- per-dimension explanations -----

    @staticmethod
    def _category_phrase(category_key: str, dimension: str, level: str) -> Optional[Sequence[str]]:
        return tpl.CATEGORY_PHRASES.get(category_key, {}).get(dimension, {}).get(level)

    def explain_competition(self, category, metrics, variables, cell_id) -> str:
        level = metrics.competition.density_level.value
        traffic = traffic_bucket(metrics.traffic.level)
        phrases = self._category_phrase(category.key, "competition", level)
        if phrases is None:
            phrases = tpl.COMPETITION_PHRASES.get((level, traffic)) or tpl.COMPETITION_PHRASES[(level, None)]
        return fill(select_phrase(phrases, cell_id), variables)

    def explain_traffic(self, category, metrics, variables, cell_id) -> str:
        level = traffic_bucket(metrics.traffic.level)
        phrases = self._category_phrase(category.key, "traffic", level)
        if phrases is None:
            phrases = tpl.TRAFFIC_PHRASES.get((level, metrics.traffic.peak_time)) or tpl.TRAFFIC_PHRASES[(level, None)]
        text = fill(select_phrase(phrases, cell_id), variables)
        if metrics.traffic.is_estimated:
            text += " The traffic index is estimated from nearby stations and store density."
        return text

    def explain_cost(self, metrics, area_type, variables, cell_id) -> str:
        level = metrics.cost.level.value
        phrases = tpl.COST_PHRASES.get((level, area_type)) or tpl.COST_PHRASES[(level, None)]
        text = fill(select_phrase(phrases, cell_id), variables)
        if metrics.cost.is_default:
            text += " No district rent figure was available, so a default was used."
        return text

    def explain_survival(self, metrics, variables, cell_id) -> str:
        text = fill(select_phrase(tpl.SURVIVAL_PHRASES[metrics.survival.risk.value], cell_id), variables)
        if metrics.survival.is_estimated:
            text += " This rate is estimated, not measured."
        return text

    def explain_time_pattern(self, metrics, cell_id) -> str:
        traffic = metrics.traffic
        text = select_phrase(tpl.PEAK_PHRASES[traffic.peak_time], cell_id)
        if traffic.weekend_ratio > 1.3:
            text += " " + tpl.WEEKEND_HEAVY_SENTENCE
        elif traffic.weekend_ratio < 0.7:
            text += " " + tpl.WEEKDAY_HEAVY_SENTENCE
        if traffic.pattern_estimated:
            text += " Time-of-day shares are estimated from the area type."
        return text

    def explain_area(self, area_type, variables, cell_id) -> str:
        return fill(select_phrase(tpl.AREA_PHRASES[area_type], cell_id), variables)

    def explain_anchor(self, metrics, cell_id) -> str:
        anchor = metrics.anchor
        if not anchor.has_any_anchor:
            return select_phrase(tpl.ANCHOR_NONE_PHRASES, cell_id)

        parts = []
        station = anchor.station
        if station and station.distance_m <= 300:
            parts.append(f"{station.name} station is {station.distance_m} m away, so inflow is steady.")
        elif station and station.distance_m <= 500:
            parts.append(f"{station.name} station is {station.distance_m} m away, within walking distance.")
        if anchor.mart and anchor.mart.distance_m <= 500:
            parts.append(f"{anchor.mart.name} is close, so grocery trips can feed your shop.")
        if anchor.department_store and anchor.department_store.distance_m <= 500:
            parts.append(f"{anchor.department_store.name} nearby brings shoppers with spending power.")
        if anchor.starbucks and anchor.starbucks.count >= 3:
            parts.append(f"{anchor.starbucks.count} Starbucks branches within 1 km mark an established trade area.")

        if not parts:
            return tpl.ANCHOR_FAR_SENTENCE
        if station and station.distance_m <= 200:
            parts.append("Station areas also bring higher rent and competition.")
        return " ".join(parts)

    # ----- factors -----

    @staticmethod
    def score_contributions(breakdown: ScoreBreakdown) -> List[ScoreContribution]:
        contributions = []
        for dim in DIMENSION_ORDER:
            sub = breakdown.sub_scores[dim]
            if sub >= 50:
                impact = "+"
            elif sub < OPPORTUNITY_SUB_SCORE:
                impact = "-"
            else:
                impact = "0"
            contributions.append(
                ScoreContribution(
                    dimension=dim,
                    sub_score=sub,
                    weight=breakdown.weights[dim],
                    contribution=breakdown.contributions[dim],
                    impact=impact,
                )
            )
        return contributions

    @staticmethod
    def risks_and_opportunities(breakdown: ScoreBreakdown, variables):
        risk_dims = [d for d in DIMENSION_ORDER if breakdown.sub_scores[d] >= RISK_SUB_SCORE]
        opportunity_dims = [d for d in DIMENSION_ORDER if breakdown.sub_scores[d] <= OPPORTUNITY_SUB_SCORE]

        risks = [fill(tpl.RISK_STATEMENTS[d.value], variables) for d in risk_dims]
        opportunities = [fill(tpl.OPPORTUNITY_STATEMENTS[d.value], variables) for d in opportunity_dims]

        # sorted() is stable, so equal weights keep dimension order
        top_risk_dims = sorted(risk_dims, key=lambda d: -breakdown.contributions[d])[:MAX_TOP_FACTORS]
        top_opportunity_dims = sorted(
            opportunity_dims,
            key=lambda d: -breakdown.weights[d] * (100 - breakdown.sub_scores[d]),
        )[:MAX_TOP_FACTORS]

        top = TopFactors(
            risks=[fill(tpl.RISK_STATEMENTS[d.value], variables) for d in top_risk_dims],
            opportunities=[fill(tpl.OPPORTUNITY_STATEMENTS[d.value], variables) for d in top_opportunity_dims],
        )
        return risks, opportunities, top

    def interpret(
        self,
        category: Category,
        metrics: MetricsBundle,
        area_type: AreaType,
        breakdown: ScoreBreakdown,
        level: RiskLevel,
        cell_id: Optional[str] = None,
    ) -> Interpretation:
        variables = build_variables(category, metrics, breakdown.final_score, area_type)
        risks, opportunities, top = self.risks_and_opportunities(breakdown, variables)
        return Interpretation(
            summary=self.summary(category, metrics, level, area_type, variables, cell_id),
            explanations={
                "competition": self.explain_competition(category, metrics, variables, cell_id),
                "traffic": self.explain_traffic(category, metrics, variables, cell_id),
                "cost": self.explain_cost(metrics, area_type, variables, cell_id),
                "survival": self.explain_survival(metrics, variables, cell_id),
                "time_pattern": self.explain_time_pattern(metrics, cell_id),
                "area_type": self.explain_area(area_type, variables, cell_id),
                "anchor": self.explain_anchor(metrics, cell_id),
            },
            risks=risks,
            opportunities=opportunities,
            top_factors=top,
            score_contributions=self.score_contributions(breakdown),
        )
