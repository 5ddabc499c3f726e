import pytest

from all_types.internal_types import (
    AnchorInfo,
    AnchorKind,
    AnchorMetrics,
    AreaType,
    LevelBucket,
    MetricDimension,
    RiskLevel,
    TrafficLevel,
)
from categories import CATEGORY_REGISTRY
from risk_scorer import RiskScorer, risk_level
from tests.utils import make_metrics


@pytest.mark.parametrize(
    "score,level",
    [
        (0, RiskLevel.LOW),
        (29, RiskLevel.LOW),
        (30, RiskLevel.MEDIUM),
        (49, RiskLevel.MEDIUM),
        (50, RiskLevel.HIGH),
        (69, RiskLevel.HIGH),
        (70, RiskLevel.VERY_HIGH),
        (100, RiskLevel.VERY_HIGH),
    ],
)
def test_risk_bands(score, level):
    assert risk_level(score) == level


def test_quiet_commercial_core_lands_mid_range(cafe):
    # No competitors, cheap rent, busy street, no anchors
    metrics = make_metrics(
        same_category=0,
        total=40,
        traffic_index=70,
        traffic_level=TrafficLevel.HIGH,
        avg_rent=64,
        rent_level=LevelBucket.LOW,
        closure_rate=50.4,
        station_m=None,
    )
    breakdown = RiskScorer().breakdown(cafe, metrics, AreaType.COMMERCIAL_CORE)

    assert breakdown.sub_scores[MetricDimension.COMPETITION] == 0
    assert breakdown.sub_scores[MetricDimension.TRAFFIC] == 0
    assert breakdown.sub_scores[MetricDimension.COST] == pytest.approx(24)
    assert breakdown.sub_scores[MetricDimension.SURVIVAL] == 100
    assert breakdown.sub_scores[MetricDimension.ANCHOR] == 80
    assert breakdown.weighted_total == pytest.approx(28.8)
    assert breakdown.area_adjustment == 5
    assert breakdown.final_score == 34
    assert risk_level(breakdown.final_score) == RiskLevel.MEDIUM


def test_scores_stay_in_bounds_for_every_category():
    scorer = RiskScorer()
    worst = make_metrics(
        same_category=60,
        traffic_index=0,
        traffic_level=TrafficLevel.VERY_LOW,
        avg_rent=400,
        rent_level=LevelBucket.HIGH,
        closure_rate=80,
        station_m=None,
    )
    best = make_metrics(same_category=0, traffic_index=100, avg_rent=0, closure_rate=0, station_m=50)
    for category in CATEGORY_REGISTRY.values():
        for metrics in (worst, best):
            for area_type in AreaType:
                score = scorer.score(category, metrics, area_type)
                assert 0 <= score <= 100
    assert scorer.score(CATEGORY_REGISTRY["cafe"], worst, AreaType.SPECIAL) == 100


def test_survival_uses_path_specific_scale(cafe):
    scorer = RiskScorer()
    measured = scorer.sub_scores(make_metrics(closure_rate=10, survival_estimated=False))
    estimated = scorer.sub_scores(make_metrics(closure_rate=10, survival_estimated=True))
    assert measured[MetricDimension.SURVIVAL] > estimated[MetricDimension.SURVIVAL]


def test_anchor_score():
    scorer = RiskScorer()
    station = AnchorInfo(name="A", kind=AnchorKind.STATION, distance_m=80)
    mart = AnchorInfo(name="M", kind=AnchorKind.MART, distance_m=500)
    dept = AnchorInfo(name="D", kind=AnchorKind.DEPARTMENT_STORE, distance_m=900)
    starbucks = AnchorInfo(name="S", kind=AnchorKind.STARBUCKS, distance_m=300, count=3)

    assert scorer.anchor_score(AnchorMetrics()) == 80
    full = AnchorMetrics(station=station, mart=mart, department_store=dept, starbucks=starbucks, has_any_anchor=True)
    assert scorer.anchor_score(full) == 0
    assert scorer.anchor_score(AnchorMetrics(station=station, mart=mart, department_store=dept, has_any_anchor=True)) == 15
    assert scorer.anchor_score(AnchorMetrics(station=station, has_any_anchor=True)) == 30
    assert scorer.anchor_score(AnchorMetrics(mart=mart, has_any_anchor=True)) == 60
    assert scorer.anchor_score(AnchorMetrics(starbucks=starbucks, has_any_anchor=True)) == 55


def test_starbucks_branch_count_steps():
    scorer = RiskScorer()
    station = AnchorInfo(name="A", kind=AnchorKind.STATION, distance_m=80)

    def score(count):
        starbucks = AnchorInfo(name="S", kind=AnchorKind.STARBUCKS, distance_m=200, count=count)
        return scorer.anchor_score(AnchorMetrics(station=station, starbucks=starbucks, has_any_anchor=True))

    # station 0, missing mart 10, missing department store 5
    assert score(5) == 15
    assert score(3) == 15
    assert score(2) == 20
    assert score(1) == 20
    assert score(0) == 25


def test_weights_come_from_the_category(cafe):
    breakdown = RiskScorer().breakdown(cafe, make_metrics(), AreaType.MIXED)
    assert breakdown.weights[MetricDimension.COMPETITION] == pytest.approx(0.35)
    assert sum(breakdown.weights.values()) == pytest.approx(1.0)
    assert breakdown.area_adjustment == 0
