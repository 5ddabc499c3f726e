from typing import Dict, List, TypeVar, Generic, Optional

from pydantic import BaseModel, Field

from all_types.internal_types import (
    AreaType,
    MetricDimension,
    MetricsBundle,
    RiskCard,
    RiskLevel,
    ScoreBreakdown,
)

U = TypeVar("U")


class ResModel(BaseModel, Generic[U]):
    message: str
    request_id: str
    data: U


class Location(BaseModel):
    lat: float
    lng: float
    address: str = ""
    region: str = ""
    district: str = ""
    cell_id: str


class AnalysisSummary(BaseModel):
    score: int
    risk_level: RiskLevel
    area_type: AreaType
    category: str
    category_name: str


class ScoreContribution(BaseModel):
    dimension: MetricDimension
    sub_score: float
    weight: float
    contribution: float
    impact: str


class TopFactors(BaseModel):
    risks: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)


class Interpretation(BaseModel):
    summary: str
    explanations: Dict[str, str]
    risks: List[str]
    opportunities: List[str]
    top_factors: TopFactors
    score_contributions: List[ScoreContribution]


class DataQuality(BaseModel):
    cells_requested: int
    store_coverage: float
    traffic_coverage: float
    coverage: str
    traffic_estimated: bool
    traffic_pattern_estimated: bool
    survival_estimated: bool
    cost_default: bool
    anchor_unavailable: bool
    address_unavailable: bool
    store_period: Optional[str] = None
    traffic_period: Optional[str] = None


class ResRiskAnalysis(BaseModel):
    location: Location
    analysis: AnalysisSummary
    metrics: MetricsBundle
    breakdown: ScoreBreakdown
    interpretation: Interpretation
    risk_cards: List[RiskCard]
    data_quality: DataQuality
