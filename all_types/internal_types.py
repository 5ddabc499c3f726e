from enum import Enum
from typing import Dict, List, Optional, Protocol, Sequence

from pydantic import BaseModel, ConfigDict, Field, model_validator


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    VERY_HIGH = "VERY_HIGH"


class AreaType(str, Enum):
    RESIDENTIAL = "residential"
    MIXED = "mixed"
    COMMERCIAL_CORE = "commercial_core"
    SPECIAL = "special"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class LevelBucket(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TrafficLevel(str, Enum):
    VERY_LOW = "very_low"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PeakTime(str, Enum):
    MORNING = "morning"
    DAY = "day"
    NIGHT = "night"


class SurvivalTrend(str, Enum):
    GROWING = "growing"
    STABLE = "stable"
    SHRINKING = "shrinking"


class AnchorKind(str, Enum):
    STATION = "station"
    MART = "mart"
    DEPARTMENT_STORE = "department_store"
    STARBUCKS = "starbucks"


class MetricDimension(str, Enum):
    COMPETITION = "competition"
    TRAFFIC = "traffic"
    COST = "cost"
    SURVIVAL = "survival"
    ANCHOR = "anchor"


class LatLng(BaseModel):
    model_config = ConfigDict(frozen=True)

    lat: float
    lng: float


class Cell(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    resolution: int
    center: LatLng


class TimePattern(BaseModel):
    """Share of daily traffic per time-of-day bucket, in percent."""

    model_config = ConfigDict(frozen=True)

    morning: float
    day: float
    night: float

    def as_tuple(self):
        return (self.morning, self.day, self.night)


PLACEHOLDER_TIME_PATTERN = TimePattern(morning=33, day=34, night=33)


# ===== External grid records =====

class GridStoreRecord(BaseModel):
    cell_id: str
    store_counts: Dict[str, int] = Field(default_factory=dict)
    total_count: Optional[int] = None
    closure_count: Optional[int] = None
    opening_count: Optional[int] = None
    prev_period_count: Optional[int] = None
    district: Optional[str] = None
    period: Optional[str] = None

    @model_validator(mode="after")
    def _fill_total(self):
        if self.total_count is None:
            self.total_count = sum(self.store_counts.values())
        return self


class GridTrafficRecord(BaseModel):
    cell_id: str
    traffic_index: float = 0.0
    time_morning: Optional[float] = None
    time_day: Optional[float] = None
    time_night: Optional[float] = None
    weekend_ratio: Optional[float] = None
    period: Optional[str] = None

    def time_pattern(self) -> Optional[TimePattern]:
        if None in (self.time_morning, self.time_day, self.time_night):
            return None
        return TimePattern(morning=self.time_morning, day=self.time_day, night=self.time_night)


class GridAggregate(BaseModel):
    cell_ids: list[str]
    store_counts: Dict[str, int] = Field(default_factory=dict)
    total_stores: int = 0
    closure_count: int = 0
    opening_count: int = 0
    prev_period_count: int = 0
    has_churn_data: bool = False
    district: Optional[str] = None

    traffic_index: Optional[float] = None
    time_pattern: TimePattern = PLACEHOLDER_TIME_PATTERN
    weekend_ratio: Optional[float] = None

    store_cells_with_data: int = 0
    traffic_cells_with_data: int = 0
    store_coverage: float = 0.0
    traffic_coverage: float = 0.0
    store_period: Optional[str] = None
    traffic_period: Optional[str] = None


# ===== Collaborator payloads =====

class AddressInfo(BaseModel):
    address: str = ""
    region: str = ""
    district: str = ""


class AnchorFacility(BaseModel):
    name: str
    kind: AnchorKind
    lat: float
    lng: float
    line: Optional[str] = None
    # Branches found in the search radius, for chain anchors
    count: int = 1


class AnchorInfo(BaseModel):
    name: str
    kind: AnchorKind
    distance_m: int
    line: Optional[str] = None
    count: int = 1


# ===== Metrics =====

class CompetitionMetrics(BaseModel):
    same_category: int
    total: int
    density: float
    density_level: LevelBucket
    has_category_data: bool


class TrafficMetrics(BaseModel):
    index: float
    level: TrafficLevel
    peak_time: PeakTime
    weekend_ratio: float
    time_pattern: TimePattern
    is_estimated: bool = False
    pattern_estimated: bool = False


class CostMetrics(BaseModel):
    avg_rent: float
    level: LevelBucket
    district: str = ""
    is_default: bool = False


class SurvivalMetrics(BaseModel):
    closure_rate: float
    opening_rate: float
    net_change: float
    risk: LevelBucket
    trend: SurvivalTrend
    is_estimated: bool
    summary: str


class AnchorMetrics(BaseModel):
    station: Optional[AnchorInfo] = None
    mart: Optional[AnchorInfo] = None
    department_store: Optional[AnchorInfo] = None
    starbucks: Optional[AnchorInfo] = None
    nearest: Optional[AnchorInfo] = None
    has_any_anchor: bool = False
    lookup_failed: bool = False


class MetricsBundle(BaseModel):
    competition: CompetitionMetrics
    traffic: TrafficMetrics
    cost: CostMetrics
    survival: SurvivalMetrics
    anchor: AnchorMetrics


class ScoreBreakdown(BaseModel):
    sub_scores: Dict[MetricDimension, float]
    weights: Dict[MetricDimension, float]
    contributions: Dict[MetricDimension, float]
    weighted_total: float
    area_adjustment: float
    final_score: int


class EvidenceBadge(BaseModel):
    metric: MetricDimension
    label: str
    value: str


class RiskCard(BaseModel):
    id: str
    dimension: MetricDimension
    severity: Severity
    severity_score: float
    headline: str
    warning: str
    evidence: list[EvidenceBadge]
    field_question: str


# ===== Collaborator contracts =====

class GridStoreReader(Protocol):
    async def fetch_store_records(self, cell_ids: Sequence[str]) -> List[GridStoreRecord]:
        ...

    async def fetch_traffic_records(self, cell_ids: Sequence[str]) -> List[GridTrafficRecord]:
        ...


class ReverseGeocoder(Protocol):
    async def reverse_geocode(self, lat: float, lng: float) -> AddressInfo:
        ...


class RentLookup(Protocol):
    async def average_rent(self, district: str) -> Optional[float]:
        ...


class AnchorLookup(Protocol):
    async def nearest_facility(self, lat: float, lng: float, kind: AnchorKind, radius_m: float) -> Optional[AnchorFacility]:
        ...
