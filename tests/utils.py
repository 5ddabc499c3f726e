import asyncio
from typing import Dict, List, Optional, Sequence

from all_types.internal_types import (
    AddressInfo,
    AnchorFacility,
    AnchorInfo,
    AnchorKind,
    AnchorMetrics,
    CompetitionMetrics,
    CostMetrics,
    GridStoreRecord,
    GridTrafficRecord,
    LevelBucket,
    MetricsBundle,
    PeakTime,
    SurvivalMetrics,
    SurvivalTrend,
    TimePattern,
    TrafficLevel,
    TrafficMetrics,
)
from risk_errors import UpstreamUnavailable

# Gangnam station, Seoul
GANGNAM = (37.4979, 127.0276)


class FakeGridStore:
    """In-memory grid store that records every bulk call it receives."""

    def __init__(self, stores: Optional[Dict[str, dict]] = None, traffic: Optional[Dict[str, dict]] = None):
        self.stores = stores or {}
        self.traffic = traffic or {}
        self.store_calls: List[List[str]] = []
        self.traffic_calls: List[List[str]] = []

    async def fetch_store_records(self, cell_ids: Sequence[str]) -> List[GridStoreRecord]:
        self.store_calls.append(list(cell_ids))
        return [GridStoreRecord(cell_id=c, **self.stores[c]) for c in cell_ids if c in self.stores]

    async def fetch_traffic_records(self, cell_ids: Sequence[str]) -> List[GridTrafficRecord]:
        self.traffic_calls.append(list(cell_ids))
        return [GridTrafficRecord(cell_id=c, **self.traffic[c]) for c in cell_ids if c in self.traffic]


class FailingGridStore(FakeGridStore):
    async def fetch_store_records(self, cell_ids):
        self.store_calls.append(list(cell_ids))
        raise UpstreamUnavailable("grid store", "connection refused")

    async def fetch_traffic_records(self, cell_ids):
        self.traffic_calls.append(list(cell_ids))
        raise UpstreamUnavailable("grid store", "connection refused")


class FakeGeocoder:
    def __init__(self, address: Optional[AddressInfo] = None, delay_s: float = 0.0):
        self.address = address or AddressInfo()
        self.delay_s = delay_s
        self.calls = 0

    async def reverse_geocode(self, lat: float, lng: float) -> AddressInfo:
        self.calls += 1
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        return self.address


class FailingGeocoder(FakeGeocoder):
    async def reverse_geocode(self, lat, lng):
        self.calls += 1
        raise UpstreamUnavailable("geocoder", "timeout")


class FakeRentLookup:
    def __init__(self, table: Optional[Dict[str, float]] = None):
        self.table = table or {}
        self.calls: List[str] = []

    async def average_rent(self, district: str) -> Optional[float]:
        self.calls.append(district)
        return self.table.get(district)


class FailingRentLookup(FakeRentLookup):
    async def average_rent(self, district):
        self.calls.append(district)
        raise UpstreamUnavailable("rent table", "missing file")


class FakeAnchorLookup:
    def __init__(self, facilities: Optional[Dict[AnchorKind, AnchorFacility]] = None):
        self.facilities = facilities or {}
        self.calls: List[AnchorKind] = []

    async def nearest_facility(self, lat, lng, kind: AnchorKind, radius_m: float) -> Optional[AnchorFacility]:
        self.calls.append(kind)
        return self.facilities.get(kind)


class FailingAnchorLookup(FakeAnchorLookup):
    async def nearest_facility(self, lat, lng, kind, radius_m):
        self.calls.append(kind)
        raise UpstreamUnavailable("anchor search", "HTTP 500")


def facility_north_of(lat: float, lng: float, metres: float, kind: AnchorKind, name: str = "Test") -> AnchorFacility:
    # One degree of latitude is roughly 111 km
    return AnchorFacility(name=name, kind=kind, lat=lat + metres / 111_000.0, lng=lng)


def make_metrics(
    same_category: int = 3,
    total: int = 40,
    density_level: LevelBucket = LevelBucket.LOW,
    traffic_index: float = 50.0,
    traffic_level: TrafficLevel = TrafficLevel.MEDIUM,
    pattern: TimePattern = TimePattern(morning=30, day=40, night=30),
    weekend_ratio: float = 1.0,
    avg_rent: float = 100.0,
    rent_level: LevelBucket = LevelBucket.MEDIUM,
    closure_rate: float = 35.0,
    survival_risk: LevelBucket = LevelBucket.MEDIUM,
    net_change: float = -5.0,
    survival_estimated: bool = True,
    station_m: Optional[int] = 250,
) -> MetricsBundle:
    station = None
    if station_m is not None:
        station = AnchorInfo(name="Gangnam", kind=AnchorKind.STATION, distance_m=station_m)
    return MetricsBundle(
        competition=CompetitionMetrics(
            same_category=same_category,
            total=total,
            density=min(1.0, same_category / 20),
            density_level=density_level,
            has_category_data=True,
        ),
        traffic=TrafficMetrics(
            index=traffic_index,
            level=traffic_level,
            peak_time=PeakTime.DAY,
            weekend_ratio=weekend_ratio,
            time_pattern=pattern,
        ),
        cost=CostMetrics(avg_rent=avg_rent, level=rent_level, district="Gangnam-gu"),
        survival=SurvivalMetrics(
            closure_rate=closure_rate,
            opening_rate=closure_rate + net_change,
            net_change=net_change,
            risk=survival_risk,
            trend=SurvivalTrend.SHRINKING if net_change < -2 else SurvivalTrend.STABLE,
            is_estimated=survival_estimated,
            summary="",
        ),
        anchor=AnchorMetrics(station=station, nearest=station, has_any_anchor=station is not None),
    )
