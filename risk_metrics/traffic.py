"""
Traffic metrics.

The index comes from the grid when any cell reports traffic; otherwise it
is estimated from the nearest station and the store density. The
time-of-day pattern is patched in a second pass, once the area type is
known, and only when the aggregated pattern is the placeholder triple.
"""

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from all_types.internal_types import (
    AreaType,
    GridAggregate,
    PeakTime,
    PLACEHOLDER_TIME_PATTERN,
    TimePattern,
    TrafficLevel,
    TrafficMetrics,
)
from risk_metrics.utils import clamp, round1

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrafficConfig:
    very_low_below: float = 20.0
    low_below: float = 40.0
    medium_below: float = 60.0

    # Station-based estimate used when no cell reports traffic
    station_max_points: float = 50.0
    station_decay_m: float = 300.0
    station_decay_floor: float = 0.1
    # (max total stores, factor); above the last bound the overflow factor applies
    density_factors: Tuple[Tuple[int, float], ...] = ((5, 0.8), (20, 0.9), (50, 1.0), (100, 1.2))
    density_overflow_factor: float = 1.5

    # Substitute patterns for the placeholder triple
    commute_station_m: float = 300.0
    patterns: Mapping[str, TimePattern] = field(
        default_factory=lambda: MappingProxyType(
            {
                "commute": TimePattern(morning=38, day=28, night=34),
                "commercial": TimePattern(morning=25, day=42, night=33),
                "nightlife": TimePattern(morning=22, day=33, night=45),
                "mixed": TimePattern(morning=30, day=36, night=34),
            }
        )
    )


DEFAULT_TRAFFIC_CONFIG = TrafficConfig()


def traffic_level(index: float, config: TrafficConfig = DEFAULT_TRAFFIC_CONFIG) -> TrafficLevel:
    if index < config.very_low_below:
        return TrafficLevel.VERY_LOW
    elif index < config.low_below:
        return TrafficLevel.LOW
    elif index < config.medium_below:
        return TrafficLevel.MEDIUM
    return TrafficLevel.HIGH


def peak_time(pattern: TimePattern) -> PeakTime:
    """Bucket with the largest share; ties resolve morning, then day, then night."""
    best = PeakTime.MORNING
    best_share = pattern.morning
    for bucket, share in ((PeakTime.DAY, pattern.day), (PeakTime.NIGHT, pattern.night)):
        if share > best_share:
            best, best_share = bucket, share
    return best


def density_factor(total_stores: int, config: TrafficConfig = DEFAULT_TRAFFIC_CONFIG) -> float:
    for bound, factor in config.density_factors:
        if total_stores <= bound:
            return factor
    return config.density_overflow_factor


def estimate_traffic_index(
    station_distance_m: Optional[float],
    total_stores: int,
    config: TrafficConfig = DEFAULT_TRAFFIC_CONFIG,
) -> float:
    if station_distance_m is None:
        station_points = 0.0
    else:
        decay = max(config.station_decay_floor, math.exp(-station_distance_m / config.station_decay_m))
        station_points = config.station_max_points * decay
    return round1(clamp(station_points * density_factor(total_stores, config), 0.0, 100.0))


def calculate_traffic(
    aggregate: GridAggregate,
    station_distance_m: Optional[float] = None,
    config: TrafficConfig = DEFAULT_TRAFFIC_CONFIG,
) -> TrafficMetrics:
    """Provisional traffic metrics; the pattern is passed through as aggregated."""
    if aggregate.traffic_index is None:
        index = estimate_traffic_index(station_distance_m, aggregate.total_stores, config)
        is_estimated = True
        logger.info(f"No traffic cells in range, estimated index {index:.1f}")
    else:
        index = round1(clamp(aggregate.traffic_index, 0.0, 100.0))
        is_estimated = False

    pattern = aggregate.time_pattern
    return TrafficMetrics(
        index=index,
        level=traffic_level(index, config),
        peak_time=peak_time(pattern),
        weekend_ratio=aggregate.weekend_ratio if aggregate.weekend_ratio is not None else 1.0,
        time_pattern=pattern,
        is_estimated=is_estimated,
    )


def estimated_pattern(
    area_type: AreaType,
    station_distance_m: Optional[float],
    config: TrafficConfig = DEFAULT_TRAFFIC_CONFIG,
) -> TimePattern:
    near_station = station_distance_m is not None and station_distance_m <= config.commute_station_m
    if area_type == AreaType.RESIDENTIAL or near_station:
        return config.patterns["commute"]
    if area_type == AreaType.COMMERCIAL_CORE:
        return config.patterns["commercial"]
    if area_type == AreaType.SPECIAL:
        return config.patterns["nightlife"]
    return config.patterns["mixed"]


def patch_traffic_pattern(
    traffic: TrafficMetrics,
    area_type: AreaType,
    station_distance_m: Optional[float] = None,
    config: TrafficConfig = DEFAULT_TRAFFIC_CONFIG,
) -> TrafficMetrics:
    """Replaces the placeholder triple with an area-based estimate; anything else is returned as is."""
    if traffic.time_pattern.as_tuple() != PLACEHOLDER_TIME_PATTERN.as_tuple():
        return traffic

    pattern = estimated_pattern(area_type, station_distance_m, config)
    logger.info(f"Placeholder time pattern replaced with {area_type.value} estimate")
    return traffic.model_copy(
        update={
            "time_pattern": pattern,
            "peak_time": peak_time(pattern),
            "pattern_estimated": True,
        }
    )
