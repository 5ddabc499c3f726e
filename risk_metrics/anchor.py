import asyncio
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from all_types.internal_types import (
    AnchorFacility,
    AnchorInfo,
    AnchorKind,
    AnchorLookup,
    AnchorMetrics,
)
from risk_metrics.utils import calculate_distance

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnchorConfig:
    # Proximity threshold per facility kind, metres
    radii: Mapping[AnchorKind, float] = field(
        default_factory=lambda: MappingProxyType(
            {
                AnchorKind.STATION: 1000.0,
                AnchorKind.MART: 2000.0,
                AnchorKind.DEPARTMENT_STORE: 2000.0,
                AnchorKind.STARBUCKS: 1000.0,
            }
        )
    )


DEFAULT_ANCHOR_CONFIG = AnchorConfig()


class AnchorLookupResult:
    """Facilities returned per kind, or ``failed`` when the lookup raised."""

    def __init__(self, facilities: Dict[AnchorKind, Optional[AnchorFacility]], failed: bool = False):
        self.facilities = facilities
        self.failed = failed


async def lookup_anchor_facilities(
    lookup: Optional[AnchorLookup],
    lat: float,
    lng: float,
    config: AnchorConfig = DEFAULT_ANCHOR_CONFIG,
) -> AnchorLookupResult:
    if lookup is None:
        return AnchorLookupResult({}, failed=True)

    kinds = list(config.radii)
    results = await asyncio.gather(
        *(lookup.nearest_facility(lat, lng, kind, config.radii[kind]) for kind in kinds),
        return_exceptions=True,
    )

    facilities = {}
    failed = False
    for kind, result in zip(kinds, results):
        if isinstance(result, Exception):
            logger.warning(f"Anchor lookup for {kind.value} failed: {result}")
            failed = True
            facilities[kind] = None
        else:
            facilities[kind] = result
    return AnchorLookupResult(facilities, failed=failed)


def calculate_anchor(
    lat: float,
    lng: float,
    lookup_result: AnchorLookupResult,
    config: AnchorConfig = DEFAULT_ANCHOR_CONFIG,
) -> AnchorMetrics:
    found = {}
    for kind, facility in lookup_result.facilities.items():
        if facility is None:
            continue
        distance = calculate_distance(lat, lng, facility.lat, facility.lng)
        if distance > config.radii.get(kind, 0.0):
            continue
        found[kind] = AnchorInfo(
            name=facility.name,
            kind=kind,
            distance_m=int(round(distance)),
            line=facility.line,
            count=facility.count,
        )

    nearest = None
    for kind in config.radii:
        info = found.get(kind)
        if info is not None and (nearest is None or info.distance_m < nearest.distance_m):
            nearest = info

    return AnchorMetrics(
        station=found.get(AnchorKind.STATION),
        mart=found.get(AnchorKind.MART),
        department_store=found.get(AnchorKind.DEPARTMENT_STORE),
        starbucks=found.get(AnchorKind.STARBUCKS),
        nearest=nearest,
        has_any_anchor=bool(found),
        lookup_failed=lookup_result.failed,
    )
