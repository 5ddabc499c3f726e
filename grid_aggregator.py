"""
Merges per-cell grid records into one aggregate for the analysis radius.

Traffic is merged as a simple (unweighted) average across the cells that
report traffic. Time-of-day triples equal to the placeholder pattern carry
no information and are left out of the average.
"""

import asyncio
import logging
from collections import Counter
from typing import Iterable, List, Optional

from all_types.internal_types import (
    GridAggregate,
    GridStoreReader,
    GridStoreRecord,
    GridTrafficRecord,
    PLACEHOLDER_TIME_PATTERN,
    TimePattern,
)

logger = logging.getLogger(__name__)


def is_placeholder_pattern(pattern: Optional[TimePattern]) -> bool:
    return pattern is not None and pattern.as_tuple() == PLACEHOLDER_TIME_PATTERN.as_tuple()


def normalize_pattern(morning: float, day: float, night: float) -> TimePattern:
    total = morning + day + night
    if total <= 0:
        return PLACEHOLDER_TIME_PATTERN
    return TimePattern(
        morning=morning * 100.0 / total,
        day=day * 100.0 / total,
        night=night * 100.0 / total,
    )


def _first_per_cell(records: Iterable, requested: set) -> List:
    kept = {}
    for record in records:
        if record.cell_id in requested and record.cell_id not in kept:
            kept[record.cell_id] = record
    return list(kept.values())


def _ratio(part: int, whole: int) -> float:
    return part / whole if whole else 0.0


class GridAggregator:
    def __init__(self, reader: GridStoreReader):
        self.reader = reader

    async def _fetch(self, name: str, coro) -> list:
        try:
            return list(await coro or [])
        except Exception as e:
            logger.warning(f"Grid {name} lookup failed, treating as no data: {e}")
            return []

    async def aggregate(self, cell_ids: Iterable[str]) -> GridAggregate:
        ordered = sorted(set(cell_ids))
        requested = set(ordered)

        store_records, traffic_records = await asyncio.gather(
            self._fetch("store", self.reader.fetch_store_records(ordered)),
            self._fetch("traffic", self.reader.fetch_traffic_records(ordered)),
        )
        store_records = _first_per_cell(store_records, requested)
        traffic_records = _first_per_cell(traffic_records, requested)

        aggregate = GridAggregate(cell_ids=ordered)
        self._merge_stores(aggregate, store_records)
        self._merge_traffic(aggregate, traffic_records)

        aggregate.store_coverage = _ratio(aggregate.store_cells_with_data, len(ordered))
        aggregate.traffic_coverage = _ratio(aggregate.traffic_cells_with_data, len(ordered))
        logger.info(
            f"Aggregated {len(ordered)} cells: store coverage {aggregate.store_coverage:.2f}, "
            f"traffic coverage {aggregate.traffic_coverage:.2f}"
        )
        return aggregate

    @staticmethod
    def _merge_stores(aggregate: GridAggregate, records: List[GridStoreRecord]) -> None:
        counts = Counter()
        districts = Counter()
        periods = []
        for record in records:
            counts.update({k: v for k, v in record.store_counts.items() if v})
            aggregate.total_stores += record.total_count or 0
            aggregate.closure_count += record.closure_count or 0
            aggregate.opening_count += record.opening_count or 0
            # Cells without a previous-period count fall back to their current total
            aggregate.prev_period_count += record.prev_period_count or record.total_count or 0
            if record.district:
                districts[record.district] += 1
            if record.period:
                periods.append(record.period)

        aggregate.store_counts = dict(counts)
        aggregate.store_cells_with_data = len(records)
        aggregate.has_churn_data = aggregate.closure_count > 0 and aggregate.prev_period_count > 0
        if districts:
            # Counter keeps first-seen order for equal counts
            aggregate.district = districts.most_common(1)[0][0]
        aggregate.store_period = max(periods) if periods else None

    @staticmethod
    def _merge_traffic(aggregate: GridAggregate, records: List[GridTrafficRecord]) -> None:
        aggregate.traffic_cells_with_data = len(records)
        if not records:
            return

        aggregate.traffic_index = sum(r.traffic_index for r in records) / len(records)

        patterns = [r.time_pattern() for r in records]
        informative = [p for p in patterns if p is not None and not is_placeholder_pattern(p)]
        if informative:
            n = len(informative)
            aggregate.time_pattern = normalize_pattern(
                sum(p.morning for p in informative) / n,
                sum(p.day for p in informative) / n,
                sum(p.night for p in informative) / n,
            )

        ratios = [r.weekend_ratio for r in records if r.weekend_ratio is not None]
        if ratios:
            aggregate.weekend_ratio = sum(ratios) / len(ratios)

        periods = [r.period for r in records if r.period]
        aggregate.traffic_period = max(periods) if periods else None
