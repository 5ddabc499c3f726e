import asyncio

import pytest

from all_types.internal_types import PLACEHOLDER_TIME_PATTERN, AreaType
from categories import get_category
from grid_aggregator import GridAggregator, is_placeholder_pattern, normalize_pattern
from risk_metrics.survival import calculate_survival
from tests.utils import FailingGridStore, FakeGridStore, make_metrics

CELLS = ["c1", "c2", "c3", "c4"]


def _aggregate(store, cells=CELLS):
    return asyncio.run(GridAggregator(store).aggregate(cells))


def test_single_bulk_call_per_source():
    store = FakeGridStore()
    _aggregate(store)
    assert store.store_calls == [sorted(CELLS)]
    assert store.traffic_calls == [sorted(CELLS)]


def test_store_counts_are_summed_and_coverage_reported():
    store = FakeGridStore(
        stores={
            "c1": {"store_counts": {"cafe": 2, "bar": 1}, "district": "Mapo-gu", "period": "2024Q1"},
            "c2": {"store_counts": {"cafe": 1}, "district": "Mapo-gu", "period": "2024Q2"},
            "zz": {"store_counts": {"cafe": 50}},
        }
    )
    agg = _aggregate(store)
    assert agg.store_counts == {"cafe": 3, "bar": 1}
    assert agg.total_stores == 4
    assert agg.store_cells_with_data == 2
    assert agg.store_coverage == pytest.approx(0.5)
    assert agg.traffic_coverage == 0.0
    assert agg.district == "Mapo-gu"
    assert agg.store_period == "2024Q2"


def test_churn_base_falls_back_to_current_total():
    store = FakeGridStore(
        stores={
            "c1": {"store_counts": {"cafe": 2}, "closure_count": 2, "opening_count": 1, "prev_period_count": 10},
            "c2": {"store_counts": {"cafe": 1}},
        }
    )
    agg = _aggregate(store)
    assert agg.has_churn_data
    assert (agg.closure_count, agg.opening_count, agg.prev_period_count) == (2, 1, 11)


def test_closures_without_previous_count_are_measured():
    store = FakeGridStore(stores={"c1": {"store_counts": {"cafe": 10}, "closure_count": 2, "opening_count": 1}})
    agg = _aggregate(store)
    assert agg.has_churn_data
    assert agg.prev_period_count == 10

    metrics = make_metrics()
    survival = calculate_survival(
        agg, get_category("cafe"), metrics.competition, metrics.traffic, metrics.cost, AreaType.MIXED
    )
    assert not survival.is_estimated
    assert (survival.closure_rate, survival.opening_rate) == (20.0, 10.0)


def test_no_churn_data_without_closures():
    store = FakeGridStore(stores={"c1": {"store_counts": {"cafe": 10}, "opening_count": 3, "prev_period_count": 8}})
    agg = _aggregate(store)
    assert not agg.has_churn_data


def test_traffic_is_a_simple_average():
    store = FakeGridStore(
        traffic={
            "c1": {"traffic_index": 80, "weekend_ratio": 1.2},
            "c2": {"traffic_index": 40, "weekend_ratio": 0.8},
        }
    )
    agg = _aggregate(store)
    assert agg.traffic_index == pytest.approx(60)
    assert agg.weekend_ratio == pytest.approx(1.0)
    assert agg.traffic_cells_with_data == 2


def test_placeholder_patterns_are_left_out_of_the_average():
    store = FakeGridStore(
        traffic={
            "c1": {"traffic_index": 50, "time_morning": 33, "time_day": 34, "time_night": 33},
            "c2": {"traffic_index": 50, "time_morning": 20, "time_day": 50, "time_night": 30},
        }
    )
    agg = _aggregate(store)
    assert agg.time_pattern.as_tuple() == pytest.approx((20, 50, 30))


def test_averaged_pattern_sums_to_100():
    store = FakeGridStore(
        traffic={
            "c1": {"traffic_index": 50, "time_morning": 10, "time_day": 20, "time_night": 30},
            "c2": {"traffic_index": 50, "time_morning": 40, "time_day": 40, "time_night": 20},
        }
    )
    agg = _aggregate(store)
    assert sum(agg.time_pattern.as_tuple()) == pytest.approx(100)
    assert agg.time_pattern.morning == pytest.approx(25)


def test_only_placeholder_patterns_keep_the_placeholder():
    store = FakeGridStore(traffic={"c1": {"traffic_index": 50, "time_morning": 33, "time_day": 34, "time_night": 33}})
    agg = _aggregate(store)
    assert is_placeholder_pattern(agg.time_pattern)


def test_failed_lookups_mean_no_data():
    store = FailingGridStore()
    agg = _aggregate(store)
    assert agg.store_coverage == 0.0
    assert agg.traffic_coverage == 0.0
    assert agg.traffic_index is None
    assert agg.time_pattern == PLACEHOLDER_TIME_PATTERN
    assert len(store.store_calls) == 1


def test_normalize_pattern_handles_zero_total():
    assert normalize_pattern(0, 0, 0) == PLACEHOLDER_TIME_PATTERN
