import asyncio
import json

import pytest

from all_types.internal_types import TimePattern
from backend_common.grid_storage import JsonGridStore, JsonRentTable, read_json
from risk_errors import UpstreamUnavailable

SNAPSHOT = {
    "stores": {
        "c1": {"store_counts": {"cafe": 3, "bar": 1}, "closure_count": 1, "prev_period_count": 4, "district": "Mapo-gu"},
        "c2": {"store_counts": "not a mapping"},
    },
    "traffic": {
        "c1": {"traffic_index": 55.5, "time_morning": 30, "time_day": 40, "time_night": 30},
    },
}


def test_grid_store_reads_snapshot(tmp_path):
    path = tmp_path / "grid.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(SNAPSHOT, f)
    store = JsonGridStore(str(path))

    async def run():
        return (
            await store.fetch_store_records(["c1", "c2", "c3"]),
            await store.fetch_traffic_records(["c1", "c3"]),
        )

    stores, traffic = asyncio.run(run())
    assert [r.cell_id for r in stores] == ["c1"]
    assert stores[0].total_count == 4
    assert traffic[0].time_pattern() == TimePattern(morning=30, day=40, night=30)


def test_missing_snapshot_is_unavailable(tmp_path):
    store = JsonGridStore(str(tmp_path / "absent.json"))
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(store.fetch_store_records(["c1"]))


def test_corrupt_file_is_unavailable(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(UpstreamUnavailable):
        asyncio.run(read_json(str(path)))


def test_missing_file_reads_as_none(tmp_path):
    assert asyncio.run(read_json(str(tmp_path / "absent.json"))) is None


@pytest.mark.parametrize(
    "district,rent",
    [
        ("Gangnam-gu", 180.0),
        ("gangnam-gu", 180.0),
        ("Jungnang", 70.0),
        ("Seoul Mapo-gu", 120.0),
        ("Busan", None),
        ("", None),
    ],
)
def test_rent_table_matching(tmp_path, district, rent):
    path = tmp_path / "rent.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"Gangnam-gu": 180, "Jungnang-gu": 70, "Mapo-gu": 120}, f)
    assert asyncio.run(JsonRentTable(str(path)).average_rent(district)) == rent
