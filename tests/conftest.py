import pytest

from all_types.internal_types import AddressInfo, AnchorKind
from categories import get_category
from risk_analysis import RiskAnalysisEngine
from spatial_index import SpatialIndexer
from tests.utils import (
    GANGNAM,
    FakeAnchorLookup,
    FakeGeocoder,
    FakeGridStore,
    FakeRentLookup,
    facility_north_of,
)


@pytest.fixture
def indexer():
    return SpatialIndexer(9)


@pytest.fixture
def center_cells(indexer):
    lat, lng = GANGNAM
    return indexer.cell_from_point(lat, lng), indexer.cells_in_radius(lat, lng, 500)


@pytest.fixture
def cafe():
    return get_category("cafe")


@pytest.fixture
def populated_store(center_cells):
    """Grid store where every cell in range reports stores and traffic."""
    _, cells = center_cells
    stores = {}
    traffic = {}
    for i, cell_id in enumerate(sorted(cells)):
        stores[cell_id] = {
            "store_counts": {"cafe": 1, "restaurant_korean": 2, "convenience": 1},
            "closure_count": 1 if i % 3 == 0 else 0,
            "opening_count": 1 if i % 4 == 0 else 0,
            "prev_period_count": 4,
            "district": "Gangnam-gu",
            "period": "2024Q2",
        }
        traffic[cell_id] = {
            "traffic_index": 72.0,
            "time_morning": 28,
            "time_day": 44,
            "time_night": 28,
            "weekend_ratio": 0.9,
            "period": "2024Q2",
        }
    return FakeGridStore(stores, traffic)


@pytest.fixture
def make_engine():
    def _make(grid=None, geocoder=None, rent=None, anchors="default", timeout=None):
        lat, lng = GANGNAM
        if anchors == "default":
            anchors = FakeAnchorLookup(
                {
                    AnchorKind.STATION: facility_north_of(lat, lng, 150, AnchorKind.STATION, "Gangnam"),
                    AnchorKind.MART: facility_north_of(lat, lng, 900, AnchorKind.MART, "E-Mart"),
                }
            )
        return RiskAnalysisEngine(
            grid_reader=grid or FakeGridStore(),
            geocoder=geocoder or FakeGeocoder(AddressInfo(address="Yeoksam-dong", region="Seoul", district="Gangnam-gu")),
            rent_lookup=rent or FakeRentLookup({"Gangnam-gu": 160.0}),
            anchor_lookup=anchors,
            request_timeout_s=timeout,
        )

    return _make
