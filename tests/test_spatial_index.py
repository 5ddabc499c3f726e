import math

import h3
import pytest

from risk_errors import InvalidCoordinate
from risk_metrics.utils import calculate_distance
from spatial_index import SpatialIndexer, validate_coordinate
from tests.utils import GANGNAM


def test_ring_count_for_default_radius(indexer):
    assert indexer.ring_count(500) == 3
    assert indexer.ring_count(0) == 0
    assert indexer.ring_count(174) == 1


def test_cells_in_radius_contains_center(indexer, center_cells):
    center, cells = center_cells
    assert center in cells
    assert cells == frozenset(h3.grid_disk(center, 3))
    assert len(cells) == 37


def test_cells_in_radius_ignores_float_noise(indexer):
    center = indexer.cell_from_point(*GANGNAM)
    mid = indexer.cell_center(center)
    baseline = indexer.cells_in_radius(mid.lat, mid.lng, 500)
    for d_lat, d_lng in ((1e-9, 0), (-1e-9, 0), (0, 1e-9), (0, -1e-9)):
        assert indexer.cells_in_radius(mid.lat + d_lat, mid.lng + d_lng, 500) == baseline


def test_center_round_trip_stays_within_a_cell(indexer):
    lat, lng = GANGNAM
    center = indexer.cell_center(indexer.cell_from_point(lat, lng))
    assert calculate_distance(lat, lng, center.lat, center.lng) <= indexer.edge_length_m * 1.5


def test_cell_model(indexer):
    cell_id = indexer.cell_from_point(*GANGNAM)
    cell = indexer.cell(cell_id)
    assert cell.id == cell_id
    assert cell.resolution == 9


def test_cell_boundary_is_closed(indexer):
    ring = indexer.cell_boundary(indexer.cell_from_point(*GANGNAM))
    assert len(ring) == 7
    assert ring[0] == ring[-1]
    # (lng, lat) order
    assert 126 < ring[0][0] < 128
    assert 37 < ring[0][1] < 38


def test_unlisted_resolution_uses_h3_edge_length():
    indexer = SpatialIndexer(11)
    assert math.isclose(indexer.edge_length_m, h3.average_hexagon_edge_length(11, unit="m"))


@pytest.mark.parametrize(
    "lat,lng,field",
    [
        (None, 127.0, "lat"),
        (37.5, None, "lng"),
        (91.0, 127.0, "lat"),
        (37.5, -180.5, "lng"),
        (float("nan"), 127.0, "lat"),
        (37.5, float("inf"), "lng"),
        (True, 127.0, "lat"),
        ("37.5", 127.0, "lat"),
    ],
)
def test_invalid_coordinates_name_the_field(lat, lng, field):
    with pytest.raises(InvalidCoordinate) as exc:
        validate_coordinate(lat, lng)
    assert exc.value.field == field


def test_cell_from_point_validates(indexer):
    with pytest.raises(InvalidCoordinate):
        indexer.cell_from_point(100.0, 0.0)
