import logging
import math
from collections import deque
from typing import FrozenSet, List, Tuple

import h3

from all_types.internal_types import Cell, LatLng
from risk_errors import InvalidCoordinate

logger = logging.getLogger(__name__)

DEFAULT_RESOLUTION = 9
DEFAULT_RADIUS_M = 500.0

# Average hexagon edge length in metres per resolution
AVG_EDGE_LENGTH_M = {
    7: 1406.475763,
    8: 531.414010,
    9: 174.375668,
    10: 65.907807,
}


def validate_coordinate(lat, lng) -> None:
    for field, value, bound in (("lat", lat, 90.0), ("lng", lng, 180.0)):
        if value is None or isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidCoordinate(field, "must be a number")
        if math.isnan(value) or math.isinf(value):
            raise InvalidCoordinate(field, "must be a finite number")
        if value < -bound or value > bound:
            raise InvalidCoordinate(field, f"must be within [-{bound:g}, {bound:g}]")


class SpatialIndexer:
    """Hexagonal cell lookups at one fixed resolution."""

    def __init__(self, resolution: int = DEFAULT_RESOLUTION):
        self.resolution = resolution
        if resolution in AVG_EDGE_LENGTH_M:
            self.edge_length_m = AVG_EDGE_LENGTH_M[resolution]
        else:
            self.edge_length_m = h3.average_hexagon_edge_length(resolution, unit="m")

    def cell_from_point(self, lat: float, lng: float) -> str:
        validate_coordinate(lat, lng)
        return h3.latlng_to_cell(lat, lng, self.resolution)

    def ring_count(self, radius_m: float) -> int:
        if radius_m <= 0:
            return 0
        return math.ceil(radius_m / self.edge_length_m)

    def cells_in_radius(self, lat: float, lng: float, radius_m: float = DEFAULT_RADIUS_M) -> FrozenSet[str]:
        center = self.cell_from_point(lat, lng)
        rings = self.ring_count(radius_m)

        visited = {center}
        frontier = deque([(center, 0)])
        while frontier:
            cell_id, depth = frontier.popleft()
            if depth == rings:
                continue
            for neighbour in h3.grid_disk(cell_id, 1):
                if neighbour not in visited:
                    visited.add(neighbour)
                    frontier.append((neighbour, depth + 1))

        logger.debug(f"{len(visited)} cells within {rings} rings of {center}")
        return frozenset(visited)

    def cell_center(self, cell_id: str) -> LatLng:
        lat, lng = h3.cell_to_latlng(cell_id)
        return LatLng(lat=lat, lng=lng)

    def cell(self, cell_id: str) -> Cell:
        return Cell(id=cell_id, resolution=h3.get_resolution(cell_id), center=self.cell_center(cell_id))

    def cell_boundary(self, cell_id: str) -> List[Tuple[float, float]]:
        """Closed polygon ring of (lng, lat) vertices; the first vertex is repeated last."""
        vertices = [(lng, lat) for lat, lng in h3.cell_to_boundary(cell_id)]
        vertices.append(vertices[0])
        return vertices
