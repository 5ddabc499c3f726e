from typing import Sequence, Tuple

from geopy.distance import geodesic


def calculate_distance(origin_lat: float, origin_lng: float, dest_lat: float, dest_lng: float) -> float:
    """Geodesic distance in metres."""
    return geodesic((origin_lat, origin_lng), (dest_lat, dest_lng)).meters


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round1(value: float) -> float:
    return round(value * 10) / 10


def piecewise_linear(value: float, points: Sequence[Tuple[float, float]]) -> float:
    """
    Interpolates ``value`` over ascending (x, y) breakpoints.
    Values outside the breakpoints take the nearest end value.
    """
    if value <= points[0][0]:
        return points[0][1]
    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        if value <= x1:
            if x1 == x0:
                return y1
            return y0 + (y1 - y0) * (value - x0) / (x1 - x0)
    return points[-1][1]
