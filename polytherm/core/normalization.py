"""
Coordinate normalization.

Map widgets report longitudes outside [-180, 180] once the user pans across the
antimeridian; everything downstream (centroids, cache keys) expects wrapped values.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

from polytherm.model import Coordinate


def wrap_longitude(lng: float) -> float:
    """
    Wrap a longitude into [-180, 180].

    Example:
        >>> wrap_longitude(190.0)
        -170.0
        >>> wrap_longitude(-540.0)
        -180.0
        >>> wrap_longitude(180.0)
        180.0
    """
    x = float(lng)
    if -180.0 <= x <= 180.0:
        return x
    return ((x + 180.0) % 360.0) - 180.0


def clamp_latitude(lat: float) -> float:
    return max(-90.0, min(float(lat), 90.0))


def normalize_coordinate(lat: float, lng: float) -> Coordinate:
    return clamp_latitude(lat), wrap_longitude(lng)


def parse_coordinate(coords: Sequence[float]) -> Coordinate:
    """
    Parse a ``[lat, lng]`` pair (extra dimensions ignored) and normalize it.
    """
    c = list(coords)
    if len(c) < 2:
        raise ValueError("Coordinate sequence must contain at least lat,lng")
    return normalize_coordinate(float(c[0]), float(c[1]))


def normalize_coordinates(points: Iterable[Sequence[float]]) -> List[Coordinate]:
    return [parse_coordinate(p) for p in points]
