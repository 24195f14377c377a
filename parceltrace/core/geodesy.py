"""Geographic coordinate utilities.

Map coordinates are WGS84 latitude/longitude in degrees, while every
tolerance in parceltrace is expressed in meters. This module converts between
the two: great-circle distances, metric margins turned into lat/lon sizes,
and a local equirectangular projection for planar geometry work.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple

import numpy as np
from shapely.geometry import Polygon, box

EARTH_RADIUS_METERS = 6371000.0
METERS_PER_DEGREE = math.pi * EARTH_RADIUS_METERS / 180.0


@dataclass(frozen=True)
class LatLon:
    """A WGS84 position in degrees."""

    lat: float
    lon: float

    @property
    def xy(self) -> Tuple[float, float]:
        """Shapely-ordered ``(x, y)`` tuple, i.e. ``(lon, lat)``."""
        return (self.lon, self.lat)

    def distance(self, other: "LatLon") -> float:
        return haversine_distance(self, other)

    def offset(self, north_meters: float, east_meters: float) -> "LatLon":
        """Return the position shifted by the given metric offsets.

        Examples:
            >>> origin = LatLon(49.8, 15.4)
            >>> round(origin.distance(origin.offset(0.0, 0.3)), 6)
            0.3
        """
        dlat, dlon = meters_to_degrees(1.0, self.lat)
        return LatLon(self.lat + north_meters * dlat, self.lon + east_meters * dlon)


def haversine_distance(a: LatLon, b: LatLon) -> float:
    """Great-circle distance between two positions in meters."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    delta_phi = math.radians(b.lat - a.lat)
    delta_lambda = math.radians(b.lon - a.lon)

    h = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_METERS * math.asin(min(1.0, math.sqrt(h)))


def meters_to_degrees(meters: float, at_lat: float) -> Tuple[float, float]:
    """Convert a metric length to ``(dlat, dlon)`` degrees at the given latitude."""
    dlat = meters / METERS_PER_DEGREE
    cos_lat = max(math.cos(math.radians(at_lat)), 1e-12)
    dlon = meters / (METERS_PER_DEGREE * cos_lat)
    return dlat, dlon


@dataclass(frozen=True)
class BBox:
    """Axis-aligned lat/lon bounding box."""

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    @classmethod
    def from_points(cls, points: Iterable[LatLon]) -> "BBox":
        points = list(points)
        if not points:
            raise ValueError("Cannot compute bounding box of no points")
        lats = [p.lat for p in points]
        lons = [p.lon for p in points]
        return cls(min(lats), min(lons), max(lats), max(lons))

    @property
    def center(self) -> LatLon:
        return LatLon((self.min_lat + self.max_lat) / 2, (self.min_lon + self.max_lon) / 2)

    def union(self, other: "BBox") -> "BBox":
        return BBox(
            min(self.min_lat, other.min_lat),
            min(self.min_lon, other.min_lon),
            max(self.max_lat, other.max_lat),
            max(self.max_lon, other.max_lon),
        )

    def enlarged(self, size: "LatLonSize") -> "BBox":
        return BBox(
            self.min_lat - size.dlat,
            self.min_lon - size.dlon,
            self.max_lat + size.dlat,
            self.max_lon + size.dlon,
        )

    def intersects(self, other: "BBox") -> bool:
        return not (
            other.min_lat > self.max_lat
            or other.max_lat < self.min_lat
            or other.min_lon > self.max_lon
            or other.max_lon < self.min_lon
        )

    def to_polygon(self) -> Polygon:
        return box(self.min_lon, self.min_lat, self.max_lon, self.max_lat)


@dataclass(frozen=True)
class LatLonSize:
    """A metric margin expressed in degrees for a particular area.

    Examples:
        >>> bbox = BBox(49.8, 15.4, 49.81, 15.41)
        >>> size = LatLonSize.get(bbox, 5.0)
        >>> enlarged = bbox.enlarged(size)
    """

    dlat: float
    dlon: float

    @classmethod
    def get(cls, bbox: BBox, meters: float) -> "LatLonSize":
        dlat, dlon = meters_to_degrees(meters, bbox.center.lat)
        return cls(dlat, dlon)


class LocalProjection:
    """Equirectangular projection to meters around an origin.

    Accurate to well below the tolerances used here for parcel-sized areas.
    """

    def __init__(self, origin: LatLon):
        self.origin = origin
        self._m_per_deg_lat = METERS_PER_DEGREE
        self._m_per_deg_lon = METERS_PER_DEGREE * math.cos(math.radians(origin.lat))

    def to_local(self, position: LatLon) -> Tuple[float, float]:
        x = (position.lon - self.origin.lon) * self._m_per_deg_lon
        y = (position.lat - self.origin.lat) * self._m_per_deg_lat
        return (x, y)

    def to_local_array(self, positions: Sequence[LatLon]) -> np.ndarray:
        return np.array([self.to_local(p) for p in positions], dtype=float).reshape(-1, 2)

    def to_latlon(self, x: float, y: float) -> LatLon:
        return LatLon(
            self.origin.lat + y / self._m_per_deg_lat,
            self.origin.lon + x / self._m_per_deg_lon,
        )


def point_to_segment_projection(
    point: np.ndarray,
    segment_start: np.ndarray,
    segment_end: np.ndarray
) -> Tuple[float, np.ndarray, float]:
    """Project a planar point onto a line segment.

    Args:
        point: Point coordinates
        segment_start: Segment start point
        segment_end: Segment end point

    Returns:
        Tuple of (parameter t in [0, 1], projected point, distance to it)
    """
    line_vec = segment_end - segment_start
    line_len_sq = float(np.dot(line_vec, line_vec))

    if line_len_sq < 1e-12:
        return 0.0, segment_start.copy(), float(np.linalg.norm(point - segment_start))

    t = float(np.dot(point - segment_start, line_vec)) / line_len_sq
    t = max(0.0, min(1.0, t))
    projection = segment_start + t * line_vec
    return t, projection, float(np.linalg.norm(point - projection))


def angle_between(v1: np.ndarray, v2: np.ndarray) -> float:
    """Unsigned angle between two planar vectors in radians."""
    n1 = float(np.linalg.norm(v1))
    n2 = float(np.linalg.norm(v2))
    if n1 < 1e-12 or n2 < 1e-12:
        return 0.0
    cos_angle = float(np.dot(v1, v2)) / (n1 * n2)
    return math.acos(max(-1.0, min(1.0, cos_angle)))


__all__ = [
    'EARTH_RADIUS_METERS',
    'METERS_PER_DEGREE',
    'LatLon',
    'BBox',
    'LatLonSize',
    'LocalProjection',
    'haversine_distance',
    'meters_to_degrees',
    'point_to_segment_projection',
    'angle_between',
]
