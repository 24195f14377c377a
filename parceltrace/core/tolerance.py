"""Distance and angle tolerances shared by matching, clipping and merging."""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class SpatialTolerance:
    """Maximum deviation within which two elements are "the same place".

    Attributes:
        distance_meters: Maximum distance in meters
        angle_radians: Maximum angular deviation in radians

    Examples:
        >>> tol = SpatialTolerance(0.2, math.pi / 3)
        >>> tol.distance_is_close(0.15)
        True
    """

    distance_meters: float
    angle_radians: float

    def __post_init__(self):
        if self.distance_meters < 0:
            raise ValueError(f"distance_meters must be non-negative, got {self.distance_meters}")
        if not 0 <= self.angle_radians <= math.pi:
            raise ValueError(f"angle_radians must be within [0, pi], got {self.angle_radians}")

    def distance_is_close(self, distance_meters: float) -> bool:
        return distance_meters <= self.distance_meters

    def angle_is_close(self, angle_radians: float) -> bool:
        return abs(angle_radians) <= self.angle_radians


__all__ = ['SpatialTolerance']
