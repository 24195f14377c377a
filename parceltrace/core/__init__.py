"""Core types and utilities for parceltrace.

This module provides enums, exceptions, tolerances, geodesy helpers and tag
predicates used throughout the library.
"""

from .types import (
    ReuseNearNodeMethod,
    RetraceMatch,
    TraceState,
)

from .errors import (
    TraceError,
    TraceAbort,
    FetchFailure,
    TraceCancelled,
    RetraceAmbiguous,
    BoundsExceeded,
    RetraceUnsupported,
    GeometryInvalid,
    EditorClosedError,
)

from .tolerance import SpatialTolerance
from .geodesy import LatLon, BBox, LatLonSize, LocalProjection, haversine_distance
from .predicates import TagMatch, tag, any_of, all_of

__all__ = [
    # Enums
    'ReuseNearNodeMethod',
    'RetraceMatch',
    'TraceState',

    # Exceptions
    'TraceError',
    'TraceAbort',
    'FetchFailure',
    'TraceCancelled',
    'RetraceAmbiguous',
    'BoundsExceeded',
    'RetraceUnsupported',
    'GeometryInvalid',
    'EditorClosedError',

    # Geometry
    'SpatialTolerance',
    'LatLon',
    'BBox',
    'LatLonSize',
    'LocalProjection',
    'haversine_distance',

    # Predicates
    'TagMatch',
    'tag',
    'any_of',
    'all_of',
]
