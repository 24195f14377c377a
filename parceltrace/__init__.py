"""Parceltrace - LPIS parcel tracing into vector map data.

This library fetches land parcel boundaries and reconciles them with an
existing map: it retraces matching areas, reuses nearby nodes, clips
overlapping landuse and merges duplicate ways, all inside one edit session
that is committed only when the whole trace succeeds.
"""


# Pipeline
from .trace import (
    ReconciliationPipeline,
    TraceResult,
    ParcelRecord,
    RecordFetcher,
    usage_tags,
)

# Settings
from .config import TraceSettings

# Map model
from .edit import MapDataset, WayEditor

# Core types (enums)
from .core import (
    ReuseNearNodeMethod,
    RetraceMatch,
    TraceState,
)

# Geometry helpers
from .core import LatLon, BBox, SpatialTolerance

# Core exceptions
from .core import (
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

__all__ = [

    # Pipeline
    'ReconciliationPipeline',
    'TraceResult',
    'ParcelRecord',
    'RecordFetcher',
    'usage_tags',

    # Settings
    'TraceSettings',

    # Map model
    'MapDataset',
    'WayEditor',

    # Core types (enums)
    'ReuseNearNodeMethod',
    'RetraceMatch',
    'TraceState',

    # Geometry helpers
    'LatLon',
    'BBox',
    'SpatialTolerance',

    # Core exceptions
    'TraceError',
    'TraceAbort',
    'FetchFailure',
    'TraceCancelled',
    'RetraceAmbiguous',
    'BoundsExceeded',
    'RetraceUnsupported',
    'GeometryInvalid',
    'EditorClosedError',
]
