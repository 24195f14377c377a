"""Settings and classification rules for LPIS parcel tracing.

The tag predicates below are compiled once at import time and shared by
every trace. ``TraceSettings`` bundles the switches and tolerances of one
pipeline; it is frozen so a single instance can be reused freely.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from .core.predicates import TagMatch, all_of, any_of, tag
from .core.tolerance import SpatialTolerance

SOURCE = 'lpis'

OVERSIZE_IN_DATA_BOUNDS_METERS = 5.0
CONNECT_TOLERANCE = SpatialTolerance(0.2, math.pi / 3)
RETRACED_NODE_TOLERANCE_METERS = 0.40

# landuse=* except no/military, plus natural landcover and gardens
REUSE_EXISTING_LANDUSE_NODE_MATCH: TagMatch = any_of(
    all_of(tag('landuse'), ~tag('landuse', 'no'), ~tag('landuse', 'military')),
    tag('natural', 'scrub'),
    tag('natural', 'wood'),
    tag('natural', 'grassland'),
    tag('leisure', 'garden'),
)
CLIP_LANDUSE_WAY_MATCH: TagMatch = REUSE_EXISTING_LANDUSE_NODE_MATCH
MERGE_LANDUSE_WAY_MATCH: TagMatch = CLIP_LANDUSE_WAY_MATCH

RETRACE_AREA_MATCH: TagMatch = any_of(
    tag('landuse', 'farmland'),
    tag('landuse', 'meadow'),
    tag('landuse', 'orchard'),
    tag('landuse', 'vineyard'),
    tag('landuse', 'plant_nursery'),
    all_of(tag('landuse', 'forest'), tag('source', SOURCE)),
)


@dataclass(frozen=True)
class TraceSettings:
    """Switches and tolerances of a reconciliation pipeline.

    Attributes:
        perform_retrace: Replace the geometry of a matching existing area
        perform_clipping: Clip overlapping landuse areas; also selects the
            tolerant near-node reuse instead of exact node reuse
        perform_way_merging: Merge ways that end up identical
        source: Provenance tag value written to and expected on traced areas
        oversize_meters: Margin around the traced bbox that must be downloaded
        connect_tolerance: Default node reuse, connect and clip tolerance
        retraced_node_tolerance_meters: Reuse distance for untagged nodes of
            the retraced area, which may be moved onto the new boundary
        reuse_node_match: Areas whose boundary nodes may be reused
        clip_match: Areas that may be clipped
        merge_match: Areas that may be merged
        retrace_match: Areas that may be retraced

    Examples:
        >>> settings = TraceSettings(perform_clipping=False)
        >>> settings.connect_tolerance.distance_meters
        0.2
    """

    perform_retrace: bool = True
    perform_clipping: bool = True
    perform_way_merging: bool = True
    source: str = SOURCE
    oversize_meters: float = OVERSIZE_IN_DATA_BOUNDS_METERS
    connect_tolerance: SpatialTolerance = CONNECT_TOLERANCE
    retraced_node_tolerance_meters: float = RETRACED_NODE_TOLERANCE_METERS
    reuse_node_match: TagMatch = field(default=REUSE_EXISTING_LANDUSE_NODE_MATCH)
    clip_match: TagMatch = field(default=CLIP_LANDUSE_WAY_MATCH)
    merge_match: TagMatch = field(default=MERGE_LANDUSE_WAY_MATCH)
    retrace_match: TagMatch = field(default=RETRACE_AREA_MATCH)

    def __post_init__(self):
        if self.oversize_meters < 0:
            raise ValueError(f"oversize_meters must be non-negative, got {self.oversize_meters}")
        if self.retraced_node_tolerance_meters < 0:
            raise ValueError(
                f"retraced_node_tolerance_meters must be non-negative, got {self.retraced_node_tolerance_meters}"
            )
        if not self.source:
            raise ValueError("source must not be empty")


__all__ = [
    'SOURCE',
    'OVERSIZE_IN_DATA_BOUNDS_METERS',
    'CONNECT_TOLERANCE',
    'RETRACED_NODE_TOLERANCE_METERS',
    'REUSE_EXISTING_LANDUSE_NODE_MATCH',
    'CLIP_LANDUSE_WAY_MATCH',
    'MERGE_LANDUSE_WAY_MATCH',
    'RETRACE_AREA_MATCH',
    'TraceSettings',
]
