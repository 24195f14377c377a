"""Parcel records as delivered by a record fetcher."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from ..core.geodesy import LatLon

Ring = Tuple[LatLon, ...]

# LPIS usage codes ("kultura") and the tags describing them
USAGE_TAGS: Dict[str, Dict[str, str]] = {
    'R': {'landuse': 'farmland'},
    'T': {'landuse': 'meadow', 'meadow': 'agricultural'},
    'S': {'landuse': 'orchard'},
    'V': {'landuse': 'vineyard'},
    'C': {'landuse': 'farmland', 'crop': 'hop'},
    'L': {'landuse': 'forest'},
    'K': {'landuse': 'plant_nursery'},
}


def usage_tags(usage: str) -> Dict[str, str]:
    """Tags for an LPIS usage code; unknown codes map to no tags."""
    return dict(USAGE_TAGS.get(usage.strip().upper(), {}))


@dataclass(frozen=True)
class ParcelRecord:
    """One downloaded parcel.

    Attributes:
        ref_id: Stable identifier of the parcel in the source dataset
        usage: Usage / classification code
        tags: Semantic attributes to put on the traced area
        outer: Outer ring; a trailing point equal to the first is the closure
        inners: Inner rings (holes), same convention

    Examples:
        >>> record = ParcelRecord.from_usage(12345, 'R', outer_ring)
        >>> record.tags
        {'landuse': 'farmland'}
        >>> record.has_inners
        False
    """

    ref_id: int
    usage: str
    tags: Mapping[str, str]
    outer: Ring
    inners: Tuple[Ring, ...] = field(default_factory=tuple)

    @classmethod
    def from_usage(
        cls,
        ref_id: int,
        usage: str,
        outer: Sequence[LatLon],
        inners: Sequence[Sequence[LatLon]] = (),
        extra_tags: Optional[Mapping[str, str]] = None,
    ) -> "ParcelRecord":
        tags = usage_tags(usage)
        tags.update(extra_tags or {})
        return cls(
            ref_id=ref_id,
            usage=usage,
            tags=tags,
            outer=tuple(outer),
            inners=tuple(tuple(ring) for ring in inners),
        )

    @property
    def has_inners(self) -> bool:
        return bool(self.inners)

    @property
    def ref(self) -> str:
        return str(self.ref_id)


def open_ring(ring: Sequence[LatLon]) -> List[LatLon]:
    """Ring vertices without repeated consecutive points.

    The closing repetition of the first point is dropped as well.
    """
    points: List[LatLon] = []
    for point in ring:
        if not points or points[-1] != point:
            points.append(point)
    while len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points


__all__ = [
    'USAGE_TAGS',
    'usage_tags',
    'ParcelRecord',
    'open_ring',
]
