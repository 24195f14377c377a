"""Clip existing areas against a newly traced boundary.

Overlapping parts of neighbouring areas are cut away so the traced area and
its neighbours share a boundary instead of overlapping. Geometry is computed
with shapely in a local metric projection; the clipped ring is then mapped
back onto existing nodes wherever a vertex lies within tolerance of one.
Vertices created where a clipped edge crosses the clip boundary are also
inserted into the clip way, so both areas share the new boundary nodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, List, Optional

import numpy as np
from loguru import logger
from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from ..core.geodesy import LocalProjection
from ..core.tolerance import SpatialTolerance
from .editor import WayEditor
from .elements import EdMultipolygon, EdNode, EdObject, EdWay
from .reuse import connect_existing_touching_nodes


@dataclass(frozen=True)
class ClipAreasSettings:
    """Parameters for :class:`ClipAreas`.

    Attributes:
        tolerance: Distance within which a clipped vertex snaps to an existing node
    """

    tolerance: SpatialTolerance

    @property
    def min_overlap_area(self) -> float:
        """Overlaps (and leftover slivers) below this area in m² are ignored."""
        return self.tolerance.distance_meters ** 2


class ClipAreas:
    """Trim areas overlapping a clip way.

    Problems never raise: every area that cannot be clipped is reported in
    ``notifications`` and left unchanged.

    Examples:
        >>> clip = ClipAreas(editor, ClipAreasSettings(tolerance), notifications)
        >>> clipped = clip.clip_areas(traced_way, AreaPredicate(landuse_match))
    """

    def __init__(self, editor: WayEditor, settings: ClipAreasSettings, notifications: List[str]):
        self.editor = editor
        self.settings = settings
        self.notifications = notifications

    def clip_areas(self, clip_way: EdWay, area_filter: Callable[[EdObject], bool]) -> List[EdWay]:
        """Clip every overlapping area accepted by ``area_filter``.

        Args:
            clip_way: Closed way whose interior is removed from other areas
            area_filter: Selects the areas that may be clipped

        Returns:
            Ways whose geometry was changed
        """
        if not clip_way.is_closed:
            raise ValueError(f"Clip way {clip_way!r} is not closed")

        projection = LocalProjection(clip_way.get_bbox().center)
        clip_polygon = _local_polygon(clip_way, projection)
        if not clip_polygon.is_valid:
            clip_polygon = clip_polygon.buffer(0)
        clip_bbox = clip_way.get_bbox()

        clipped: List[EdWay] = []
        for way in self.editor.ways():
            if way is clip_way or not area_filter(way) or not way.get_bbox().intersects(clip_bbox):
                continue
            if self._clip_way(way, clip_way, clip_polygon, projection):
                clipped.append(way)

        for multipolygon in self.editor.multipolygons():
            if clip_way in multipolygon.ways() or not area_filter(multipolygon):
                continue
            if not multipolygon.get_bbox().intersects(clip_bbox):
                continue
            self._report_multipolygon(multipolygon, clip_polygon, projection)

        if clipped:
            logger.info(f"Clipped {len(clipped)} area(s) against {clip_way!r}")
        return clipped

    def _clip_way(
        self,
        way: EdWay,
        clip_way: EdWay,
        clip_polygon: BaseGeometry,
        projection: LocalProjection,
    ) -> bool:
        subject = _local_polygon(way, projection)
        if not subject.is_valid:
            self._notify(f"Area {way.id} has invalid geometry and was not clipped.")
            return False

        min_area = self.settings.min_overlap_area
        if subject.intersection(clip_polygon).area <= min_area:
            return False

        remainder = _drop_slivers(subject.difference(clip_polygon), min_area)
        if remainder is None:
            self._notify(f"Area {way.id} is fully covered by the traced area and was not clipped.")
            return False
        if isinstance(remainder, MultiPolygon):
            self._notify(
                f"Clipping area {way.id} would split it into {len(remainder.geoms)} parts; it was not clipped."
            )
            return False
        if remainder.interiors:
            self._notify(f"Clipping area {way.id} would create a hole; it was not clipped.")
            return False

        created: List[EdNode] = []
        nodes = self._rebuild_ring(way, clip_way, remainder, projection, created)
        if nodes is None:
            self._notify(f"Clipped geometry of area {way.id} is degenerate; it was not clipped.")
            return False

        way.set_nodes(nodes)
        if created:
            self._share_boundary(clip_way, created)
        logger.debug(f"Clipped {way!r}, removed {subject.area - remainder.area:.1f} m²")
        return True

    def _rebuild_ring(
        self,
        way: EdWay,
        clip_way: EdWay,
        remainder: Polygon,
        projection: LocalProjection,
        created: List[EdNode],
    ) -> Optional[List[EdNode]]:
        pool = list(way.get_all_nodes() | clip_way.get_all_nodes())
        pool_xy = projection.to_local_array([n.coor for n in pool])
        tolerance = self.settings.tolerance.distance_meters

        slots: List[object] = []
        for x, y in list(remainder.exterior.coords)[:-1]:
            distances = np.linalg.norm(pool_xy - np.array([x, y]), axis=1)
            nearest = int(np.argmin(distances))
            if distances[nearest] <= tolerance:
                slots.append(pool[nearest])
            else:
                slots.append((x, y))

        collapsed: List[object] = []
        for slot in slots:
            if not collapsed or collapsed[-1] is not slot:
                collapsed.append(slot)
        if len(collapsed) > 1 and collapsed[0] is collapsed[-1]:
            collapsed.pop()

        existing = [s for s in collapsed if isinstance(s, EdNode)]
        if len(collapsed) < 3 or len(set(existing)) != len(existing):
            return None

        nodes: List[EdNode] = []
        for slot in collapsed:
            if isinstance(slot, EdNode):
                nodes.append(slot)
            else:
                node = self.editor.new_node(projection.to_latlon(*slot))
                created.append(node)
                nodes.append(node)
        return nodes + [nodes[0]]

    def _share_boundary(self, clip_way: EdWay, created: List[EdNode]) -> None:
        """Insert nodes created where a clipped edge crosses ``clip_way`` into it."""
        candidates = set(created)
        inserted = connect_existing_touching_nodes(
            clip_way, self.settings.tolerance, lambda node: node in candidates
        )
        if inserted:
            logger.debug(f"Inserted {inserted} crossing node(s) into {clip_way!r}")

    def _report_multipolygon(
        self,
        multipolygon: EdMultipolygon,
        clip_polygon: BaseGeometry,
        projection: LocalProjection,
    ) -> None:
        outers = [_local_polygon(w, projection) for w in multipolygon.outer_ways() if w.is_closed]
        if not outers:
            return
        area = unary_union([p if p.is_valid else p.buffer(0) for p in outers])
        if area.intersection(clip_polygon).area > self.settings.min_overlap_area:
            self._notify(f"Multipolygon {multipolygon.id} overlaps the traced area and was not clipped.")

    def _notify(self, message: str) -> None:
        logger.warning(message)
        self.notifications.append(message)


def _local_polygon(way: EdWay, projection: LocalProjection) -> Polygon:
    return Polygon([projection.to_local(n.coor) for n in way.get_nodes()])


def _drop_slivers(geometry: BaseGeometry, min_area: float) -> Optional[BaseGeometry]:
    """Keep polygonal parts larger than ``min_area``; None if nothing is left."""
    if geometry.is_empty:
        return None
    if isinstance(geometry, Polygon):
        parts = [geometry]
    else:
        parts = [g for g in getattr(geometry, 'geoms', []) if isinstance(g, Polygon)]
    parts = [p for p in parts if p.area > min_area]
    if not parts:
        return None
    if len(parts) == 1:
        return parts[0]
    return MultiPolygon(parts)


__all__ = [
    'ClipAreasSettings',
    'ClipAreas',
]
