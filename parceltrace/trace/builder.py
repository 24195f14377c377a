"""Build editable geometry from a parcel record."""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ..core.errors import GeometryInvalid
from ..core.geodesy import LatLon
from ..edit.editor import WayEditor
from ..edit.elements import EdMultipolygon, EdNode, EdWay
from .record import ParcelRecord, open_ring


def create_traced_object(editor: WayEditor, record: ParcelRecord) -> Tuple[EdWay, Optional[EdMultipolygon]]:
    """Create the traced area as new objects in ``editor``.

    A record without inner rings becomes a single closed way. With inner
    rings the outer way is wrapped in a new multipolygon together with one
    closed way per inner ring.

    Args:
        editor: Edit session receiving the new objects
        record: Parcel to build

    Returns:
        Tuple of (outer way, multipolygon or None)

    Raises:
        GeometryInvalid: A ring has fewer than three distinct vertices
    """
    outer_way = _closed_way(editor, record.outer, 'Outer')
    if not record.has_inners:
        return outer_way, None

    multipolygon = editor.new_multipolygon()
    multipolygon.add_outer_way(outer_way)
    for ring in record.inners:
        multipolygon.add_inner_way(_closed_way(editor, ring, 'Inner'))
    return outer_way, multipolygon


def _closed_way(editor: WayEditor, ring: Sequence[LatLon], label: str) -> EdWay:
    points = open_ring(ring)
    if len(set(points)) < 3:
        raise GeometryInvalid(f"{label} way consists of less than 3 nodes")
    nodes: List[EdNode] = [editor.new_node(p) for p in points]
    return editor.new_way(nodes + [nodes[0]])


__all__ = ['create_traced_object']
