"""In-memory map dataset.

A ``MapDataset`` is the persistent side of an edit: it holds the committed
nodes, ways and multipolygons keyed by positive ids, and the list of areas
for which source data has been downloaded. Edits never touch it directly;
they go through a :class:`~parceltrace.edit.editor.WayEditor` which writes
back on commit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Union

from ..core.geodesy import BBox, LatLon


@dataclass
class OsmNode:
    id: int
    coor: LatLon
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class OsmWay:
    id: int
    node_ids: List[int]
    tags: Dict[str, str] = field(default_factory=dict)

    @property
    def is_closed(self) -> bool:
        return len(self.node_ids) >= 4 and self.node_ids[0] == self.node_ids[-1]


@dataclass
class OsmMultipolygon:
    id: int
    outer_ids: List[int]
    inner_ids: List[int]
    tags: Dict[str, str] = field(default_factory=dict)


class MapDataset:
    """Committed map data plus downloaded data-source bounds.

    Examples:
        >>> dataset = MapDataset()
        >>> dataset.add_data_source_bounds(BBox(49.0, 15.0, 50.0, 16.0))
        >>> way = dataset.add_area(
        ...     [LatLon(49.5, 15.5), LatLon(49.5, 15.6), LatLon(49.6, 15.6)],
        ...     {'landuse': 'meadow'},
        ... )
        >>> way.is_closed
        True
    """

    def __init__(self, data_source_bounds: Optional[Iterable[BBox]] = None):
        self.nodes: Dict[int, OsmNode] = {}
        self.ways: Dict[int, OsmWay] = {}
        self.multipolygons: Dict[int, OsmMultipolygon] = {}
        self.data_source_bounds: List[BBox] = list(data_source_bounds or [])
        self._next_id = 1

    def allocate_id(self) -> int:
        next_id = self._next_id
        self._next_id += 1
        return next_id

    def add_data_source_bounds(self, bbox: BBox) -> None:
        self.data_source_bounds.append(bbox)

    def add_node(self, coor: LatLon, tags: Optional[Mapping[str, str]] = None) -> OsmNode:
        node = OsmNode(self.allocate_id(), coor, dict(tags or {}))
        self.nodes[node.id] = node
        return node

    def add_way(
        self,
        nodes: Sequence[Union[OsmNode, int]],
        tags: Optional[Mapping[str, str]] = None
    ) -> OsmWay:
        node_ids = [n.id if isinstance(n, OsmNode) else n for n in nodes]
        for node_id in node_ids:
            if node_id not in self.nodes:
                raise KeyError(f"Unknown node id {node_id}")
        way = OsmWay(self.allocate_id(), node_ids, dict(tags or {}))
        self.ways[way.id] = way
        return way

    def add_area(
        self,
        ring: Sequence[Union[LatLon, OsmNode]],
        tags: Optional[Mapping[str, str]] = None
    ) -> OsmWay:
        """Add a closed way, creating nodes for plain positions.

        The ring is closed automatically; a trailing position equal to the
        first one is accepted.
        """
        nodes = [p if isinstance(p, OsmNode) else self.add_node(p) for p in _open_ring(ring)]
        if len(nodes) < 3:
            raise ValueError("An area needs at least 3 nodes")
        return self.add_way(nodes + [nodes[0]], tags)

    def add_multipolygon(
        self,
        outer_ways: Sequence[OsmWay],
        inner_ways: Sequence[OsmWay] = (),
        tags: Optional[Mapping[str, str]] = None
    ) -> OsmMultipolygon:
        multipolygon = OsmMultipolygon(
            self.allocate_id(),
            [w.id for w in outer_ways],
            [w.id for w in inner_ways],
            dict(tags or {}),
        )
        self.multipolygons[multipolygon.id] = multipolygon
        return multipolygon

    def way_nodes(self, way: OsmWay) -> List[OsmNode]:
        return [self.nodes[node_id] for node_id in way.node_ids]

    def __repr__(self) -> str:
        return (
            f"MapDataset({len(self.nodes)} nodes, {len(self.ways)} ways, "
            f"{len(self.multipolygons)} multipolygons)"
        )


def _open_ring(ring: Sequence) -> List:
    points = list(ring)
    if len(points) > 1 and points[0] == points[-1]:
        points = points[:-1]
    return points


__all__ = [
    'OsmNode',
    'OsmWay',
    'OsmMultipolygon',
    'MapDataset',
]
