"""Editable map objects.

Every object handled by a :class:`~parceltrace.edit.editor.WayEditor` is an
``EdObject``: an :class:`EdNode`, an :class:`EdWay` or an
:class:`EdMultipolygon`. Objects are identified by reference within one
editor and carry a stable ``id`` (positive for objects loaded from the
dataset, negative for objects created during the edit). All mutations go
through these classes so the editor can keep its referrer indexes and
change tracking consistent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable, Dict, List, Mapping, Optional, Set

from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.ops import unary_union

from ..core.errors import EditorClosedError
from ..core.geodesy import BBox, LatLon, LatLonSize
from ..core.tolerance import SpatialTolerance

if TYPE_CHECKING:
    from .editor import WayEditor
    from .reuse import ReuseNearNodePolicy

NodeFilter = Callable[["EdNode"], bool]


class EdObject(ABC):
    """Common behaviour of editable nodes, ways and multipolygons."""

    kind = 'object'

    def __init__(self, editor: "WayEditor", object_id: int, tags: Optional[Mapping[str, str]] = None):
        self._editor = editor
        self.id = object_id
        self._tags: Dict[str, str] = dict(tags or {})
        self._modified = False
        self._deleted = False

    @property
    def editor(self) -> "WayEditor":
        return self._editor

    @property
    def is_new(self) -> bool:
        return self.id < 0

    @property
    def is_modified(self) -> bool:
        return self._modified

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    def get_keys(self) -> Dict[str, str]:
        return dict(self._tags)

    def set_keys(self, keys: Mapping[str, str]) -> None:
        self._check_usable()
        keys = dict(keys)
        if keys == self._tags:
            return
        self._tags = keys
        self._mark_modified()

    def get(self, key: str) -> Optional[str]:
        return self._tags.get(key)

    def is_tagged(self) -> bool:
        return bool(self._tags)

    def has_referrers(self) -> bool:
        return self._editor.has_referrers(self)

    def ways(self) -> List["EdWay"]:
        """Ways this object is built from."""
        return []

    @abstractmethod
    def get_all_nodes(self) -> Set["EdNode"]:
        ...

    def boundary_nodes(self) -> List["EdNode"]:
        """All nodes of the constituent ways, in way order, without repeats."""
        seen: Set[EdNode] = set()
        ordered: List[EdNode] = []
        for way in self.ways():
            for node in way.get_nodes():
                if node not in seen:
                    seen.add(node)
                    ordered.append(node)
        return ordered

    def contains_node(self, node: "EdNode") -> bool:
        return any(way.contains_node(node) for way in self.ways())

    def get_bbox(self) -> BBox:
        return BBox.from_points(node.coor for node in self.get_all_nodes())

    def is_inside_data_source_bounds(self, oversize: LatLonSize) -> bool:
        """Check the bbox, enlarged by ``oversize``, is covered by downloaded data."""
        return self._editor.is_inside_data_source_bounds(self.get_bbox().enlarged(oversize))

    def reuse_existing_nodes(self, node_filter: NodeFilter) -> int:
        from .reuse import reuse_existing_nodes
        return reuse_existing_nodes(self, node_filter)

    def reuse_near_nodes(self, policy: "ReuseNearNodePolicy", node_filter: NodeFilter) -> int:
        from .reuse import reuse_near_nodes
        return reuse_near_nodes(self, policy, node_filter)

    def connect_existing_touching_nodes(self, tolerance: SpatialTolerance, node_filter: NodeFilter) -> int:
        from .reuse import connect_existing_touching_nodes
        return connect_existing_touching_nodes(self, tolerance, node_filter)

    def _mark_modified(self) -> None:
        if not self.is_new:
            self._modified = True

    def _check_usable(self) -> None:
        if self._editor.is_closed:
            raise EditorClosedError(f"Editor of {self!r} is already closed")
        if self._deleted:
            raise ValueError(f"{self!r} is deleted")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id})"


class EdNode(EdObject):
    kind = 'node'

    def __init__(self, editor: "WayEditor", object_id: int, coor: LatLon, tags: Optional[Mapping[str, str]] = None):
        super().__init__(editor, object_id, tags)
        self._coor = coor

    @property
    def coor(self) -> LatLon:
        return self._coor

    def set_coor(self, coor: LatLon) -> None:
        self._check_usable()
        if coor == self._coor:
            return
        self._coor = coor
        self._editor._node_moved(self)
        self._mark_modified()

    def referrer_ways(self) -> Set["EdWay"]:
        return self._editor.referrer_ways(self)

    def get_all_nodes(self) -> Set["EdNode"]:
        return {self}

    def contains_node(self, node: "EdNode") -> bool:
        return node is self


class EdWay(EdObject):
    kind = 'way'

    def __init__(self, editor: "WayEditor", object_id: int, nodes: List[EdNode], tags: Optional[Mapping[str, str]] = None):
        super().__init__(editor, object_id, tags)
        self._nodes: List[EdNode] = list(nodes)

    def get_nodes(self) -> List[EdNode]:
        return list(self._nodes)

    def get_nodes_count(self) -> int:
        return len(self._nodes)

    def set_nodes(self, nodes: List[EdNode]) -> None:
        self._check_usable()
        nodes = _drop_consecutive_duplicates(list(nodes))
        if nodes == self._nodes:
            return
        self._editor._unlink_way(self)
        self._nodes = nodes
        self._editor._link_way(self)
        self._mark_modified()

    def replace_node(self, old: EdNode, new: EdNode) -> bool:
        if old not in self._nodes:
            return False
        self.set_nodes([new if node is old else node for node in self._nodes])
        return True

    @property
    def is_closed(self) -> bool:
        return len(self._nodes) >= 4 and self._nodes[0] is self._nodes[-1]

    def contains_node(self, node: EdNode) -> bool:
        return node in self._nodes

    def referrer_multipolygons(self) -> Set["EdMultipolygon"]:
        return self._editor.referrer_multipolygons(self)

    def ways(self) -> List["EdWay"]:
        return [self]

    def get_all_nodes(self) -> Set[EdNode]:
        return set(self._nodes)

    def to_polygon(self) -> Polygon:
        """Polygon in ``(lon, lat)`` coordinates; empty for open ways."""
        if not self.is_closed:
            return Polygon()
        return Polygon([node.coor.xy for node in self._nodes])

    def __repr__(self) -> str:
        return f"EdWay({self.id}, {len(self._nodes)} nodes)"


class EdMultipolygon(EdObject):
    kind = 'multipolygon'

    def __init__(self, editor: "WayEditor", object_id: int, tags: Optional[Mapping[str, str]] = None):
        super().__init__(editor, object_id, tags)
        self._outer: List[EdWay] = []
        self._inner: List[EdWay] = []

    def outer_ways(self) -> List[EdWay]:
        return list(self._outer)

    def inner_ways(self) -> List[EdWay]:
        return list(self._inner)

    def add_outer_way(self, way: EdWay) -> None:
        self._check_usable()
        for other in way.referrer_multipolygons():
            if other is not self and way in other._outer:
                raise ValueError(f"{way!r} is already an outer way of {other!r}")
        self._outer.append(way)
        self._editor._link_member(self, way)
        self._mark_modified()

    def add_inner_way(self, way: EdWay) -> None:
        self._check_usable()
        self._inner.append(way)
        self._editor._link_member(self, way)
        self._mark_modified()

    def replace_way(self, old: EdWay, new: EdWay) -> bool:
        self._check_usable()
        if old not in self._outer and old not in self._inner:
            return False
        self._outer = [new if w is old else w for w in self._outer]
        self._inner = [new if w is old else w for w in self._inner]
        self._editor._unlink_member(self, old)
        self._editor._link_member(self, new)
        self._mark_modified()
        return True

    def ways(self) -> List[EdWay]:
        return self._outer + self._inner

    def get_all_nodes(self) -> Set[EdNode]:
        nodes: Set[EdNode] = set()
        for way in self.ways():
            nodes.update(way.get_all_nodes())
        return nodes

    def to_polygon(self) -> BaseGeometry:
        outers = [w.to_polygon() for w in self._outer if w.is_closed]
        if not outers:
            return Polygon()
        area = unary_union(outers)
        inners = [w.to_polygon() for w in self._inner if w.is_closed]
        if inners:
            area = area.difference(unary_union(inners))
        if isinstance(area, (Polygon, MultiPolygon)):
            return area
        return Polygon()

    def __repr__(self) -> str:
        return f"EdMultipolygon({self.id}, {len(self._outer)} outer, {len(self._inner)} inner)"


def _drop_consecutive_duplicates(nodes: List[EdNode]) -> List[EdNode]:
    result: List[EdNode] = []
    for node in nodes:
        if not result or result[-1] is not node:
            result.append(node)
    return result


__all__ = [
    'NodeFilter',
    'EdObject',
    'EdNode',
    'EdWay',
    'EdMultipolygon',
]
