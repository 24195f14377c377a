"""Edit session over a :class:`~parceltrace.edit.dataset.MapDataset`.

The ``WayEditor`` wraps every dataset primitive in an editable object and
records all changes in memory. Nothing reaches the dataset until
:meth:`WayEditor.commit`; :meth:`WayEditor.discard` drops the whole edit, so
an aborted trace leaves the dataset exactly as it was.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Dict, List, Mapping, Optional, Set, Tuple

from loguru import logger
from shapely.geometry import Point, box
from shapely.ops import unary_union
from shapely.strtree import STRtree

from ..core.errors import EditorClosedError
from ..core.geodesy import BBox, LatLon, haversine_distance, meters_to_degrees
from .dataset import MapDataset, OsmMultipolygon, OsmNode, OsmWay
from .elements import EdMultipolygon, EdNode, EdObject, EdWay, NodeFilter


class WayEditor:
    """Transactional edit session over a map dataset.

    Examples:
        >>> editor = WayEditor(dataset)
        >>> a, b, c = (editor.new_node(p) for p in ring)
        >>> way = editor.new_way([a, b, c, a])
        >>> way.set_keys({'landuse': 'meadow'})
        >>> id_map = editor.commit()
    """

    def __init__(self, dataset: MapDataset):
        self._dataset = dataset
        self._nodes: Dict[int, EdNode] = {}
        self._ways: Dict[int, EdWay] = {}
        self._multipolygons: Dict[int, EdMultipolygon] = {}
        self._node_ways: Dict[EdNode, Set[EdWay]] = defaultdict(set)
        self._way_multipolygons: Dict[EdWay, Set[EdMultipolygon]] = defaultdict(set)
        self._originally_referenced: Set[int] = set()
        self._next_new_id = -1
        self._node_tree: Optional[Tuple[STRtree, List[EdNode]]] = None
        self._closed = False
        self._load()

    # ------------------------------------------------------------------
    # Object access and creation

    @property
    def dataset(self) -> MapDataset:
        return self._dataset

    @property
    def is_closed(self) -> bool:
        return self._closed

    def nodes(self) -> List[EdNode]:
        return [n for n in self._nodes.values() if not n.is_deleted]

    def ways(self) -> List[EdWay]:
        return [w for w in self._ways.values() if not w.is_deleted]

    def multipolygons(self) -> List[EdMultipolygon]:
        return [m for m in self._multipolygons.values() if not m.is_deleted]

    def node(self, node_id: int) -> EdNode:
        return self._nodes[node_id]

    def way(self, way_id: int) -> EdWay:
        return self._ways[way_id]

    def multipolygon(self, multipolygon_id: int) -> EdMultipolygon:
        return self._multipolygons[multipolygon_id]

    def new_node(self, coor: LatLon, tags: Optional[Mapping[str, str]] = None) -> EdNode:
        self._check_open()
        node = EdNode(self, self._allocate_new_id(), coor, tags)
        self._nodes[node.id] = node
        self._node_tree = None
        return node

    def new_way(self, nodes: List[EdNode], tags: Optional[Mapping[str, str]] = None) -> EdWay:
        self._check_open()
        for node in nodes:
            if node.editor is not self or node.is_deleted:
                raise ValueError(f"{node!r} does not belong to this editor")
        way = EdWay(self, self._allocate_new_id(), nodes, tags)
        self._ways[way.id] = way
        self._link_way(way)
        return way

    def new_multipolygon(self, tags: Optional[Mapping[str, str]] = None) -> EdMultipolygon:
        self._check_open()
        multipolygon = EdMultipolygon(self, self._allocate_new_id(), tags)
        self._multipolygons[multipolygon.id] = multipolygon
        return multipolygon

    def delete(self, obj: EdObject) -> None:
        """Delete an object that nothing refers to any more."""
        self._check_open()
        if obj.is_deleted:
            return
        if self.has_referrers(obj):
            raise ValueError(f"Cannot delete {obj!r}, it is still referenced")
        if isinstance(obj, EdWay):
            self._unlink_way(obj)
        elif isinstance(obj, EdMultipolygon):
            for way in obj.ways():
                self._way_multipolygons[way].discard(obj)
        else:
            self._node_tree = None
        obj._deleted = True

    # ------------------------------------------------------------------
    # Queries

    def get_modified_ways(self) -> List[EdWay]:
        """New or changed ways that are still part of the edit."""
        return [w for w in self.ways() if w.is_new or w.is_modified]

    def referrer_ways(self, node: EdNode) -> Set[EdWay]:
        return set(self._node_ways.get(node, ()))

    def referrer_multipolygons(self, way: EdWay) -> Set[EdMultipolygon]:
        return set(self._way_multipolygons.get(way, ()))

    def has_referrers(self, obj: EdObject) -> bool:
        if isinstance(obj, EdNode):
            return bool(self._node_ways.get(obj))
        if isinstance(obj, EdWay):
            return bool(self._way_multipolygons.get(obj))
        return False

    def use_non_edited_areas_containing_point(
        self,
        point: LatLon,
        area_predicate: Callable[[EdObject], bool]
    ) -> List[EdObject]:
        """Find untouched areas whose geometry contains ``point``.

        Args:
            point: Position of interest
            area_predicate: Selects the kind of areas to return

        Returns:
            Matching ways and multipolygons, ways first, in id order
        """
        target = Point(point.xy)
        candidates: List[EdObject] = [*self.ways(), *self.multipolygons()]
        found = []
        for obj in candidates:
            if obj.is_new or obj.is_modified:
                continue
            if not area_predicate(obj):
                continue
            if obj.to_polygon().contains(target):
                found.append(obj)
        return found

    def find_nodes_near(
        self,
        coor: LatLon,
        radius_meters: float,
        node_filter: Optional[NodeFilter] = None
    ) -> List[Tuple[EdNode, float]]:
        """Nodes within ``radius_meters`` of ``coor``, nearest first.

        Args:
            coor: Search centre
            radius_meters: Maximum great-circle distance
            node_filter: Optional predicate a node must satisfy

        Returns:
            List of ``(node, distance_meters)`` sorted by distance
        """
        tree, indexed = self._ensure_node_tree()
        if not indexed:
            return []

        dlat, dlon = meters_to_degrees(max(radius_meters, 1e-3), coor.lat)
        window = box(coor.lon - dlon, coor.lat - dlat, coor.lon + dlon, coor.lat + dlat)

        found = []
        for idx in tree.query(window):
            node = indexed[int(idx)]
            if node.is_deleted:
                continue
            distance = haversine_distance(coor, node.coor)
            if distance > radius_meters:
                continue
            if node_filter is not None and not node_filter(node):
                continue
            found.append((node, distance))

        found.sort(key=lambda item: (item[1], abs(item[0].id)))
        return found

    def is_inside_data_source_bounds(self, bbox: BBox) -> bool:
        """Check ``bbox`` is fully covered by the downloaded areas."""
        bounds = self._dataset.data_source_bounds
        if not bounds:
            return False
        downloaded = unary_union([b.to_polygon() for b in bounds])
        return downloaded.covers(bbox.to_polygon())

    # ------------------------------------------------------------------
    # Commit / discard

    def commit(self) -> Dict[int, int]:
        """Write the edit back to the dataset.

        New nodes that nothing references and that carry no tags are dropped.
        Untagged existing nodes left without any referring way are deleted.

        Returns:
            Mapping from temporary (negative) ids to the assigned dataset ids
        """
        self._check_open()
        ds = self._dataset
        id_map: Dict[int, int] = {}

        kept_new_nodes = [
            n for n in self._nodes.values()
            if n.is_new and not n.is_deleted and (self._node_ways.get(n) or n.is_tagged())
        ]
        for obj in (*kept_new_nodes, *self._ways.values(), *self._multipolygons.values()):
            if obj.is_new and not obj.is_deleted:
                id_map[obj.id] = ds.allocate_id()

        def resolve(obj: EdObject) -> int:
            return id_map.get(obj.id, obj.id)

        removed_nodes = 0
        for node in self._nodes.values():
            if node.is_new:
                if node.id in id_map:
                    ds.nodes[resolve(node)] = OsmNode(resolve(node), node.coor, node.get_keys())
                continue
            orphaned = (
                not self._node_ways.get(node)
                and not node.is_tagged()
                and node.id in self._originally_referenced
            )
            if node.is_deleted or orphaned:
                ds.nodes.pop(node.id, None)
                removed_nodes += 1
            elif node.is_modified:
                ds.nodes[node.id] = OsmNode(node.id, node.coor, node.get_keys())

        for way in self._ways.values():
            if way.is_deleted:
                if not way.is_new:
                    ds.ways.pop(way.id, None)
                continue
            if way.is_new or way.is_modified:
                ds.ways[resolve(way)] = OsmWay(
                    resolve(way),
                    [resolve(n) for n in way.get_nodes()],
                    way.get_keys(),
                )

        for multipolygon in self._multipolygons.values():
            if multipolygon.is_deleted:
                if not multipolygon.is_new:
                    ds.multipolygons.pop(multipolygon.id, None)
                continue
            if multipolygon.is_new or multipolygon.is_modified:
                ds.multipolygons[resolve(multipolygon)] = OsmMultipolygon(
                    resolve(multipolygon),
                    [resolve(w) for w in multipolygon.outer_ways()],
                    [resolve(w) for w in multipolygon.inner_ways()],
                    multipolygon.get_keys(),
                )

        modified_ways = len(self.get_modified_ways())
        self._closed = True
        logger.info(
            f"Committed edit: {len(id_map)} new objects, "
            f"{modified_ways} modified ways, {removed_nodes} nodes removed"
        )
        return id_map

    def discard(self) -> None:
        """Drop every change; the dataset is left untouched."""
        if self._closed:
            return
        self._closed = True
        logger.debug("Discarded edit session")

    # ------------------------------------------------------------------
    # Index maintenance, called by the Ed* objects

    def _link_way(self, way: EdWay) -> None:
        for node in way.get_nodes():
            self._node_ways[node].add(way)

    def _unlink_way(self, way: EdWay) -> None:
        for node in way.get_nodes():
            referrers = self._node_ways.get(node)
            if referrers is not None:
                referrers.discard(way)

    def _link_member(self, multipolygon: EdMultipolygon, way: EdWay) -> None:
        self._way_multipolygons[way].add(multipolygon)

    def _unlink_member(self, multipolygon: EdMultipolygon, way: EdWay) -> None:
        if way in multipolygon.ways():
            return
        referrers = self._way_multipolygons.get(way)
        if referrers is not None:
            referrers.discard(multipolygon)

    def _node_moved(self, node: EdNode) -> None:
        self._node_tree = None

    def _ensure_node_tree(self) -> Tuple[STRtree, List[EdNode]]:
        if self._node_tree is None:
            indexed = self.nodes()
            tree = STRtree([Point(n.coor.xy) for n in indexed])
            self._node_tree = (tree, indexed)
        return self._node_tree

    def _allocate_new_id(self) -> int:
        new_id = self._next_new_id
        self._next_new_id -= 1
        return new_id

    def _check_open(self) -> None:
        if self._closed:
            raise EditorClosedError("Editor is already committed or discarded")

    def _load(self) -> None:
        ds = self._dataset
        for osm_node in ds.nodes.values():
            self._nodes[osm_node.id] = EdNode(self, osm_node.id, osm_node.coor, osm_node.tags)

        for osm_way in ds.ways.values():
            nodes = [self._nodes[node_id] for node_id in osm_way.node_ids]
            way = EdWay(self, osm_way.id, nodes, osm_way.tags)
            self._ways[way.id] = way
            self._link_way(way)
            self._originally_referenced.update(osm_way.node_ids)

        for osm_mp in ds.multipolygons.values():
            multipolygon = EdMultipolygon(self, osm_mp.id, osm_mp.tags)
            multipolygon._outer = [self._ways[way_id] for way_id in osm_mp.outer_ids]
            multipolygon._inner = [self._ways[way_id] for way_id in osm_mp.inner_ids]
            for way in multipolygon.ways():
                self._link_member(multipolygon, way)
            self._multipolygons[multipolygon.id] = multipolygon

    def __repr__(self) -> str:
        return (
            f"WayEditor({len(self.nodes())} nodes, {len(self.ways())} ways, "
            f"{len(self.multipolygons())} multipolygons, closed={self._closed})"
        )


__all__ = ['WayEditor']
