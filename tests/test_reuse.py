"""Tests for node reuse and touching-node connection."""

import math

import pytest

from parceltrace.config import REUSE_EXISTING_LANDUSE_NODE_MATCH
from parceltrace.core import LatLon, ReuseNearNodeMethod, SpatialTolerance
from parceltrace.edit import (
    AreaBoundaryWayNodePredicate,
    ExcludeNodesPredicate,
    MapDataset,
    NodePredicate,
    WayEditor,
    connect_existing_touching_nodes,
    reuse_existing_nodes,
    reuse_near_nodes,
)

ORIGIN = LatLon(49.8, 15.4)
TOLERANCE = SpatialTolerance(0.2, math.pi / 3)


def _p(north, east):
    return ORIGIN.offset(north, east)


def _rect(south, west, north, east):
    return [_p(south, west), _p(south, east), _p(north, east), _p(north, west)]


def _new_area(editor, ring):
    nodes = [editor.new_node(p) for p in ring]
    return editor.new_way(nodes + [nodes[0]])


def _landuse_filter(obj):
    return ExcludeNodesPredicate(obj) & AreaBoundaryWayNodePredicate(REUSE_EXISTING_LANDUSE_NODE_MATCH)


class _FixedPolicy:
    """Reuse policy returning one method for every candidate."""

    def __init__(self, method, lookup_distance_meters=0.5):
        self.method = method
        self.lookup_distance_meters = lookup_distance_meters
        self.offered = []

    def reuse_near_node(self, node, near_node, distance_meters):
        self.offered.append((near_node, distance_meters))
        return self.method


class TestNodeFilters:
    """Tests for the node predicates used by reuse."""

    def test_node_predicate_is_abstract(self):
        class Incomplete(NodePredicate):
            pass

        with pytest.raises(TypeError):
            Incomplete()

    def test_landuse_boundary_nodes(self):
        dataset = MapDataset()
        meadow = dataset.add_area(_rect(0, 0, 10, 10), {'landuse': 'meadow'})
        building = dataset.add_area(_rect(20, 20, 30, 30), {'building': 'yes'})
        editor = WayEditor(dataset)
        predicate = AreaBoundaryWayNodePredicate(REUSE_EXISTING_LANDUSE_NODE_MATCH)

        assert predicate(editor.node(meadow.node_ids[0]))
        assert not predicate(editor.node(building.node_ids[0]))

    def test_multipolygon_member_nodes(self):
        dataset = MapDataset()
        outer = dataset.add_area(_rect(0, 0, 10, 10))
        dataset.add_multipolygon([outer], [], {'landuse': 'forest'})
        editor = WayEditor(dataset)
        predicate = AreaBoundaryWayNodePredicate(REUSE_EXISTING_LANDUSE_NODE_MATCH)
        assert predicate(editor.node(outer.node_ids[0]))

    def test_exclude_follows_current_geometry(self):
        editor = WayEditor(MapDataset())
        way = _new_area(editor, _rect(0, 0, 10, 10))
        outsider = editor.new_node(_p(50, 50))
        predicate = ExcludeNodesPredicate(way)
        assert not predicate(way.get_nodes()[0])
        assert predicate(outsider)
        way.set_nodes(way.get_nodes()[:3] + [outsider, way.get_nodes()[0]])
        assert not predicate(outsider)


class TestReuseExistingNodes:
    """Tests for reuse_existing_nodes()."""

    def test_shared_corner_reused(self):
        dataset = MapDataset()
        neighbour = dataset.add_area(_rect(0, 100, 100, 200), {'landuse': 'meadow'})
        editor = WayEditor(dataset)
        way = _new_area(editor, _rect(0, 0, 100, 100))
        replaced = way.get_nodes()[1]

        assert reuse_existing_nodes(way, _landuse_filter(way)) == 2
        ids = {n.id for n in way.get_nodes()}
        assert neighbour.node_ids[0] in ids
        assert neighbour.node_ids[3] in ids
        assert replaced.is_deleted
        assert way.is_closed

    def test_near_node_not_reused(self):
        dataset = MapDataset()
        dataset.add_area(_rect(0, 100.1, 100, 200), {'landuse': 'meadow'})
        editor = WayEditor(dataset)
        way = _new_area(editor, _rect(0, 0, 100, 100))
        assert reuse_existing_nodes(way, _landuse_filter(way)) == 0

    def test_non_landuse_node_not_reused(self):
        dataset = MapDataset()
        dataset.add_area(_rect(0, 100, 100, 200), {'building': 'yes'})
        editor = WayEditor(dataset)
        way = _new_area(editor, _rect(0, 0, 100, 100))
        assert reuse_existing_nodes(way, _landuse_filter(way)) == 0


class TestReuseNearNodes:
    """Tests for reuse_near_nodes()."""

    def _setup(self):
        dataset = MapDataset()
        neighbour = dataset.add_area(_rect(0, 100.15, 100, 200), {'landuse': 'meadow'})
        editor = WayEditor(dataset)
        way = _new_area(editor, _rect(0, 0, 100, 100))
        return editor, way, neighbour

    def test_reuse_in_place(self):
        editor, way, neighbour = self._setup()
        policy = _FixedPolicy(ReuseNearNodeMethod.REUSE)
        assert reuse_near_nodes(way, policy, _landuse_filter(way)) == 2

        existing = editor.node(neighbour.node_ids[0])
        assert existing in way.get_nodes()
        assert existing.coor == _p(0, 100.15)
        assert not existing.is_modified

    def test_move_and_reuse(self):
        editor, way, neighbour = self._setup()
        policy = _FixedPolicy(ReuseNearNodeMethod.MOVE_AND_REUSE)
        reuse_near_nodes(way, policy, _landuse_filter(way))

        existing = editor.node(neighbour.node_ids[0])
        assert existing in way.get_nodes()
        assert existing.coor == _p(0, 100)
        assert existing.is_modified

    def test_dont_reuse(self):
        editor, way, _ = self._setup()
        before = way.get_nodes()
        policy = _FixedPolicy(ReuseNearNodeMethod.DONT_REUSE)
        assert reuse_near_nodes(way, policy, _landuse_filter(way)) == 0
        assert way.get_nodes() == before
        assert len(policy.offered) == 2

    def test_candidates_limited_by_lookup_distance(self):
        _, way, _ = self._setup()
        policy = _FixedPolicy(ReuseNearNodeMethod.REUSE, lookup_distance_meters=0.1)
        assert reuse_near_nodes(way, policy, _landuse_filter(way)) == 0
        assert policy.offered == []

    def test_tagged_new_node_kept(self):
        editor, way, _ = self._setup()
        way.get_nodes()[1].set_keys({'barrier': 'gate'})
        policy = _FixedPolicy(ReuseNearNodeMethod.REUSE)
        assert reuse_near_nodes(way, policy, _landuse_filter(way)) == 1


class TestConnectExistingTouchingNodes:
    """Tests for connect_existing_touching_nodes()."""

    def test_nodes_on_edge_inserted_in_order(self):
        dataset = MapDataset()
        neighbour = dataset.add_area(
            [_p(-20, 80), _p(-20, 20), _p(-0.1, 20), _p(-0.1, 80)],
            {'landuse': 'meadow'},
        )
        editor = WayEditor(dataset)
        way = _new_area(editor, _rect(0, 0, 100, 100))

        assert connect_existing_touching_nodes(way, TOLERANCE, _landuse_filter(way)) == 2
        nodes = way.get_nodes()
        assert way.get_nodes_count() == 7
        assert nodes[1].id == neighbour.node_ids[2]
        assert nodes[2].id == neighbour.node_ids[3]
        assert way.is_closed

    def test_node_beyond_tolerance_ignored(self):
        dataset = MapDataset()
        dataset.add_area([_p(-20, 80), _p(-20, 20), _p(-0.5, 20), _p(-0.5, 80)], {'landuse': 'meadow'})
        editor = WayEditor(dataset)
        way = _new_area(editor, _rect(0, 0, 100, 100))
        assert connect_existing_touching_nodes(way, TOLERANCE, _landuse_filter(way)) == 0
        assert way.get_nodes_count() == 5

    def test_node_near_corner_ignored(self):
        dataset = MapDataset()
        dataset.add_area([_p(-20, -20), _p(-20, 0.1), _p(-0.05, 0.1)], {'landuse': 'meadow'})
        editor = WayEditor(dataset)
        way = _new_area(editor, _rect(0, 0, 100, 100))
        assert connect_existing_touching_nodes(way, TOLERANCE, _landuse_filter(way)) == 0

    def test_short_segment_skipped(self):
        dataset = MapDataset()
        dataset.add_area([_p(-5, 0.15), _p(-5, 0.2), _p(0, 0.15)], {'landuse': 'meadow'})
        editor = WayEditor(dataset)
        way = _new_area(editor, [_p(0, 0), _p(0, 0.3), _p(10, 0.3), _p(10, 0)])
        assert connect_existing_touching_nodes(way, TOLERANCE, _landuse_filter(way)) == 0


@pytest.mark.parametrize("method", list(ReuseNearNodeMethod))
def test_reuse_methods_have_stable_values(method):
    assert ReuseNearNodeMethod(method.value) is method
