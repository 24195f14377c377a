"""Tests for clipping overlapping areas."""

import math

import pytest
from shapely.geometry import Point

from parceltrace.config import CLIP_LANDUSE_WAY_MATCH, TraceSettings
from parceltrace.core import LatLon, SpatialTolerance
from parceltrace.edit import AreaPredicate, ClipAreas, ClipAreasSettings, MapDataset, WayEditor
from parceltrace.trace import clip_overlapping_areas

ORIGIN = LatLon(49.8, 15.4)
TOLERANCE = SpatialTolerance(0.2, math.pi / 3)


def _p(north, east):
    return ORIGIN.offset(north, east)


def _rect(south, west, north, east):
    return [_p(south, west), _p(south, east), _p(north, east), _p(north, west)]


def _contains(way, north, east):
    return way.to_polygon().contains(Point(_p(north, east).xy))


def _clip(dataset, clip_ring=None):
    editor = WayEditor(dataset)
    nodes = [editor.new_node(p) for p in (clip_ring or _rect(0, 0, 100, 100))]
    clip_way = editor.new_way(nodes + [nodes[0]], {'landuse': 'farmland'})
    notifications = []
    clip = ClipAreas(editor, ClipAreasSettings(TOLERANCE), notifications)
    clipped = clip.clip_areas(clip_way, AreaPredicate(CLIP_LANDUSE_WAY_MATCH))
    return editor, clip_way, clipped, notifications


class TestClipAreasSettings:
    """Tests for ClipAreasSettings."""

    def test_min_overlap_area(self):
        assert ClipAreasSettings(TOLERANCE).min_overlap_area == pytest.approx(0.04)


class TestClipAreas:
    """Tests for ClipAreas.clip_areas()."""

    def test_overlap_removed_and_boundary_shared(self):
        dataset = MapDataset()
        meadow = dataset.add_area(_rect(0, 90, 100, 200), {'landuse': 'meadow'})
        editor, clip_way, clipped, notifications = _clip(dataset)
        way = editor.way(meadow.id)

        assert clipped == [way]
        assert notifications == []
        assert way.is_closed
        assert way.get_nodes_count() == 5
        assert len(way.get_all_nodes() & clip_way.get_all_nodes()) == 2
        assert not _contains(way, 50, 95)
        assert _contains(way, 50, 150)
        assert way.is_modified

    def test_crossing_points_inserted_into_clip_way(self):
        dataset = MapDataset()
        meadow = dataset.add_area(_rect(20, 90, 80, 200), {'landuse': 'meadow'})
        editor, clip_way, clipped, notifications = _clip(dataset)
        way = editor.way(meadow.id)

        assert clipped == [way]
        assert notifications == []
        shared = way.get_all_nodes() & clip_way.get_all_nodes()
        assert len(shared) == 2
        assert all(node.is_new for node in shared)
        assert clip_way.is_closed
        assert clip_way.get_nodes_count() == 7
        assert set(clip_way.get_nodes()[2:4]) == shared
        assert way.get_nodes_count() == 5
        assert not _contains(way, 50, 95)
        assert _contains(way, 50, 150)

    def test_later_area_reuses_inserted_crossing_nodes(self):
        dataset = MapDataset()
        first = dataset.add_area(_rect(20, 90, 80, 200), {'landuse': 'meadow'})
        second = dataset.add_area(_rect(20, 90, 40, 150), {'landuse': 'orchard'})
        editor, clip_way, clipped, _ = _clip(dataset)

        assert len(clipped) == 2
        boundary = clip_way.get_all_nodes()
        shared_first = editor.way(first.id).get_all_nodes() & boundary
        shared_second = editor.way(second.id).get_all_nodes() & boundary
        assert len(shared_first) == 2
        assert len(shared_second) == 2
        assert len(shared_first & shared_second) == 1
        assert clip_way.get_nodes_count() == 8

    def test_disjoint_area_untouched(self):
        dataset = MapDataset()
        meadow = dataset.add_area(_rect(0, 150, 100, 200), {'landuse': 'meadow'})
        editor, _, clipped, notifications = _clip(dataset)
        assert clipped == []
        assert notifications == []
        assert not editor.way(meadow.id).is_modified

    def test_touching_area_untouched(self):
        dataset = MapDataset()
        dataset.add_area(_rect(0, 100, 100, 200), {'landuse': 'meadow'})
        _, _, clipped, notifications = _clip(dataset)
        assert clipped == []
        assert notifications == []

    def test_non_landuse_area_untouched(self):
        dataset = MapDataset()
        dataset.add_area(_rect(0, 90, 100, 200), {'building': 'yes'})
        _, _, clipped, notifications = _clip(dataset)
        assert clipped == []
        assert notifications == []

    def test_fully_covered_area_reported(self):
        dataset = MapDataset()
        meadow = dataset.add_area(_rect(10, 10, 20, 20), {'landuse': 'meadow'})
        editor, _, clipped, notifications = _clip(dataset)
        assert clipped == []
        assert len(notifications) == 1
        assert "fully covered" in notifications[0]
        assert not editor.way(meadow.id).is_modified

    def test_split_reported(self):
        dataset = MapDataset()
        dataset.add_area(_rect(-50, 40, 150, 60), {'landuse': 'meadow'})
        _, _, clipped, notifications = _clip(dataset)
        assert clipped == []
        assert "split it into 2 parts" in notifications[0]

    def test_hole_reported(self):
        dataset = MapDataset()
        dataset.add_area(_rect(-50, -50, 150, 150), {'landuse': 'meadow'})
        _, _, clipped, notifications = _clip(dataset)
        assert clipped == []
        assert "hole" in notifications[0]

    def test_overlapping_multipolygon_reported(self):
        dataset = MapDataset()
        outer = dataset.add_area(_rect(0, 90, 100, 200))
        relation = dataset.add_multipolygon([outer], [], {'landuse': 'forest'})
        _, _, clipped, notifications = _clip(dataset)
        assert clipped == []
        assert notifications == [
            f"Multipolygon {relation.id} overlaps the traced area and was not clipped."
        ]

    def test_open_clip_way_rejected(self):
        editor = WayEditor(MapDataset())
        nodes = [editor.new_node(p) for p in _rect(0, 0, 100, 100)]
        clip = ClipAreas(editor, ClipAreasSettings(TOLERANCE), [])
        with pytest.raises(ValueError, match="not closed"):
            clip.clip_areas(editor.new_way(nodes), AreaPredicate(CLIP_LANDUSE_WAY_MATCH))


class TestClipOverlappingAreas:
    """Tests for clip_overlapping_areas()."""

    def test_uses_settings(self):
        dataset = MapDataset()
        meadow = dataset.add_area(_rect(0, 90, 100, 200), {'landuse': 'meadow'})
        editor = WayEditor(dataset)
        nodes = [editor.new_node(p) for p in _rect(0, 0, 100, 100)]
        traced = editor.new_way(nodes + [nodes[0]])
        notifications = []

        clipped = clip_overlapping_areas(editor, traced, TraceSettings(), notifications)
        assert clipped == [editor.way(meadow.id)]
        assert notifications == []
