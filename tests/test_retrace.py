"""Tests for retrace candidate resolution."""

import pytest

from parceltrace.config import RETRACE_AREA_MATCH
from parceltrace.core import LatLon, RetraceMatch, RetraceUnsupported
from parceltrace.edit import MapDataset, WayEditor
from parceltrace.trace import RetraceResolver, check_retrace_supported, resolve_retrace_candidate
from parceltrace.trace.retrace import RETRACE_UNSUPPORTED_MESSAGE

ORIGIN = LatLon(49.8, 15.4)


def _p(north, east):
    return ORIGIN.offset(north, east)


def _rect(south, west, north, east):
    return [_p(south, west), _p(south, east), _p(north, east), _p(north, west)]


class _Area:
    """Stand-in for an editable area, only tags matter here."""

    def __init__(self, **tags):
        self.tags = tags

    def get(self, key):
        return self.tags.get(key)

    def __repr__(self):
        return f"_Area({self.tags})"


def _lpis(ref=None):
    if ref is None:
        return _Area(source='lpis', landuse='farmland')
    return _Area(source='lpis', landuse='farmland', ref=ref)


class TestResolveRetraceCandidate:
    """Tests for resolve_retrace_candidate()."""

    def test_no_candidates(self):
        result = resolve_retrace_candidate([], '12345', 'lpis')
        assert result.match is RetraceMatch.NONE
        assert result.candidate is None

    def test_other_sources_ignored(self):
        result = resolve_retrace_candidate([_Area(landuse='farmland'), _Area(source='survey')], '1', 'lpis')
        assert result.match is RetraceMatch.NONE

    def test_single_candidate(self):
        area = _lpis('999')
        result = resolve_retrace_candidate([area], '12345', 'lpis')
        assert result.match is RetraceMatch.SINGLE
        assert result.candidate is area

    def test_exact_match(self):
        area = _lpis('12345')
        result = resolve_retrace_candidate([area], '12345', 'lpis')
        assert result.match is RetraceMatch.EXACT
        assert result.candidate is area

    def test_two_candidates_are_ambiguous(self):
        result = resolve_retrace_candidate([_lpis('1'), _lpis()], '12345', 'lpis')
        assert result.is_ambiguous
        assert result.candidate is None

    @pytest.mark.parametrize("position", [0, 1, 2])
    def test_exact_match_dominates(self, position):
        candidates = [_lpis('1'), _lpis('2')]
        exact = _lpis('12345')
        candidates.insert(position, exact)
        result = resolve_retrace_candidate(candidates, '12345', 'lpis')
        assert result.match is RetraceMatch.EXACT
        assert result.candidate is exact

    def test_same_candidate_twice_not_ambiguous(self):
        area = _lpis()
        result = resolve_retrace_candidate([area, area], '12345', 'lpis')
        assert result.match is RetraceMatch.SINGLE


class TestRetraceResolver:
    """Tests for RetraceResolver.find()."""

    def test_finds_lpis_area_at_point(self):
        dataset = MapDataset()
        parcel = dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'meadow', 'source': 'lpis', 'ref': '7'})
        dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'meadow'})
        dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'forest'})
        editor = WayEditor(dataset)

        result = RetraceResolver(RETRACE_AREA_MATCH, 'lpis').find(editor, _p(50, 50), '12345')
        assert result.match is RetraceMatch.SINGLE
        assert result.candidate is editor.way(parcel.id)

    def test_overlapping_parcels_ambiguous(self):
        dataset = MapDataset()
        dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'farmland', 'source': 'lpis', 'ref': '1'})
        dataset.add_area(_rect(-50, -50, 60, 60), {'landuse': 'farmland', 'source': 'lpis', 'ref': '2'})
        editor = WayEditor(dataset)

        result = RetraceResolver(RETRACE_AREA_MATCH, 'lpis').find(editor, _p(50, 50), '12345')
        assert result.is_ambiguous

    def test_point_outside_areas(self):
        dataset = MapDataset()
        dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'farmland', 'source': 'lpis'})
        editor = WayEditor(dataset)
        result = RetraceResolver(RETRACE_AREA_MATCH, 'lpis').find(editor, _p(150, 50), '12345')
        assert result.match is RetraceMatch.NONE


class TestCheckRetraceSupported:
    """Tests for check_retrace_supported()."""

    def test_plain_way_supported(self):
        dataset = MapDataset()
        parcel = dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'farmland', 'source': 'lpis'})
        editor = WayEditor(dataset)
        way = editor.way(parcel.id)
        assert check_retrace_supported(way, None) is way

    def test_traced_multipolygon_unsupported(self):
        dataset = MapDataset()
        parcel = dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'farmland', 'source': 'lpis'})
        editor = WayEditor(dataset)
        with pytest.raises(RetraceUnsupported, match="not supported"):
            check_retrace_supported(editor.way(parcel.id), editor.new_multipolygon())

    def test_multipolygon_target_unsupported(self):
        dataset = MapDataset()
        outer = dataset.add_area(_rect(0, 0, 100, 100))
        relation = dataset.add_multipolygon([outer], [], {'landuse': 'farmland', 'source': 'lpis'})
        editor = WayEditor(dataset)
        with pytest.raises(RetraceUnsupported):
            check_retrace_supported(editor.multipolygon(relation.id), None)

    def test_referenced_way_unsupported(self):
        dataset = MapDataset()
        parcel = dataset.add_area(_rect(0, 0, 100, 100), {'landuse': 'farmland', 'source': 'lpis'})
        dataset.add_multipolygon([parcel], [], {'type': 'boundary'})
        editor = WayEditor(dataset)
        with pytest.raises(RetraceUnsupported) as excinfo:
            check_retrace_supported(editor.way(parcel.id), None)
        assert excinfo.value.message == RETRACE_UNSUPPORTED_MESSAGE
