"""Clip and merge steps run after the traced area is in place."""

from __future__ import annotations

from typing import List

from ..config import TraceSettings
from ..edit.clip import ClipAreas, ClipAreasSettings
from ..edit.editor import WayEditor
from ..edit.elements import EdWay
from ..edit.filters import AreaPredicate
from ..edit.merge import MergeIdenticalWays


def clip_overlapping_areas(
    editor: WayEditor,
    outer_way: EdWay,
    settings: TraceSettings,
    notifications: List[str],
) -> List[EdWay]:
    """Clip landuse areas overlapping ``outer_way``; problems become notifications."""
    # Only the outer way is used as the clip boundary, holes are not clipped into.
    clip = ClipAreas(editor, ClipAreasSettings(settings.connect_tolerance), notifications)
    return clip.clip_areas(outer_way, AreaPredicate(settings.clip_match))


def merge_duplicate_ways(
    editor: WayEditor,
    outer_way: EdWay,
    settings: TraceSettings,
    notifications: List[str],
) -> EdWay:
    """Merge identical modified ways.

    Returns:
        The way standing for ``outer_way`` afterwards; use it instead of
        ``outer_way``, which may have been merged away.
    """
    merger = MergeIdenticalWays(editor, AreaPredicate(settings.merge_match), notifications)
    return merger.merge_ways(editor.get_modified_ways(), outer_way)


__all__ = [
    'clip_overlapping_areas',
    'merge_duplicate_ways',
]
