"""Selection of the existing area a trace should replace.

Retracing keeps the identity of an area already in the map and only swaps
its geometry. Candidates are untouched areas at the traced point that look
like farmland parcels and were imported from the same source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from loguru import logger

from ..core.errors import RetraceUnsupported
from ..core.geodesy import LatLon
from ..core.predicates import TagMatch
from ..core.types import RetraceMatch
from ..edit.editor import WayEditor
from ..edit.elements import EdMultipolygon, EdObject, EdWay
from ..edit.filters import AreaPredicate

RETRACE_UNSUPPORTED_MESSAGE = "Multipolygon retrace is not supported yet."


@dataclass(frozen=True)
class RetraceResult:
    """Outcome of a retrace search.

    Attributes:
        match: Kind of match found
        candidate: Area to retrace, None unless match is EXACT or SINGLE
    """

    match: RetraceMatch
    candidate: Optional[EdObject] = None

    @property
    def is_ambiguous(self) -> bool:
        return self.match is RetraceMatch.AMBIGUOUS


def resolve_retrace_candidate(candidates: Iterable[EdObject], ref: str, source: str) -> RetraceResult:
    """Pick the area to retrace among ``candidates``.

    Only candidates tagged ``source=<source>`` are considered. A candidate
    whose ``ref`` equals ``ref`` is returned at once, whatever was seen
    before it. Otherwise the first same-source candidate is kept; a second
    distinct one makes the result ambiguous.

    Examples:
        >>> result = resolve_retrace_candidate(areas, '12345', 'lpis')
        >>> result.match
        <RetraceMatch.EXACT: 'exact'>
    """
    fallback: Optional[EdObject] = None
    multiple = False

    for area in candidates:
        if area.get('source') != source:
            continue
        logger.debug(f"Retrace candidate {area!r}")

        if area.get('ref') == ref:
            return RetraceResult(RetraceMatch.EXACT, area)

        if fallback is None:
            fallback = area
        elif area is not fallback:
            multiple = True

    if multiple:
        return RetraceResult(RetraceMatch.AMBIGUOUS)
    if fallback is not None:
        return RetraceResult(RetraceMatch.SINGLE, fallback)
    return RetraceResult(RetraceMatch.NONE)


class RetraceResolver:
    """Search an edit session for the area to retrace."""

    def __init__(self, retrace_match: TagMatch, source: str):
        self.area_filter = AreaPredicate(retrace_match)
        self.source = source

    def find(self, editor: WayEditor, point: LatLon, ref: str) -> RetraceResult:
        areas = editor.use_non_edited_areas_containing_point(point, self.area_filter)
        result = resolve_retrace_candidate(areas, ref, self.source)
        logger.debug(f"Retrace search at {point}: {result.match.value}")
        return result


def check_retrace_supported(retrace_object: EdObject, multipolygon: Optional[EdMultipolygon]) -> EdWay:
    """Return ``retrace_object`` as a way if its geometry can be swapped.

    Raises:
        RetraceUnsupported: The traced area is a multipolygon, or the target
            is not a plain way, or the target way is referenced elsewhere
    """
    if multipolygon is not None or not isinstance(retrace_object, EdWay) or retrace_object.has_referrers():
        raise RetraceUnsupported(RETRACE_UNSUPPORTED_MESSAGE)
    return retrace_object


__all__ = [
    'RETRACE_UNSUPPORTED_MESSAGE',
    'RetraceResult',
    'RetraceResolver',
    'resolve_retrace_candidate',
    'check_retrace_supported',
]
