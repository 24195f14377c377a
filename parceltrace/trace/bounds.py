"""Safety check against incomplete source data.

Tracing next to the edge of the downloaded area could silently ignore
features that were never loaded. The traced geometry, grown by a margin,
and any retrace target must therefore lie inside downloaded data.
"""

from __future__ import annotations

from typing import Optional

from loguru import logger

from ..core.errors import BoundsExceeded
from ..core.geodesy import LatLonSize
from ..edit.elements import EdObject

OUTSIDE_DOWNLOADED_AREA_MESSAGE = (
    "The traced area is not fully inside the downloaded data. "
    "Download a larger area and trace again."
)


def check_inside_data_source_bounds(
    new_object: EdObject,
    retrace_object: Optional[EdObject],
    oversize_meters: float,
) -> bool:
    """Check both objects, grown by ``oversize_meters``, are inside downloaded data.

    The margin is converted to degrees once, at the centre of the new
    object's bbox, and applied to both objects.
    """
    oversize = LatLonSize.get(new_object.get_bbox(), oversize_meters)
    if retrace_object is not None and not retrace_object.is_inside_data_source_bounds(oversize):
        logger.debug(f"Retrace target {retrace_object!r} extends beyond downloaded data")
        return False
    return new_object.is_inside_data_source_bounds(oversize)


def ensure_inside_data_source_bounds(
    new_object: EdObject,
    retrace_object: Optional[EdObject],
    oversize_meters: float,
) -> None:
    """Raise :class:`BoundsExceeded` unless :func:`check_inside_data_source_bounds` passes."""
    if not check_inside_data_source_bounds(new_object, retrace_object, oversize_meters):
        raise BoundsExceeded(OUTSIDE_DOWNLOADED_AREA_MESSAGE)


__all__ = [
    'OUTSIDE_DOWNLOADED_AREA_MESSAGE',
    'check_inside_data_source_bounds',
    'ensure_inside_data_source_bounds',
]
