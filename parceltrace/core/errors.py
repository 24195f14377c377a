"""Exception hierarchy for parceltrace.

``TraceAbort`` subclasses are expected outcomes: the pipeline catches them,
discards the edit session and reports the message to the user. Everything
else deriving from ``TraceError`` signals a programming or data-integrity
fault and propagates.
"""

from typing import Optional

from .types import TraceState


class TraceError(Exception):
    """Base class for all parceltrace errors."""
    pass


class TraceAbort(TraceError):
    """A trace was stopped before anything was committed.

    Attributes:
        state: Terminal pipeline state the abort corresponds to
    """

    state: Optional[TraceState] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class FetchFailure(TraceAbort):
    """The remote record could not be retrieved or parsed."""
    state = TraceState.FETCH_FAILED


class TraceCancelled(TraceAbort):
    """The caller cancelled the trace while the record was being fetched."""
    state = TraceState.CANCELLED


class RetraceAmbiguous(TraceAbort):
    """Several existing features could be retraced and none matches the record id."""
    state = TraceState.RETRACE_AMBIGUOUS


class BoundsExceeded(TraceAbort):
    """Traced or retraced geometry is not fully covered by downloaded data."""
    state = TraceState.BOUNDS_EXCEEDED


class RetraceUnsupported(TraceAbort):
    """The retrace target cannot be replaced by the traced geometry."""
    state = TraceState.RETRACE_UNSUPPORTED


class GeometryInvalid(TraceError):
    """A record ring has fewer than three distinct vertices."""
    pass


class EditorClosedError(TraceError):
    """A way editor was used after it was committed or discarded."""
    pass


__all__ = [
    'TraceError',
    'TraceAbort',
    'FetchFailure',
    'TraceCancelled',
    'RetraceAmbiguous',
    'BoundsExceeded',
    'RetraceUnsupported',
    'GeometryInvalid',
    'EditorClosedError',
]
