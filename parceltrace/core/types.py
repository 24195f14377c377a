"""Type definitions for parceltrace operations.

This module defines the enums used to report decisions and pipeline progress.
"""

from enum import Enum


class ReuseNearNodeMethod(Enum):
    """Decision taken for an existing node found near a new boundary node.

    Attributes:
        DONT_REUSE: Keep the new node
        REUSE: Replace the new node with the existing one, unchanged
        MOVE_AND_REUSE: Move the existing node to the new position, then reuse it

    Examples:
        >>> from parceltrace.core.types import ReuseNearNodeMethod
        >>> method = policy.reuse_near_node(node, near_node, 0.1)
        >>> method is ReuseNearNodeMethod.REUSE
        True
    """
    DONT_REUSE = 'dont_reuse'
    REUSE = 'reuse'
    MOVE_AND_REUSE = 'move_and_reuse'


class RetraceMatch(Enum):
    """Outcome of the search for an existing feature to retrace.

    Attributes:
        EXACT: Candidate carries the record's reference id
        SINGLE: Exactly one same-source candidate, without matching id
        AMBIGUOUS: Several same-source candidates, none with matching id
        NONE: Nothing to retrace
    """
    EXACT = 'exact'
    SINGLE = 'single'
    AMBIGUOUS = 'ambiguous'
    NONE = 'none'


class TraceState(Enum):
    """States of the reconciliation pipeline.

    The happy path runs FETCHING through DONE in declaration order; the
    optional states are skipped when the matching setting is off. The last
    five members are terminal failure states.
    """
    FETCHING = 'fetching'
    GEOMETRY_BUILT = 'geometry_built'
    BOUNDS_CHECKED = 'bounds_checked'
    NODES_RECONCILED = 'nodes_reconciled'
    RETRACED = 'retraced'
    TAGGED = 'tagged'
    TOUCHING_NODES_CONNECTED = 'touching_nodes_connected'
    CLIPPED = 'clipped'
    MERGED = 'merged'
    DONE = 'done'

    FETCH_FAILED = 'fetch_failed'
    CANCELLED = 'cancelled'
    RETRACE_AMBIGUOUS = 'retrace_ambiguous'
    BOUNDS_EXCEEDED = 'bounds_exceeded'
    RETRACE_UNSUPPORTED = 'retrace_unsupported'

    @property
    def is_failure(self) -> bool:
        return self in _FAILURE_STATES


_FAILURE_STATES = frozenset({
    TraceState.FETCH_FAILED,
    TraceState.CANCELLED,
    TraceState.RETRACE_AMBIGUOUS,
    TraceState.BOUNDS_EXCEEDED,
    TraceState.RETRACE_UNSUPPORTED,
})


__all__ = [
    'ReuseNearNodeMethod',
    'RetraceMatch',
    'TraceState',
]
