"""Reconcile traced boundary nodes with the nodes already in the map."""

from __future__ import annotations

from typing import Optional, Set

from loguru import logger

from ..config import TraceSettings
from ..core.predicates import TagMatch
from ..core.types import ReuseNearNodeMethod
from ..edit.elements import EdNode, EdObject
from ..edit.filters import (
    AreaBoundaryWayNodePredicate,
    ExcludeNodesPredicate,
    NodeAndPredicate,
    NodePredicate,
)


class ReuseLanduseNearNodes:
    """Near-node reuse policy for landuse boundaries.

    Untagged nodes of the area being retraced may drift: within
    ``retraced_tolerance_meters`` they are moved onto the new boundary and
    reused, so the old outline leaves no stray nodes behind. Every other
    node is reused in place within ``default_tolerance_meters``.

    Examples:
        >>> policy = ReuseLanduseNearNodes(retraced_nodes, 0.2, 0.4)
        >>> policy.reuse_near_node(node, old_node, 0.3)
        <ReuseNearNodeMethod.MOVE_AND_REUSE: 'move_and_reuse'>
    """

    def __init__(
        self,
        retraced_nodes: Optional[Set[EdNode]],
        default_tolerance_meters: float,
        retraced_tolerance_meters: float,
    ):
        self.retraced_nodes = retraced_nodes
        self.default_tolerance_meters = default_tolerance_meters
        self.retraced_tolerance_meters = retraced_tolerance_meters
        self._lookup_distance_meters = max(default_tolerance_meters, retraced_tolerance_meters)

    @property
    def lookup_distance_meters(self) -> float:
        return self._lookup_distance_meters

    def reuse_near_node(self, node: EdNode, near_node: EdNode, distance_meters: float) -> ReuseNearNodeMethod:
        retraced = self.retraced_nodes is not None and near_node in self.retraced_nodes

        if retraced:
            logger.debug(f"Near node {near_node!r}: retraced, dist={distance_meters:.3f}")
            if distance_meters <= self.retraced_tolerance_meters and not near_node.is_tagged():
                return ReuseNearNodeMethod.MOVE_AND_REUSE

        logger.debug(f"Near node {near_node!r}: default, dist={distance_meters:.3f}")
        if distance_meters <= self.default_tolerance_meters:
            return ReuseNearNodeMethod.REUSE

        return ReuseNearNodeMethod.DONT_REUSE


def landuse_node_filter(obj: EdObject, node_match: TagMatch) -> NodePredicate:
    """Nodes on landuse area boundaries, excluding the nodes of ``obj`` itself."""
    return NodeAndPredicate(ExcludeNodesPredicate(obj), AreaBoundaryWayNodePredicate(node_match))


def reconcile_nodes(obj: EdObject, retrace_object: Optional[EdObject], settings: TraceSettings) -> int:
    """Replace new boundary nodes of ``obj`` with existing landuse nodes.

    Without clipping only nodes at exactly the same position are reused.
    With clipping the tolerant :class:`ReuseLanduseNearNodes` policy is used,
    since the clip step corrects the remaining misalignment.

    Returns:
        Number of reused nodes
    """
    node_filter = landuse_node_filter(obj, settings.reuse_node_match)
    if not settings.perform_clipping:
        return obj.reuse_existing_nodes(node_filter)

    retraced_nodes = retrace_object.get_all_nodes() if retrace_object is not None else None
    policy = ReuseLanduseNearNodes(
        retraced_nodes,
        settings.connect_tolerance.distance_meters,
        settings.retraced_node_tolerance_meters,
    )
    return obj.reuse_near_nodes(policy, node_filter)


def connect_touching_nodes(obj: EdObject, settings: TraceSettings) -> int:
    """Insert nodes of neighbouring landuse areas lying on the boundary of ``obj``."""
    node_filter = landuse_node_filter(obj, settings.reuse_node_match)
    return obj.connect_existing_touching_nodes(settings.connect_tolerance, node_filter)


__all__ = [
    'ReuseLanduseNearNodes',
    'landuse_node_filter',
    'reconcile_nodes',
    'connect_touching_nodes',
]
