"""Node reuse and touching-node connection.

These operations keep a newly traced object connected to the surrounding
map: new boundary nodes are replaced by existing nodes at (or near) the same
position, and existing nodes lying on the new boundary are inserted into it.
"""

from __future__ import annotations

from typing import List, Protocol, Set, Tuple

import numpy as np
from loguru import logger

from ..core.geodesy import LatLon, LocalProjection, angle_between, point_to_segment_projection
from ..core.tolerance import SpatialTolerance
from ..core.types import ReuseNearNodeMethod
from .elements import EdNode, EdObject, NodeFilter


class ReuseNearNodePolicy(Protocol):
    """Decides what to do with an existing node found near a new one."""

    @property
    def lookup_distance_meters(self) -> float:
        ...

    def reuse_near_node(self, node: EdNode, near_node: EdNode, distance_meters: float) -> ReuseNearNodeMethod:
        ...


def reuse_existing_nodes(obj: EdObject, node_filter: NodeFilter) -> int:
    """Replace new nodes of ``obj`` by existing nodes at exactly the same position.

    Args:
        obj: Object whose boundary nodes are examined
        node_filter: Predicate an existing node must satisfy to be reused

    Returns:
        Number of replaced nodes
    """
    editor = obj.editor
    reused = 0
    for node in obj.boundary_nodes():
        if not node.is_new or node.is_tagged():
            continue
        matches = editor.find_nodes_near(node.coor, 0.0, node_filter)
        if not matches:
            continue
        existing, _ = matches[0]
        _replace_node(obj, node, existing)
        reused += 1

    if reused:
        logger.debug(f"Reused {reused} existing node(s) for {obj!r}")
    return reused


def reuse_near_nodes(obj: EdObject, policy: ReuseNearNodePolicy, node_filter: NodeFilter) -> int:
    """Replace new nodes of ``obj`` by nearby existing nodes as ``policy`` decides.

    Candidates within ``policy.lookup_distance_meters`` are offered nearest
    first; the first one the policy accepts wins.

    Args:
        obj: Object whose boundary nodes are examined
        policy: Reuse decision per (new node, existing node, distance)
        node_filter: Predicate an existing node must satisfy to be considered

    Returns:
        Number of replaced nodes
    """
    editor = obj.editor
    reused = 0
    for node in obj.boundary_nodes():
        if not node.is_new or node.is_tagged():
            continue
        candidates = editor.find_nodes_near(node.coor, policy.lookup_distance_meters, node_filter)
        for near_node, distance in candidates:
            method = policy.reuse_near_node(node, near_node, distance)
            if method is ReuseNearNodeMethod.DONT_REUSE:
                continue
            if method is ReuseNearNodeMethod.MOVE_AND_REUSE:
                near_node.set_coor(node.coor)
            _replace_node(obj, node, near_node)
            reused += 1
            logger.debug(f"{method.value}: {near_node!r} at {distance:.3f} m replaces {node!r}")
            break

    return reused


def connect_existing_touching_nodes(
    obj: EdObject,
    tolerance: SpatialTolerance,
    node_filter: NodeFilter
) -> int:
    """Insert existing nodes lying on the segments of ``obj``'s ways.

    A node is inserted between ``a`` and ``b`` when it is within
    ``tolerance.distance_meters`` of the segment, farther than that from both
    end points, and the detour ``a -> node -> b`` deviates from ``a -> b`` by
    at most ``tolerance.angle_radians`` on either leg.

    Returns:
        Number of inserted nodes
    """
    editor = obj.editor
    projection = LocalProjection(obj.get_bbox().center)
    connected = 0

    for way in obj.ways():
        nodes = way.get_nodes()
        if len(nodes) < 2:
            continue

        used: Set[EdNode] = set()
        result: List[EdNode] = [nodes[0]]
        for a, b in zip(nodes, nodes[1:]):
            touching = _touching_nodes(editor, projection, a, b, tolerance, node_filter, used)
            used.update(touching)
            result.extend(touching)
            result.append(b)

        if len(result) != len(nodes):
            connected += len(result) - len(nodes)
            way.set_nodes(result)

    if connected:
        logger.debug(f"Connected {connected} touching node(s) to {obj!r}")
    return connected


def _touching_nodes(
    editor,
    projection: LocalProjection,
    a: EdNode,
    b: EdNode,
    tolerance: SpatialTolerance,
    node_filter: NodeFilter,
    used: Set[EdNode],
) -> List[EdNode]:
    pa = np.array(projection.to_local(a.coor))
    pb = np.array(projection.to_local(b.coor))
    segment = pb - pa
    length = float(np.linalg.norm(segment))
    if length <= 2 * tolerance.distance_meters:
        return []

    middle = LatLon((a.coor.lat + b.coor.lat) / 2, (a.coor.lon + b.coor.lon) / 2)
    radius = length / 2 + tolerance.distance_meters

    found: List[Tuple[float, EdNode]] = []
    for node, _ in editor.find_nodes_near(middle, radius, node_filter):
        if node is a or node is b or node in used:
            continue
        p = np.array(projection.to_local(node.coor))
        t, _, distance = point_to_segment_projection(p, pa, pb)
        if distance > tolerance.distance_meters:
            continue
        if np.linalg.norm(p - pa) <= tolerance.distance_meters or np.linalg.norm(pb - p) <= tolerance.distance_meters:
            continue
        if not tolerance.angle_is_close(angle_between(p - pa, segment)):
            continue
        if not tolerance.angle_is_close(angle_between(pb - p, segment)):
            continue
        found.append((t, node))

    found.sort(key=lambda item: item[0])
    return [node for _, node in found]


def _replace_node(obj: EdObject, old: EdNode, new: EdNode) -> None:
    for way in obj.ways():
        way.replace_node(old, new)
    if old.is_new and not old.has_referrers():
        obj.editor.delete(old)


__all__ = [
    'ReuseNearNodePolicy',
    'reuse_existing_nodes',
    'reuse_near_nodes',
    'connect_existing_touching_nodes',
]
