"""Object and node predicates used to restrict reuse, clip and merge.

Area predicates wrap a :class:`~parceltrace.core.predicates.TagMatch` and
decide whether an editable object is an area of the wanted class. Node
predicates select which existing nodes may be reused or connected.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Tuple

from ..core.predicates import TagMatch
from .elements import EdMultipolygon, EdNode, EdObject, EdWay


class AreaPredicate:
    """Closed way or multipolygon whose tags satisfy ``match``."""

    def __init__(self, match: TagMatch):
        self.match = match

    def __call__(self, obj: EdObject) -> bool:
        if isinstance(obj, EdWay):
            return obj.is_closed and self.match.matches(obj.get_keys())
        if isinstance(obj, EdMultipolygon):
            return self.match.matches(obj.get_keys())
        return False

    def __repr__(self) -> str:
        return f"AreaPredicate({self.match!r})"


class NodePredicate(ABC):
    @abstractmethod
    def __call__(self, node: EdNode) -> bool:
        ...

    def __and__(self, other: "NodePredicate") -> "NodePredicate":
        return NodeAndPredicate(self, other)


class AreaBoundaryWayNodePredicate(NodePredicate):
    """Node lies on the boundary of an area matching ``match``.

    The area is either a closed way the node belongs to, or a multipolygon
    one of the node's ways is a member of.
    """

    def __init__(self, match: TagMatch):
        self.area = AreaPredicate(match)

    def __call__(self, node: EdNode) -> bool:
        for way in node.referrer_ways():
            if self.area(way):
                return True
            for multipolygon in way.referrer_multipolygons():
                if self.area(multipolygon):
                    return True
        return False


class ExcludeNodesPredicate(NodePredicate):
    """Reject the nodes of ``obj``, evaluated against its current geometry."""

    def __init__(self, obj: EdObject):
        self.obj = obj

    def __call__(self, node: EdNode) -> bool:
        return not self.obj.contains_node(node)


class NodeAndPredicate(NodePredicate):
    def __init__(self, *parts: NodePredicate):
        self.parts: Tuple[NodePredicate, ...] = parts

    def __call__(self, node: EdNode) -> bool:
        return all(part(node) for part in self.parts)


__all__ = [
    'AreaPredicate',
    'NodePredicate',
    'AreaBoundaryWayNodePredicate',
    'ExcludeNodesPredicate',
    'NodeAndPredicate',
]
