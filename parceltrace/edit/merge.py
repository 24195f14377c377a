"""Merge ways with identical geometry.

After reuse, connection and clipping, a traced way can end up running over
exactly the same nodes as another way. ``MergeIdenticalWays`` folds such
duplicates into a single way and reports which way survived, so callers can
keep working with the right object.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from loguru import logger

from .editor import WayEditor
from .elements import EdObject, EdWay

RingKey = Tuple


class MergeIdenticalWays:
    """Fold duplicate ways into one.

    Two ways are identical when they run over the same nodes, in any
    direction and, for closed ways, from any starting node. The older way
    survives: existing ways win over new ones, lower ids over higher ones.
    Tags are combined; ways with conflicting values are left alone and
    reported.
    """

    def __init__(
        self,
        editor: WayEditor,
        area_filter: Callable[[EdObject], bool],
        notifications: Optional[List[str]] = None,
    ):
        self.editor = editor
        self.area_filter = area_filter
        self.notifications = notifications if notifications is not None else []

    def merge_ways(self, ways: Iterable[EdWay], tracked: Optional[EdWay] = None) -> Optional[EdWay]:
        """Merge each of ``ways`` with its identical counterparts.

        Args:
            ways: Ways to examine, usually ``editor.get_modified_ways()``
            tracked: Way the caller keeps a handle to

        Returns:
            The way that now stands for ``tracked``. It differs from
            ``tracked`` when ``tracked`` was absorbed into another way.
        """
        index = self._build_index()
        merged = 0

        for way in list(ways):
            if way.is_deleted or not self.area_filter(way):
                continue
            current = way
            for other in list(index.get(_ring_key(way), [])):
                if other is current or other.is_deleted or not self.area_filter(other):
                    continue
                survivor, absorbed = _order(current, other)
                if not self._merge_pair(survivor, absorbed):
                    continue
                merged += 1
                if tracked is absorbed:
                    tracked = survivor
                current = survivor

        if merged:
            logger.info(f"Merged {merged} duplicate way(s)")
        return tracked

    def _merge_pair(self, survivor: EdWay, absorbed: EdWay) -> bool:
        tags = survivor.get_keys()
        for key, value in absorbed.get_keys().items():
            if key in tags and tags[key] != value:
                message = (
                    f"Ways {survivor.id} and {absorbed.id} are identical but have "
                    f"conflicting '{key}' tags; they were not merged."
                )
                logger.warning(message)
                self.notifications.append(message)
                return False
            tags[key] = value

        survivor.set_keys(tags)
        for multipolygon in absorbed.referrer_multipolygons():
            multipolygon.replace_way(absorbed, survivor)
        self.editor.delete(absorbed)
        logger.debug(f"Merged {absorbed!r} into {survivor!r}")
        return True

    def _build_index(self) -> Dict[RingKey, List[EdWay]]:
        index: Dict[RingKey, List[EdWay]] = defaultdict(list)
        for way in self.editor.ways():
            if way.get_nodes_count() >= 2:
                index[_ring_key(way)].append(way)
        return index


def _ring_key(way: EdWay) -> RingKey:
    ids = [node.id for node in way.get_nodes()]
    if way.is_closed:
        ring = ids[:-1]
        reverse = ring[::-1]
        variants = [tuple(ring[i:] + ring[:i]) for i in range(len(ring))]
        variants += [tuple(reverse[i:] + reverse[:i]) for i in range(len(reverse))]
        return ('closed',) + min(variants)
    return ('open',) + min(tuple(ids), tuple(reversed(ids)))


def _order(a: EdWay, b: EdWay) -> Tuple[EdWay, EdWay]:
    if a.is_new != b.is_new:
        return (b, a) if a.is_new else (a, b)
    if not a.is_new and b.id < a.id:
        return b, a
    return a, b


__all__ = ['MergeIdenticalWays']
