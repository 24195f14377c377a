"""Editable map model.

This package provides the map dataset, the transactional way editor and the
geometry primitives the tracing pipeline orchestrates: node reuse,
touching-node connection, area clipping and identical-way merging.
"""

from .dataset import MapDataset, OsmMultipolygon, OsmNode, OsmWay
from .elements import EdMultipolygon, EdNode, EdObject, EdWay
from .editor import WayEditor
from .filters import (
    AreaBoundaryWayNodePredicate,
    AreaPredicate,
    ExcludeNodesPredicate,
    NodeAndPredicate,
    NodePredicate,
)
from .reuse import (
    ReuseNearNodePolicy,
    connect_existing_touching_nodes,
    reuse_existing_nodes,
    reuse_near_nodes,
)
from .clip import ClipAreas, ClipAreasSettings
from .merge import MergeIdenticalWays

__all__ = [
    # Dataset
    'MapDataset',
    'OsmNode',
    'OsmWay',
    'OsmMultipolygon',

    # Editing
    'WayEditor',
    'EdObject',
    'EdNode',
    'EdWay',
    'EdMultipolygon',

    # Predicates
    'AreaPredicate',
    'NodePredicate',
    'AreaBoundaryWayNodePredicate',
    'ExcludeNodesPredicate',
    'NodeAndPredicate',

    # Operations
    'ReuseNearNodePolicy',
    'reuse_existing_nodes',
    'reuse_near_nodes',
    'connect_existing_touching_nodes',
    'ClipAreas',
    'ClipAreasSettings',
    'MergeIdenticalWays',
]
