"""LPIS parcel tracing.

Records, fetching and the reconciliation pipeline with its steps: retrace
search, bounds check, node reconciliation, tagging, clipping and merging.
"""

from .record import USAGE_TAGS, ParcelRecord, usage_tags
from .fetch import RecordFetcher, fetch_record
from .builder import create_traced_object
from .retrace import RetraceResolver, RetraceResult, check_retrace_supported, resolve_retrace_candidate
from .bounds import check_inside_data_source_bounds, ensure_inside_data_source_bounds
from .nodes import ReuseLanduseNearNodes, connect_touching_nodes, landuse_node_filter, reconcile_nodes
from .tagging import tag_traced_object
from .orchestrate import clip_overlapping_areas, merge_duplicate_ways
from .pipeline import ReconciliationPipeline, StepResult, TraceContext, TraceResult

__all__ = [
    # Records
    'USAGE_TAGS',
    'ParcelRecord',
    'usage_tags',
    'RecordFetcher',
    'fetch_record',

    # Steps
    'create_traced_object',
    'RetraceResolver',
    'RetraceResult',
    'resolve_retrace_candidate',
    'check_retrace_supported',
    'check_inside_data_source_bounds',
    'ensure_inside_data_source_bounds',
    'ReuseLanduseNearNodes',
    'landuse_node_filter',
    'reconcile_nodes',
    'connect_touching_nodes',
    'tag_traced_object',
    'clip_overlapping_areas',
    'merge_duplicate_ways',

    # Pipeline
    'ReconciliationPipeline',
    'StepResult',
    'TraceContext',
    'TraceResult',
]
