"""Reconciliation pipeline: from a point of interest to a committed parcel.

The pipeline fetches one parcel record, builds it inside a fresh
:class:`~parceltrace.edit.editor.WayEditor` and runs a fixed sequence of
steps over an explicit :class:`TraceContext`. Every step returns a
:class:`StepResult`; the sequence is recorded in the context history.

Aborts raise :class:`~parceltrace.core.errors.TraceAbort`. The pipeline
catches them, discards the edit session and reports the failure state with
a notification, so the dataset only ever sees complete traces.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from loguru import logger

from ..config import TraceSettings
from ..core.errors import RetraceAmbiguous, TraceAbort
from ..core.geodesy import LatLon
from ..core.types import TraceState
from ..edit.dataset import MapDataset
from ..edit.editor import WayEditor
from ..edit.elements import EdMultipolygon, EdObject, EdWay
from .bounds import ensure_inside_data_source_bounds
from .builder import create_traced_object
from .fetch import RecordFetcher, fetch_record
from .nodes import connect_touching_nodes, reconcile_nodes
from .orchestrate import clip_overlapping_areas, merge_duplicate_ways
from .record import ParcelRecord
from .retrace import RetraceResolver, check_retrace_supported
from .tagging import tag_traced_object

RETRACE_AMBIGUOUS_MESSAGE = "Multiple existing LPIS polygons found, retrace is not possible."

TraceStep = Callable[["TraceContext"], "StepResult"]


@dataclass
class StepResult:
    """Outcome of running a single pipeline step."""

    state: TraceState
    changed: bool
    message: str = ""


@dataclass
class TraceContext:
    """State threaded through the steps of one trace."""

    point: LatLon
    record: ParcelRecord
    editor: WayEditor
    settings: TraceSettings
    notifications: List[str] = field(default_factory=list)
    retrace: Optional[EdObject] = None
    outer_way: Optional[EdWay] = None
    multipolygon: Optional[EdMultipolygon] = None
    history: List[StepResult] = field(default_factory=list)

    @property
    def traced_object(self) -> EdObject:
        """The multipolygon if one was built, the outer way otherwise."""
        if self.multipolygon is not None:
            return self.multipolygon
        return self.outer_way


@dataclass
class TraceResult:
    """Final outcome of a trace.

    Attributes:
        state: DONE or the terminal failure state
        notifications: User-facing messages collected during the run
        feature_id: Dataset id of the traced feature, None on failure
        feature_type: 'way' or 'multipolygon', None on failure
        history: Steps that completed, in order, ending with DONE or
            the failure state
    """

    state: TraceState
    notifications: List[str] = field(default_factory=list)
    feature_id: Optional[int] = None
    feature_type: Optional[str] = None
    history: List[StepResult] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.state is TraceState.DONE


# ----------------------------------------------------------------------
# Steps


def build_geometry_step(ctx: TraceContext) -> StepResult:
    if ctx.settings.perform_retrace:
        resolver = RetraceResolver(ctx.settings.retrace_match, ctx.settings.source)
        result = resolver.find(ctx.editor, ctx.point, ctx.record.ref)
        if result.is_ambiguous:
            raise RetraceAmbiguous(RETRACE_AMBIGUOUS_MESSAGE)
        ctx.retrace = result.candidate

    ctx.outer_way, ctx.multipolygon = create_traced_object(ctx.editor, ctx.record)
    return StepResult(TraceState.GEOMETRY_BUILT, True, f"built {ctx.traced_object!r}")


def bounds_step(ctx: TraceContext) -> StepResult:
    ensure_inside_data_source_bounds(ctx.traced_object, ctx.retrace, ctx.settings.oversize_meters)
    return StepResult(TraceState.BOUNDS_CHECKED, False)


def nodes_step(ctx: TraceContext) -> StepResult:
    reused = reconcile_nodes(ctx.traced_object, ctx.retrace, ctx.settings)
    return StepResult(TraceState.NODES_RECONCILED, reused > 0, f"{reused} nodes reused")


def retrace_step(ctx: TraceContext) -> StepResult:
    if ctx.retrace is None:
        return StepResult(TraceState.RETRACED, False, "nothing to retrace")

    retrace_way = check_retrace_supported(ctx.retrace, ctx.multipolygon)
    new_way = ctx.outer_way
    retrace_way.set_nodes(new_way.get_nodes())
    ctx.editor.delete(new_way)
    ctx.outer_way = retrace_way
    logger.info(f"Retraced {retrace_way!r}")
    return StepResult(TraceState.RETRACED, True, f"retraced {retrace_way!r}")


def tag_step(ctx: TraceContext) -> StepResult:
    tag_traced_object(ctx.traced_object, ctx.record, ctx.settings.source)
    return StepResult(TraceState.TAGGED, True)


def connect_step(ctx: TraceContext) -> StepResult:
    connected = connect_touching_nodes(ctx.traced_object, ctx.settings)
    return StepResult(TraceState.TOUCHING_NODES_CONNECTED, connected > 0, f"{connected} nodes connected")


def clip_step(ctx: TraceContext) -> StepResult:
    clipped = clip_overlapping_areas(ctx.editor, ctx.outer_way, ctx.settings, ctx.notifications)
    return StepResult(TraceState.CLIPPED, bool(clipped), f"{len(clipped)} areas clipped")


def merge_step(ctx: TraceContext) -> StepResult:
    merged = merge_duplicate_ways(ctx.editor, ctx.outer_way, ctx.settings, ctx.notifications)
    changed = merged is not ctx.outer_way
    ctx.outer_way = merged
    return StepResult(TraceState.MERGED, changed)


def default_steps(settings: TraceSettings) -> List[TraceStep]:
    """Steps in their mandatory order, optional ones according to ``settings``."""
    steps: List[TraceStep] = [
        build_geometry_step,
        bounds_step,
        nodes_step,
    ]
    if settings.perform_retrace:
        steps.append(retrace_step)
    steps += [tag_step, connect_step]
    if settings.perform_clipping:
        steps.append(clip_step)
    if settings.perform_way_merging:
        steps.append(merge_step)
    return steps


def run_steps(ctx: TraceContext, steps: List[TraceStep]) -> List[StepResult]:
    """Run ``steps`` in order, recording each result in ``ctx.history``."""
    for step in steps:
        result = step(ctx)
        ctx.history.append(result)
        logger.debug(f"{result.state.value}: {result.message or 'ok'}")
    return ctx.history


# ----------------------------------------------------------------------
# Pipeline


class ReconciliationPipeline:
    """Trace LPIS parcels into a map dataset.

    Args:
        fetcher: Source of parcel records
        settings: Switches and tolerances, defaults to ``TraceSettings()``

    Examples:
        >>> pipeline = ReconciliationPipeline(fetcher)
        >>> result = pipeline.trace(dataset, LatLon(49.5, 15.2))
        >>> result.state
        <TraceState.DONE: 'done'>
        >>> dataset.ways[result.feature_id].tags['ref']
        '12345'
    """

    def __init__(self, fetcher: RecordFetcher, settings: Optional[TraceSettings] = None):
        self.fetcher = fetcher
        self.settings = settings if settings is not None else TraceSettings()

    def trace(
        self,
        dataset: MapDataset,
        point: LatLon,
        cancel_event: Optional[threading.Event] = None,
    ) -> TraceResult:
        """Trace the parcel at ``point`` into ``dataset``.

        Args:
            dataset: Map data to edit; changed only when the trace succeeds
            point: Point of interest
            cancel_event: Set it to abandon the download

        Returns:
            TraceResult with state DONE, or the failure state and its notification

        Raises:
            GeometryInvalid: The record holds a ring with fewer than 3 vertices
        """
        notifications: List[str] = []
        logger.info(f"Tracing parcel at {point}")

        history: List[StepResult] = []
        try:
            record = fetch_record(self.fetcher, point, cancel_event)
        except TraceAbort as exc:
            return self._aborted(exc, notifications, history)
        history.append(StepResult(TraceState.FETCHING, True, f"fetched parcel {record.ref}"))

        logger.debug(f"Fetched parcel {record.ref} ({record.usage})")
        editor = WayEditor(dataset)
        ctx = TraceContext(
            point=point,
            record=record,
            editor=editor,
            settings=self.settings,
            notifications=notifications,
            history=history,
        )

        try:
            run_steps(ctx, default_steps(self.settings))
        except TraceAbort as exc:
            editor.discard()
            return self._aborted(exc, notifications, ctx.history)
        except Exception:
            editor.discard()
            raise

        feature = ctx.traced_object
        id_map = editor.commit()
        feature_id = id_map.get(feature.id, feature.id)
        ctx.history.append(StepResult(TraceState.DONE, True))
        logger.info(f"Traced parcel {record.ref} as {feature.kind} {feature_id}")
        return TraceResult(
            state=TraceState.DONE,
            notifications=notifications,
            feature_id=feature_id,
            feature_type=feature.kind,
            history=ctx.history,
        )

    def _aborted(self, exc: TraceAbort, notifications: List[str], history: List[StepResult]) -> TraceResult:
        notifications.append(exc.message)
        history.append(StepResult(exc.state, False, exc.message))
        logger.warning(f"Trace aborted ({exc.state.value}): {exc.message}")
        return TraceResult(state=exc.state, notifications=notifications, history=history)


__all__ = [
    'RETRACE_AMBIGUOUS_MESSAGE',
    'TraceStep',
    'StepResult',
    'TraceContext',
    'TraceResult',
    'default_steps',
    'run_steps',
    'ReconciliationPipeline',
]
