"""Record fetching on a background worker.

Fetching is the only blocking step of a trace. It runs on a single worker
thread while the caller waits and can cancel the wait through an event.
Once cancelled the trace stops before any geometry exists.
"""

from __future__ import annotations

import concurrent.futures
import threading
from typing import Optional, Protocol

from loguru import logger

from ..core.errors import FetchFailure, TraceCancelled
from ..core.geodesy import LatLon
from .record import ParcelRecord


class RecordFetcher(Protocol):
    """Source of parcel records.

    Implementations raise :class:`~parceltrace.core.errors.FetchFailure` with a
    human readable message when no record can be delivered.
    """

    def fetch(self, point: LatLon) -> ParcelRecord:
        ...


def fetch_record(
    fetcher: RecordFetcher,
    point: LatLon,
    cancel_event: Optional[threading.Event] = None,
    poll_interval: float = 0.05,
) -> ParcelRecord:
    """Fetch the record for ``point`` on a worker thread.

    Args:
        fetcher: Record source
        point: Position of interest
        cancel_event: Set it to stop waiting for the record
        poll_interval: Seconds between cancellation checks

    Returns:
        The fetched record

    Raises:
        FetchFailure: The fetcher failed; other exceptions are wrapped
        TraceCancelled: ``cancel_event`` was set before the record arrived
    """
    executor = concurrent.futures.ThreadPoolExecutor(max_workers=1, thread_name_prefix='parcel-fetch')
    try:
        future = executor.submit(fetcher.fetch, point)
        while True:
            if cancel_event is not None and cancel_event.is_set():
                future.cancel()
                logger.info(f"Fetch for {point} cancelled")
                raise TraceCancelled("Tracing was cancelled while downloading the parcel.")
            done, _ = concurrent.futures.wait([future], timeout=poll_interval)
            if not done:
                continue
            try:
                record = future.result()
            except FetchFailure:
                raise
            except Exception as exc:
                raise FetchFailure(f"Downloading the parcel failed: {exc}") from exc
            if record is None:
                raise FetchFailure(f"No parcel found at {point.lat:.6f}, {point.lon:.6f}.")
            return record
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


__all__ = [
    'RecordFetcher',
    'fetch_record',
]
