"""Shared fixtures for parceltrace tests."""

import threading

import pytest

from parceltrace.core.geodesy import BBox, LatLon
from parceltrace.edit import MapDataset

ORIGIN = LatLon(49.8, 15.4)


class StaticFetcher:
    """Record fetcher returning a fixed record or raising a fixed error."""

    def __init__(self, record=None, error=None, release=None):
        self.record = record
        self.error = error
        self.release = release
        self.calls = []

    def fetch(self, point):
        self.calls.append(point)
        if self.release is not None:
            self.release.wait(5.0)
        if self.error is not None:
            raise self.error
        return self.record


@pytest.fixture
def origin():
    return ORIGIN


@pytest.fixture
def dataset():
    """Empty dataset with roughly 1 km of downloaded data around the origin."""
    return MapDataset([BBox(ORIGIN.lat - 0.01, ORIGIN.lon - 0.015, ORIGIN.lat + 0.01, ORIGIN.lon + 0.015)])


@pytest.fixture
def fetcher_factory():
    return StaticFetcher


@pytest.fixture
def release_event():
    event = threading.Event()
    yield event
    event.set()
