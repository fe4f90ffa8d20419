import threading
from collections import Counter
from typing import Dict, Optional

import pytest

from magpie.assets.cache import CacheStore
from magpie.assets.errors import (
    DependencyMissing,
    FetchCancelled,
    GatewayError,
)
from magpie.assets.gateway import CancelToken, FetchGatewayAdapter
from magpie.assets.settings import CacheSettings
from magpie.assets.types import FetchedFile


class FakeClock:
    def __init__(self, now: float = 1000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeGateway:
    """
    In-memory SecureFileGateway that counts calls.
    Set `gate` to hold every fetch_by_path until the event is set.
    """

    def __init__(
        self,
        files: Optional[Dict[str, bytes]] = None,
        primaries: Optional[Dict[int, bytes]] = None,
    ) -> None:
        self.files: Dict[str, bytes] = dict(files or {})
        self.primaries: Dict[int, bytes] = dict(primaries or {})
        self.markers: Dict[str, str] = {}
        self.failing: set = set()
        self.gate: Optional[threading.Event] = None

        self.fetch_calls: Counter = Counter()
        self.stat_calls: Counter = Counter()
        self.primary_calls = 0
        self.aborted: list = []
        self._lock = threading.Lock()

    def fetch_by_id(self, file_id: int) -> bytes:
        with self._lock:
            self.primary_calls += 1
        if file_id not in self.primaries:
            raise GatewayError(f"404 for file {file_id}")
        return self.primaries[file_id]

    def stat_path(self, path: str) -> str:
        with self._lock:
            self.stat_calls[path] += 1
        if path not in self.files:
            raise DependencyMissing(path)
        return self.markers.get(path, "v1")

    def fetch_by_path(
        self, path: str, cancel: Optional[CancelToken] = None
    ) -> FetchedFile:
        with self._lock:
            self.fetch_calls[path] += 1

        if self.gate is not None:
            while not self.gate.wait(0.01):
                if cancel is not None and cancel.cancelled:
                    with self._lock:
                        self.aborted.append(path)
                    raise FetchCancelled(path)

        if path in self.failing:
            raise GatewayError(f"500 for {path}")
        if path not in self.files:
            raise DependencyMissing(path)
        return FetchedFile(
            data=self.files[path], marker=self.markers.get(path, "v1")
        )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    """Returns a fresh, empty FakeGateway for each test."""
    return FakeGateway()


@pytest.fixture
def cache(clock):
    settings = CacheSettings(
        max_bytes=1024, max_entry_bytes=512, ttl_seconds=60.0
    )
    return CacheStore(settings, clock=clock)


@pytest.fixture
def adapter(gateway, cache):
    adapter = FetchGatewayAdapter(
        gateway, cache=cache, max_workers=4, poll_interval=0.01
    )
    yield adapter
    if gateway.gate is not None:
        gateway.gate.set()
    adapter.close()
