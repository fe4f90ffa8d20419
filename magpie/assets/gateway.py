# magpie/assets/gateway.py
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Protocol

from magpie.assets.cache import CacheStore
from magpie.assets.errors import (
    CacheUnavailable,
    DependencyMissing,
    FetchCancelled,
    GatewayError,
    PathTraversalRejected,
    PrimaryFetchFailed,
)
from magpie.assets.types import (
    CacheEntry,
    DependencyStatus,
    FetchedFile,
    FetchOutcome,
    FileId,
    Marker,
)

logger = logging.getLogger(__name__)

CANCELLED = "cancelled"


class CancelToken:
    """
    Cooperative cancellation flag shared by every fetch of one load.
    Cancelling twice is a no-op.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: List[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> bool:
        """Returns False when the token was already cancelled."""
        with self._lock:
            if self._event.is_set():
                return False
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []

        for callback in callbacks:
            callback()
        return True

    def add_callback(self, callback: Callable[[], None]) -> None:
        """Run `callback` on cancellation (immediately if already cancelled)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._event.wait(timeout)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise FetchCancelled(CANCELLED)


class SecureFileGateway(Protocol):
    """
    The authorization-gated file service. Enforces auth, ownership and
    directory scope; this package only orchestrates calls to it.
    """

    def fetch_by_id(self, file_id: FileId) -> bytes:
        """Fetch a primary file. Raises GatewayError."""
        ...

    def stat_path(self, path: str) -> Marker:
        """Current modification marker. Raises DependencyMissing."""
        ...

    def fetch_by_path(
        self, path: str, cancel: Optional[CancelToken] = None
    ) -> FetchedFile:
        """
        Fetch a dependency scoped to the primary's directory.
        Raises DependencyMissing, GatewayError or PathTraversalRejected.
        """
        ...


@dataclass
class _InFlight:
    token: CancelToken
    future: "Future[FetchOutcome]"
    waiters: int = 1


def _settled(outcome: FetchOutcome) -> "Future[FetchOutcome]":
    future: "Future[FetchOutcome]" = Future()
    future.set_result(outcome)
    return future


class FetchGatewayAdapter:
    """
    Wraps a SecureFileGateway with a cache-first lookup and single-flight
    de-duplication: concurrent requests for one path share one gateway call.
    """

    def __init__(
        self,
        gateway: SecureFileGateway,
        cache: Optional[CacheStore] = None,
        executor: Optional[ThreadPoolExecutor] = None,
        max_workers: int = 8,
        poll_interval: float = 0.05,
    ) -> None:
        self.gateway = gateway
        self.cache = cache
        self.poll_interval = poll_interval

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="FetchWorker"
        )

        self._lock = threading.Lock()
        self._inflight: Dict[str, _InFlight] = {}

    def fetch_primary(
        self, file_id: FileId, cancel: Optional[CancelToken] = None
    ) -> bytes:
        """Fetch the primary file. Any failure is fatal for the load."""
        if cancel is not None and cancel.cancelled:
            raise PrimaryFetchFailed(file_id, CANCELLED)

        future = self._executor.submit(self.gateway.fetch_by_id, file_id)
        while not future.done():
            if cancel is not None and cancel.cancelled:
                future.cancel()
                raise PrimaryFetchFailed(file_id, CANCELLED)
            wait([future], timeout=self.poll_interval)

        try:
            return future.result()
        except GatewayError as e:
            logger.error("Failed to fetch primary file %s: %s", file_id, e)
            raise PrimaryFetchFailed(file_id, str(e)) from e

    def submit(
        self, path: str, cancel: Optional[CancelToken] = None
    ) -> "Future[FetchOutcome]":
        """
        Start (or join) the fetch for `path`. The returned future never
        raises; failures are reported through FetchOutcome.status.
        """
        if cancel is not None and cancel.cancelled:
            return _settled(
                FetchOutcome(status=DependencyStatus.FAILED, error=CANCELLED)
            )

        with self._lock:
            flight = self._inflight.get(path)
            if flight is not None and not flight.token.cancelled:
                flight.waiters += 1
                logger.debug("Joining in-flight fetch for %s", path)
                return flight.future

            token = CancelToken()
            future = self._executor.submit(self._fetch, path, token)
            flight = _InFlight(token=token, future=future)
            self._inflight[path] = flight

        flight.future.add_done_callback(lambda _: self._forget(path, flight))
        return flight.future

    def release(self, path: str, future: "Future[FetchOutcome]") -> None:
        """
        A waiter gave up on `future`. The gateway call is aborted once
        every waiter has released it.
        """
        with self._lock:
            flight = self._inflight.get(path)
            if flight is None or flight.future is not future:
                return
            flight.waiters -= 1
            if flight.waiters > 0:
                return
            # Later submits must start a fresh fetch, not join this one
            flight.token.cancel()
            del self._inflight[path]

        logger.info("Aborting fetch for %s", path)
        future.cancel()

    def fetch_all(
        self, paths: Iterable[str], cancel: Optional[CancelToken] = None
    ) -> Dict[str, FetchOutcome]:
        """
        Fetch every path concurrently and wait until all settle. One
        failure never cancels its siblings. On cancellation, whatever has
        not settled yet is reported as FAILED.
        """
        futures = {path: self.submit(path, cancel) for path in paths}

        pending = set(futures.values())
        while pending:
            if cancel is not None and cancel.cancelled:
                break
            _, pending = wait(
                pending, timeout=self.poll_interval, return_when=FIRST_COMPLETED
            )

        outcomes: Dict[str, FetchOutcome] = {}
        for path, future in futures.items():
            if future.done() and not future.cancelled():
                outcomes[path] = future.result()
            else:
                self.release(path, future)
                outcomes[path] = FetchOutcome(
                    status=DependencyStatus.FAILED, error=CANCELLED
                )
        return outcomes

    def in_flight(self) -> int:
        with self._lock:
            return len(self._inflight)

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True, cancel_futures=True)

    def _forget(self, path: str, flight: _InFlight) -> None:
        with self._lock:
            if self._inflight.get(path) is flight:
                del self._inflight[path]

    def _fetch(self, path: str, token: CancelToken) -> FetchOutcome:
        """
        Runs on a worker thread.
        """
        try:
            token.raise_if_cancelled()
            marker = self.gateway.stat_path(path)

            entry = self._cache_get(CacheStore.make_key(path, marker))
            if entry is not None:
                logger.info("Using cached dependency %s", path)
                return FetchOutcome(
                    status=DependencyStatus.FETCHED,
                    data=entry.data,
                    marker=marker,
                    from_cache=True,
                )

            token.raise_if_cancelled()
            logger.info("Fetching %s from gateway", path)
            fetched = self.gateway.fetch_by_path(path, cancel=token)
            self._cache_put(path, fetched)

            return FetchOutcome(
                status=DependencyStatus.FETCHED,
                data=fetched.data,
                marker=fetched.marker,
            )
        except FetchCancelled:
            return FetchOutcome(status=DependencyStatus.FAILED, error=CANCELLED)
        except DependencyMissing as e:
            logger.warning("Dependency not found: %s", path)
            return FetchOutcome(status=DependencyStatus.MISSING, error=str(e))
        except PathTraversalRejected as e:
            logger.warning("Gateway rejected out-of-scope path %s", path)
            return FetchOutcome(status=DependencyStatus.FAILED, error=str(e))
        except GatewayError as e:
            logger.warning("Failed to fetch %s: %s", path, e)
            return FetchOutcome(status=DependencyStatus.FAILED, error=str(e))
        except Exception as e:
            logger.exception("Unexpected error fetching %s", path)
            return FetchOutcome(status=DependencyStatus.FAILED, error=repr(e))

    def _cache_get(self, key: str) -> Optional[CacheEntry]:
        if self.cache is None:
            return None
        try:
            return self.cache.get(key)
        except CacheUnavailable as e:
            logger.warning("Cache read failed, fetching from gateway: %s", e)
            return None

    def _cache_put(self, path: str, fetched: FetchedFile) -> None:
        if self.cache is None:
            return
        try:
            self.cache.put(path, fetched.data, marker=fetched.marker)
        except CacheUnavailable as e:
            logger.warning("Cache write failed for %s: %s", path, e)
