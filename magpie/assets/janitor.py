# magpie/assets/janitor.py
import logging
import threading
from typing import Optional

from magpie.assets.cache import CacheStore
from magpie.assets.errors import CacheUnavailable

logger = logging.getLogger(__name__)


class CacheJanitor:
    """
    Background thread that sweeps expired entries out of a CacheStore
    every `interval` seconds, independent of reads.
    """

    def __init__(self, store: CacheStore, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")

        self.store = store
        self.interval = interval
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="CacheJanitor", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def sweep_now(self) -> int:
        try:
            return self.store.clear_expired()
        except CacheUnavailable:
            logger.debug("Cache unavailable, skipping sweep")
            return 0

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            self.sweep_now()

    def __enter__(self) -> "CacheJanitor":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.stop()
