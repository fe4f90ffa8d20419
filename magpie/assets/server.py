# magpie/assets/server.py
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional, Tuple

from magpie.assets.cache import CacheStore
from magpie.assets.degradation import coordinate
from magpie.assets.gateway import (
    CancelToken,
    FetchGatewayAdapter,
    SecureFileGateway,
)
from magpie.assets.janitor import CacheJanitor
from magpie.assets.resolver import DependencyResolver
from magpie.assets.settings import AssetSettings
from magpie.assets.types import FileId, LoadResult


class AssetServer:
    """
    Entry point for loading a model together with its dependency closure.
    Owns the cache, its sweeper and the fetch workers.
    """

    def __init__(
        self,
        gateway: SecureFileGateway,
        settings: Optional[AssetSettings] = None,
        cache: Optional[CacheStore] = None,
    ) -> None:
        self.settings = settings or AssetSettings()
        self.cache = cache or CacheStore(self.settings.cache)

        resolver_settings = self.settings.resolver
        self._fetch_executor = ThreadPoolExecutor(
            max_workers=resolver_settings.max_workers,
            thread_name_prefix="FetchWorker",
        )
        # Separate pool so a waiting load never starves its own fetches
        self._load_executor = ThreadPoolExecutor(
            max_workers=2, thread_name_prefix="AssetWorker"
        )

        self.adapter = FetchGatewayAdapter(
            gateway,
            cache=self.cache,
            executor=self._fetch_executor,
            poll_interval=resolver_settings.cancel_poll_seconds,
        )
        self.resolver = DependencyResolver(
            self.adapter, max_depth=resolver_settings.max_depth
        )

        self.janitor = CacheJanitor(
            self.cache, self.settings.cache.sweep_interval_seconds
        )
        if self.cache.enabled:
            self.janitor.sweep_now()
            self.janitor.start()

    def load(
        self,
        file_id: FileId,
        filename: str,
        base_path: str = "",
        cancel: Optional[CancelToken] = None,
    ) -> LoadResult:
        """
        Blocking load. Raises PrimaryFetchFailed when the model itself
        cannot be fetched; every other problem is reported in the result.
        """
        return coordinate(
            lambda: self.resolver.load(file_id, filename, base_path, cancel)
        )

    def load_async(
        self, file_id: FileId, filename: str, base_path: str = ""
    ) -> Tuple["Future[LoadResult]", CancelToken]:
        """
        Non-blocking load request. Return the pending result and the token
        that cancels it.
        """
        cancel = CancelToken()
        future = self._load_executor.submit(
            self.load, file_id, filename, base_path, cancel
        )
        return future, cancel

    def close(self) -> None:
        self.janitor.stop()
        self._load_executor.shutdown(wait=True, cancel_futures=True)
        self._fetch_executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> "AssetServer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
