# magpie/assets/settings.py
from dataclasses import dataclass, field

MIB = 1024 * 1024
DAY_SECONDS = 24 * 60 * 60


@dataclass(slots=True)
class CacheSettings:
    """
    Resource: Controls the dependency cache budget and freshness.
    """

    max_bytes: int = 100 * MIB  # Total byte budget
    max_entry_bytes: int = 10 * MIB  # Larger files are never cached
    ttl_seconds: float = 7 * DAY_SECONDS
    sweep_interval_seconds: float = 600.0
    enabled: bool = True

    def __post_init__(self) -> None:
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if self.ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")


@dataclass(slots=True)
class ResolverSettings:
    max_depth: int = 2  # primary -> material -> texture
    max_workers: int = 8
    cancel_poll_seconds: float = 0.05


@dataclass(slots=True)
class AssetSettings:
    """
    Resource: The master configuration object for the asset server.
    """

    cache: CacheSettings = field(default_factory=CacheSettings)
    resolver: ResolverSettings = field(default_factory=ResolverSettings)
