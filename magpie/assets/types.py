# magpie/assets/types.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, NewType, Optional, Tuple

from magpie.assets.errors import DependencyFetchFailed, DependencyMissing

FileId = NewType("FileId", int)
Marker = str  # Opaque freshness token: mtime, ETag, ...


class AssetKind(str, Enum):
    MATERIAL = "material"
    TEXTURE = "texture"
    BUFFER = "buffer"


class DependencyStatus(str, Enum):
    FETCHED = "fetched"
    MISSING = "missing"
    FAILED = "failed"


class LoadVerdict(str, Enum):
    FULL_SUCCESS = "full_success"
    PARTIAL_SUCCESS = "partial_success"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class AssetReference:
    """A relative, unresolved path found inside a model or material file."""

    path: str
    kind: AssetKind


@dataclass(frozen=True, slots=True)
class ResolvedDependency:
    reference: AssetReference
    absolute_path: str
    data: Optional[bytes]  # None unless status is FETCHED
    status: DependencyStatus
    error: Optional[str] = None
    from_cache: bool = False

    @property
    def ok(self) -> bool:
        return self.status is DependencyStatus.FETCHED

    def require(self) -> bytes:
        """Return the fetched bytes, or raise the error this entry records."""
        if self.data is not None and self.ok:
            return self.data
        reason = self.error or self.status.value
        if self.status is DependencyStatus.MISSING:
            raise DependencyMissing(f"{self.absolute_path}: {reason}")
        raise DependencyFetchFailed(f"{self.absolute_path}: {reason}")


@dataclass(frozen=True, slots=True)
class DependencyClosure:
    """
    Primary file plus every secondary file it needs.
    Dependencies are unique by absolute_path.
    """

    primary: bytes
    format: str
    dependencies: Tuple[ResolvedDependency, ...] = ()
    cancelled: bool = False
    rejected: Tuple[str, ...] = ()  # Reference paths dropped as out of scope

    def fetched(self) -> List[ResolvedDependency]:
        return [d for d in self.dependencies if d.ok]

    def missing_paths(self) -> List[str]:
        return [d.absolute_path for d in self.dependencies if not d.ok]

    def by_path(self, absolute_path: str) -> Optional[ResolvedDependency]:
        for dep in self.dependencies:
            if dep.absolute_path == absolute_path:
                return dep
        return None


@dataclass(frozen=True, slots=True)
class CacheEntry:
    key: str
    data: bytes
    size_bytes: int
    stored_at: float
    expires_at: float
    last_read: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at <= now


@dataclass(frozen=True, slots=True)
class CacheStats:
    total_bytes: int
    entry_count: int
    expired_count: int = 0


@dataclass(frozen=True, slots=True)
class LoadResult:
    verdict: LoadVerdict
    closure: DependencyClosure

    def missing_paths(self) -> List[str]:
        return self.closure.missing_paths()


@dataclass(frozen=True, slots=True)
class FetchedFile:
    """What the gateway returns for a dependency fetch."""

    data: bytes
    marker: Marker


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    status: DependencyStatus
    data: Optional[bytes] = None
    marker: Optional[Marker] = None
    error: Optional[str] = None
    from_cache: bool = False
