# magpie/assets/resolver.py
import logging
from typing import Dict, List, Optional, Tuple

from magpie.assets.extractors import Extractor, lookup_format
from magpie.assets.gateway import CancelToken, FetchGatewayAdapter
from magpie.assets.paths import (
    extension_of,
    normalize_base,
    parent_dir,
    scope_path,
)
from magpie.assets.types import (
    AssetKind,
    AssetReference,
    DependencyClosure,
    DependencyStatus,
    FileId,
    ResolvedDependency,
)

logger = logging.getLogger(__name__)

# A reference paired with the directory of the file it was found in
PendingRef = Tuple[AssetReference, str]


class DependencyResolver:
    """
    Builds the dependency closure of a primary model file.

    References are scoped to the primary's directory, deduplicated by
    normalized path, and fetched one level at a time: first whatever the
    primary references, then the textures of any material that fetched.
    """

    def __init__(self, adapter: FetchGatewayAdapter, max_depth: int = 2):
        if max_depth < 0:
            raise ValueError("max_depth must not be negative")
        self.adapter = adapter
        self.max_depth = max_depth

    def load(
        self,
        file_id: FileId,
        filename: str,
        base_path: str = "",
        cancel: Optional[CancelToken] = None,
    ) -> DependencyClosure:
        """
        Fetch the primary file and resolve its dependencies.
        Raises PrimaryFetchFailed if the primary cannot be fetched.
        """
        fmt = extension_of(filename)
        lookup_format(fmt)  # Unknown formats fail before any fetch

        logger.info(
            "Loading %s (id %s) with dependencies from %r",
            filename,
            file_id,
            base_path,
        )
        primary = self.adapter.fetch_primary(file_id, cancel)
        return self.resolve(primary, fmt, base_path, cancel)

    def resolve(
        self,
        primary: bytes,
        fmt: str,
        base_path: str = "",
        cancel: Optional[CancelToken] = None,
    ) -> DependencyClosure:
        entry = lookup_format(fmt)
        fmt = fmt.lower().lstrip(".")
        base = normalize_base(base_path)

        if entry.top_level is None:
            logger.info("%s is a single-file format", fmt)
            return DependencyClosure(primary=primary, format=fmt)

        resolved: Dict[str, ResolvedDependency] = {}
        rejected: List[str] = []
        cancelled = False

        level: List[PendingRef] = [
            (ref, base) for ref in _extract(entry.top_level, primary)
        ]
        depth = 1

        while level and depth <= self.max_depth:
            scoped = self._scope(level, base, resolved, rejected)
            outcomes = self.adapter.fetch_all(
                [path for _, path in scoped], cancel
            )

            next_level: List[PendingRef] = []
            for ref, path in scoped:
                outcome = outcomes[path]
                fetched = outcome.status is DependencyStatus.FETCHED
                dep = ResolvedDependency(
                    reference=ref,
                    absolute_path=path,
                    data=outcome.data if fetched else None,
                    status=outcome.status,
                    error=outcome.error,
                    from_cache=outcome.from_cache,
                )
                resolved[path] = dep

                if (
                    dep.ok
                    and ref.kind is AssetKind.MATERIAL
                    and entry.second_level is not None
                    and depth < self.max_depth
                ):
                    ref_dir = parent_dir(path)
                    next_level.extend(
                        (child, ref_dir)
                        for child in _extract(entry.second_level, dep.data)
                    )

            if cancel is not None and cancel.cancelled:
                logger.info("Resolution cancelled at depth %d", depth)
                cancelled = True
                break

            level = next_level
            depth += 1

        if level and depth > self.max_depth:
            logger.debug(
                "Not following %d references past depth %d",
                len(level),
                self.max_depth,
            )

        closure = DependencyClosure(
            primary=primary,
            format=fmt,
            dependencies=tuple(resolved.values()),
            cancelled=cancelled,
            rejected=tuple(rejected),
        )
        logger.info(
            "Resolved %d dependencies (%d fetched)",
            len(closure.dependencies),
            len(closure.fetched()),
        )
        return closure

    def _scope(
        self,
        level: List[PendingRef],
        base: str,
        resolved: Dict[str, ResolvedDependency],
        rejected: List[str],
    ) -> List[Tuple[AssetReference, str]]:
        """
        Normalize, drop anything outside `base`, and skip paths already
        resolved or queued. Must run before anything is fetched.
        """
        scoped: List[Tuple[AssetReference, str]] = []
        queued = set()

        for ref, ref_dir in level:
            path = scope_path(base, ref_dir, ref.path)
            if path is None:
                logger.warning(
                    "Rejected dependency path outside %r: %r",
                    base or "/",
                    ref.path,
                )
                rejected.append(ref.path)
                continue

            if path in resolved or path in queued:
                continue
            queued.add(path)
            scoped.append((ref, path))

        return scoped


def _extract(
    extractor: Extractor, data: Optional[bytes]
) -> List[AssetReference]:
    if not data:
        return []
    return extractor(data.decode("utf-8-sig", errors="replace"))
