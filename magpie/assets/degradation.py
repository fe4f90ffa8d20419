# magpie/assets/degradation.py
import logging
from typing import Callable

from magpie.assets.errors import PrimaryFetchFailed
from magpie.assets.types import DependencyClosure, LoadResult, LoadVerdict

logger = logging.getLogger(__name__)


def classify(closure: DependencyClosure) -> LoadVerdict:
    """
    FULL_SUCCESS when every dependency fetched, PARTIAL_SUCCESS when any
    is missing or failed, or when the load was cancelled part way.
    A closure only exists once the primary fetched, so it is never FAILED.
    """
    if closure.cancelled:
        return LoadVerdict.PARTIAL_SUCCESS
    if all(dep.ok for dep in closure.dependencies):
        return LoadVerdict.FULL_SUCCESS
    return LoadVerdict.PARTIAL_SUCCESS


def coordinate(resolve: Callable[[], DependencyClosure]) -> LoadResult:
    """
    Run a resolution and turn its closure into a LoadResult.
    PrimaryFetchFailed is the only error that propagates.
    """
    try:
        closure = resolve()
    except PrimaryFetchFailed:
        logger.error("Load failed: primary file unavailable")
        raise

    verdict = classify(closure)
    missing = closure.missing_paths()
    if missing:
        logger.warning("Missing files, using defaults: %s", missing)
    if closure.rejected:
        logger.warning("Dropped out-of-scope references: %s", closure.rejected)

    logger.info(
        "Load finished: %s (%d/%d dependencies)",
        verdict.value,
        len(closure.fetched()),
        len(closure.dependencies),
    )
    return LoadResult(verdict=verdict, closure=closure)
