# magpie/assets/__init__.py
from magpie.assets.cache import CacheStore
from magpie.assets.degradation import classify, coordinate
from magpie.assets.errors import (
    AssetError,
    CacheUnavailable,
    DependencyFetchFailed,
    DependencyMissing,
    FetchCancelled,
    GatewayError,
    PathTraversalRejected,
    PrimaryFetchFailed,
    UnsupportedFormat,
)
from magpie.assets.extractors import (
    FORMATS,
    FormatEntry,
    extract_gltf_references,
    extract_mtl_references,
    extract_obj_references,
    lookup_format,
    register_format,
)
from magpie.assets.gateway import (
    CancelToken,
    FetchGatewayAdapter,
    SecureFileGateway,
)
from magpie.assets.janitor import CacheJanitor
from magpie.assets.local_gateway import LocalDirectoryGateway
from magpie.assets.resolver import DependencyResolver
from magpie.assets.server import AssetServer
from magpie.assets.settings import (
    AssetSettings,
    CacheSettings,
    ResolverSettings,
)
from magpie.assets.types import (
    AssetKind,
    AssetReference,
    CacheEntry,
    CacheStats,
    DependencyClosure,
    DependencyStatus,
    FetchedFile,
    FileId,
    LoadResult,
    LoadVerdict,
    ResolvedDependency,
)

__all__ = [
    "AssetServer",
    "AssetSettings",
    "CacheSettings",
    "ResolverSettings",
    "CacheStore",
    "CacheJanitor",
    "CancelToken",
    "FetchGatewayAdapter",
    "SecureFileGateway",
    "LocalDirectoryGateway",
    "DependencyResolver",
    "classify",
    "coordinate",
    "FORMATS",
    "FormatEntry",
    "lookup_format",
    "register_format",
    "extract_obj_references",
    "extract_mtl_references",
    "extract_gltf_references",
    "AssetKind",
    "AssetReference",
    "CacheEntry",
    "CacheStats",
    "DependencyClosure",
    "DependencyStatus",
    "FetchedFile",
    "FileId",
    "LoadResult",
    "LoadVerdict",
    "ResolvedDependency",
    "AssetError",
    "CacheUnavailable",
    "DependencyFetchFailed",
    "DependencyMissing",
    "FetchCancelled",
    "GatewayError",
    "PathTraversalRejected",
    "PrimaryFetchFailed",
    "UnsupportedFormat",
]
