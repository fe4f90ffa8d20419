# magpie/assets/errors.py


class AssetError(Exception):
    """Base class for everything raised by the asset pipeline."""


class GatewayError(AssetError):
    """Opaque failure reported by the secure file gateway."""


class PrimaryFetchFailed(AssetError):
    """The primary model file could not be fetched. Fatal for the load."""

    def __init__(self, file_id: int, reason: str) -> None:
        super().__init__(f"Failed to fetch primary file {file_id}: {reason}")
        self.file_id = file_id
        self.reason = reason


class DependencyFetchFailed(AssetError):
    pass


class DependencyMissing(AssetError):
    """The gateway reports that a dependency does not exist."""


class PathTraversalRejected(AssetError):
    """A referenced path resolves outside the primary file's directory."""


class CacheUnavailable(AssetError):
    pass


class FetchCancelled(AssetError):
    pass


class UnsupportedFormat(AssetError, ValueError):
    pass
