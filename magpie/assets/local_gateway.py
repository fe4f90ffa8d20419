# magpie/assets/local_gateway.py
import logging
from pathlib import Path
from typing import Dict, Optional, Sequence

from magpie.assets.errors import (
    DependencyMissing,
    GatewayError,
    PathTraversalRejected,
)
from magpie.assets.gateway import CancelToken
from magpie.assets.paths import extension_of
from magpie.assets.types import FetchedFile, FileId, Marker

logger = logging.getLogger(__name__)

_IMAGE_EXTENSIONS = {
    "jpg", "jpeg", "png", "gif", "bmp", "tga", "tiff", "webp",
}

# Exporters often drop images into one of these next to the material
_TEXTURE_DIRS = {
    "textures", "texture", "images", "image", "tex", "maps", "map",
}


class LocalDirectoryGateway:
    """
    SecureFileGateway backed by a directory on disk.
    Primary files are addressed by id, dependencies by path relative to
    `root`. Nothing outside `root` is ever read.

    Models exported on Windows rarely match the case of the files they
    reference, so when `case_insensitive` is set a dependency that does not
    exist verbatim is looked up ignoring case, and an image that is still
    missing is looked for in a texture subdirectory (`textures/`,
    `images/`, ...) beside it.
    """

    def __init__(
        self,
        root: Path,
        files: Optional[Dict[FileId, str]] = None,
        case_insensitive: bool = True,
    ):
        self.root = Path(root).resolve()
        self.case_insensitive = case_insensitive
        self._files: Dict[FileId, str] = dict(files or {})

    def fetch_by_id(self, file_id: FileId) -> bytes:
        path = self._files.get(file_id)
        if path is None:
            raise GatewayError(f"Unknown file id {file_id}")

        try:
            return self._resolve(path).read_bytes()
        except (OSError, PathTraversalRejected) as e:
            raise GatewayError(f"Cannot read file {file_id}: {e}") from e

    def stat_path(self, path: str) -> Marker:
        return self._marker(path, self._locate(path))

    def fetch_by_path(
        self, path: str, cancel: Optional[CancelToken] = None
    ) -> FetchedFile:
        if cancel is not None:
            cancel.raise_if_cancelled()

        full_path = self._locate(path)
        marker = self._marker(path, full_path)
        try:
            data = full_path.read_bytes()
        except FileNotFoundError as e:
            raise DependencyMissing(path) from e
        except OSError as e:
            raise GatewayError(f"Cannot read {path}: {e}") from e

        return FetchedFile(data=data, marker=marker)

    def _marker(self, path: str, full_path: Path) -> Marker:
        try:
            st = full_path.stat()
        except FileNotFoundError as e:
            raise DependencyMissing(path) from e
        except OSError as e:
            raise GatewayError(f"Cannot stat {path}: {e}") from e

        if not full_path.is_file():
            raise DependencyMissing(path)
        return f"{st.st_mtime_ns}-{st.st_size}"

    def _resolve(self, path: str) -> Path:
        full_path = (self.root / path.lstrip("/")).resolve()
        if not full_path.is_relative_to(self.root):
            raise PathTraversalRejected(path)
        return full_path

    def _locate(self, path: str) -> Path:
        """
        The file `path` names. Falls back to a case-insensitive match, then
        for images to a texture subdirectory. Returns the verbatim path when
        nothing matches so the caller reports it missing.
        """
        full_path = self._resolve(path)
        if not self.case_insensitive or full_path.is_file():
            return full_path

        parts = full_path.relative_to(self.root).parts
        if not parts:
            return full_path
        found = self._walk(self.root, parts)
        if found is None and extension_of(parts[-1]) in _IMAGE_EXTENSIONS:
            found = self._search_texture_dirs(parts)
        if found is None or not found.is_file():
            return full_path

        logger.info(
            "Resolved %s to %s", path, found.relative_to(self.root).as_posix()
        )
        return found

    def _walk(self, start: Path, parts: Sequence[str]) -> Optional[Path]:
        current = start
        for part in parts:
            exact = current / part
            if exact.exists():
                current = exact
                continue
            try:
                matches = sorted(
                    child
                    for child in current.iterdir()
                    if child.name.lower() == part.lower()
                )
            except OSError:
                return None
            if not matches:
                return None
            current = matches[0]

        # A symlink may still point outside the root
        current = current.resolve()
        if not current.is_relative_to(self.root):
            return None
        return current

    def _search_texture_dirs(self, parts: Sequence[str]) -> Optional[Path]:
        parent = self._walk(self.root, parts[:-1])
        if parent is None or not parent.is_dir():
            return None

        for child in sorted(parent.iterdir()):
            if child.name.lower() not in _TEXTURE_DIRS or not child.is_dir():
                continue
            found = self._walk(child, parts[-1:])
            if found is not None and found.is_file():
                return found
        return None
