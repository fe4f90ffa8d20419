# magpie/assets/paths.py
import posixpath
import re
from typing import Optional

_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*:")


def normalize_base(base_path: str) -> str:
    """Canonical form of a directory scope: no leading/trailing slashes."""
    base = base_path.replace("\\", "/").strip("/")
    if not base:
        return ""
    base = posixpath.normpath(base)
    if base == ".":
        return ""
    if base == ".." or base.startswith("../"):
        raise ValueError(f"Base path escapes its root: {base_path!r}")
    return base


def scope_path(base_path: str, ref_dir: str, ref_path: str) -> Optional[str]:
    """
    Join a referenced path onto `ref_dir` and return the normalized result,
    or None when it would leave `base_path`.

    `ref_dir` is the directory of the file that contained the reference and
    must itself live inside `base_path`.
    """
    raw = ref_path.strip().replace("\\", "/")
    if not raw or "\x00" in raw:
        return None
    # Absolute paths, drive letters and URLs are never in scope
    if raw.startswith("/") or _SCHEME.match(raw):
        return None

    base = normalize_base(base_path)
    start = normalize_base(ref_dir)
    joined = posixpath.normpath(posixpath.join(start, raw))

    if joined in (".", "..") or joined.startswith("../"):
        return None
    if base and not joined.startswith(base + "/"):
        return None

    return joined


def parent_dir(path: str) -> str:
    return posixpath.dirname(path)


def extension_of(filename: str) -> str:
    return posixpath.splitext(filename)[1].lower().lstrip(".")
