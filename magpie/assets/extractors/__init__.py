# magpie/assets/extractors/__init__.py
"""
Format dispatch table: format identifier -> (top-level, second-level) extractor.
Adding a format means adding one entry.
"""
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from magpie.assets.errors import UnsupportedFormat
from magpie.assets.extractors.gltf import extract_gltf_references
from magpie.assets.extractors.obj import (
    extract_mtl_references,
    extract_obj_references,
)
from magpie.assets.types import AssetReference

Extractor = Callable[[Any], List[AssetReference]]


@dataclass(frozen=True)
class FormatEntry:
    top_level: Optional[Extractor] = None
    second_level: Optional[Extractor] = None  # Runs on fetched materials


_SINGLE_FILE = FormatEntry()

FORMATS: Dict[str, FormatEntry] = {
    "obj": FormatEntry(extract_obj_references, extract_mtl_references),
    "gltf": FormatEntry(extract_gltf_references),
    "glb": _SINGLE_FILE,
    "stl": _SINGLE_FILE,
    "ply": _SINGLE_FILE,
    "3mf": _SINGLE_FILE,
    "3ds": _SINGLE_FILE,
    "dae": _SINGLE_FILE,
    "fbx": _SINGLE_FILE,
    "x3d": _SINGLE_FILE,
    "wrl": _SINGLE_FILE,
    "vrml": _SINGLE_FILE,
}

_MIME_TYPES = {
    "obj": "model/obj",
    "mtl": "model/mtl",
    "gltf": "model/gltf+json",
    "glb": "model/gltf-binary",
    "stl": "model/stl",
    "ply": "model/ply",
    "fbx": "model/x.fbx",
    "3mf": "model/3mf",
    "3ds": "model/3ds",
    "dae": "model/dae",
    "x3d": "model/x3d",
    "wrl": "model/vrml",
    "vrml": "model/vrml",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}


def _key(name: str) -> str:
    return name.strip().lower().lstrip(".")


def lookup_format(name: str) -> FormatEntry:
    entry = FORMATS.get(_key(name))
    if entry is None:
        raise UnsupportedFormat(f"No extractors registered for format {name!r}")
    return entry


def register_format(name: str, entry: FormatEntry) -> None:
    FORMATS[_key(name)] = entry


def mime_type_for(ext: str) -> str:
    return _MIME_TYPES.get(_key(ext), "application/octet-stream")


__all__ = [
    "FORMATS",
    "FormatEntry",
    "Extractor",
    "extract_gltf_references",
    "extract_mtl_references",
    "extract_obj_references",
    "lookup_format",
    "mime_type_for",
    "register_format",
]
