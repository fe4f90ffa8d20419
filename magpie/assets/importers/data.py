# magpie/assets/importers/data.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class VertexLayout:
    """Describes how the attributes of a packed vertex are laid out."""

    attributes: List[str]  # e.g. ["in_pos", "in_normal", "in_uv"]
    format: str  # per-attribute component counts e.g. "3f 3f 2f"
    stride_bytes: int  # e.g. 32


@dataclass(frozen=True)
class MeshData:
    """Mesh geometry decoded from a primary file."""

    vertices: bytes
    vertex_layout: VertexLayout
    aabb: Tuple[Tuple[float, float, float], Tuple[float, float, float]]
    material_libraries: Tuple[str, ...] = ()


@dataclass(frozen=True)
class TextureData:
    """Raw texture data and metadata."""

    data: bytes
    width: int
    height: int
    components: int  # 3 (RGB) or 4 (RGBA)


@dataclass(frozen=True)
class LoadedModel:
    """What the parser stage receives: decoded primary plus what fetched."""

    format: str
    mime_type: str = "application/octet-stream"
    mesh: Optional[MeshData] = None
    textures: Dict[str, TextureData] = field(default_factory=dict)
    raw: Dict[str, bytes] = field(default_factory=dict)
    mime_types: Dict[str, str] = field(default_factory=dict)
    missing: List[str] = field(default_factory=list)
