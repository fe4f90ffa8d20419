# magpie/assets/importers/__init__.py
from magpie.assets.importers.base import AssetImporter
from magpie.assets.importers.data import (
    LoadedModel,
    MeshData,
    TextureData,
    VertexLayout,
)
from magpie.assets.importers.dispatch import LoaderDispatch
from magpie.assets.importers.mesh import ObjImporter
from magpie.assets.importers.texture import TextureImporter

__all__ = [
    "AssetImporter",
    "LoadedModel",
    "LoaderDispatch",
    "MeshData",
    "ObjImporter",
    "TextureData",
    "TextureImporter",
    "VertexLayout",
]
