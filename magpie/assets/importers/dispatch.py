# magpie/assets/importers/dispatch.py
import logging
from typing import Dict, Optional, Union

from PIL import UnidentifiedImageError

from magpie.assets.extractors import mime_type_for
from magpie.assets.importers.base import AssetImporter
from magpie.assets.importers.data import LoadedModel, TextureData
from magpie.assets.importers.mesh import ObjImporter
from magpie.assets.importers.texture import TextureImporter
from magpie.assets.paths import extension_of
from magpie.assets.types import AssetKind, DependencyClosure, LoadResult

logger = logging.getLogger(__name__)


class LoaderDispatch:
    """
    Hands a dependency closure to the right importers. Only dependencies
    that fetched are imported; gaps are left for default materials.
    """

    def __init__(
        self,
        mesh_importers: Optional[Dict[str, AssetImporter]] = None,
        texture_importer: Optional[AssetImporter] = None,
    ) -> None:
        if mesh_importers is None:
            mesh_importers = {"obj": ObjImporter()}
        self._mesh_importers = mesh_importers
        self._texture_importer = texture_importer or TextureImporter()

    def dispatch(
        self, result: Union[LoadResult, DependencyClosure]
    ) -> LoadedModel:
        closure = result.closure if isinstance(result, LoadResult) else result

        mesh = None
        importer = self._mesh_importers.get(closure.format)
        if importer is not None:
            name = f"model.{closure.format}"
            mesh = importer.import_bytes(closure.primary, name)

        textures: Dict[str, TextureData] = {}
        raw: Dict[str, bytes] = {}
        mime_types: Dict[str, str] = {}
        for dep in closure.fetched():
            mime_types[dep.absolute_path] = mime_type_for(
                extension_of(dep.absolute_path)
            )
            if dep.reference.kind is not AssetKind.TEXTURE:
                raw[dep.absolute_path] = dep.data
                continue

            try:
                texture = self._texture_importer.import_bytes(
                    dep.data, dep.absolute_path
                )
            except (UnidentifiedImageError, OSError, ValueError) as e:
                logger.warning(
                    "Failed to decode texture %s, using default: %s",
                    dep.absolute_path,
                    e,
                )
                continue

            textures[dep.absolute_path] = texture

        return LoadedModel(
            format=closure.format,
            mime_type=mime_type_for(closure.format),
            mesh=mesh,
            textures=textures,
            raw=raw,
            mime_types=mime_types,
            missing=closure.missing_paths(),
        )
