# magpie/assets/extractors/gltf.py
import json
from typing import Any, List, Mapping, Union
from urllib.parse import unquote

from magpie.assets.types import AssetKind, AssetReference

GltfDocument = Union[Mapping[str, Any], str, bytes]


def extract_gltf_references(document: GltfDocument) -> List[AssetReference]:
    """
    Return external buffers, then external images, of a glTF document.
    Embedded `data:` URIs are not dependencies and are skipped. Other URIs
    are percent-decoded into plain relative paths.
    """
    if isinstance(document, (str, bytes, bytearray)):
        try:
            document = json.loads(document)
        except (ValueError, UnicodeDecodeError):
            return []

    if not isinstance(document, Mapping):
        return []

    refs: List[AssetReference] = []
    refs.extend(_external_uris(document.get("buffers"), AssetKind.BUFFER))
    refs.extend(_external_uris(document.get("images"), AssetKind.TEXTURE))
    return refs


def _external_uris(items: Any, kind: AssetKind) -> List[AssetReference]:
    if not isinstance(items, list):
        return []

    refs = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        uri = item.get("uri")
        if not isinstance(uri, str) or not uri.strip():
            continue
        if uri.startswith("data:"):
            continue
        refs.append(AssetReference(path=unquote(uri), kind=kind))
    return refs
