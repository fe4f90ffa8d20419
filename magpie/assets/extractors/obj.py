# magpie/assets/extractors/obj.py
import re
from typing import List

from magpie.assets.types import AssetKind, AssetReference

# mtllib material.mtl
_MTLLIB = re.compile(r"^[ \t]*mtllib[ \t]+(.*?)[ \t]*$", re.MULTILINE)

# map_Kd texture.jpg, map_Bump bump.png, bump normal.png, ...
# map_aat is an on/off switch, not a texture
_TEXTURE_MAP = re.compile(
    r"^[ \t]*(map_(?!aat\b)[A-Za-z0-9_]+|bump|disp|decal|norm|refl)"
    r"[ \t]+(.*?)[ \t]*$",
    re.MULTILINE | re.IGNORECASE,
)

# Maximum number of arguments each texture option takes.
_OPTION_ARITY = {
    "-blendu": 1,
    "-blendv": 1,
    "-boost": 1,
    "-bm": 1,
    "-cc": 1,
    "-clamp": 1,
    "-imfchan": 1,
    "-mm": 2,
    "-o": 3,
    "-s": 3,
    "-t": 3,
    "-texres": 1,
    "-type": 1,
}

_TEXT_OPTIONS = {"-blendu", "-blendv", "-cc", "-clamp", "-imfchan", "-type"}


def extract_obj_references(text: str) -> List[AssetReference]:
    """Return the material library referenced by an OBJ file, if any."""
    if not isinstance(text, str):
        return []

    for match in _MTLLIB.finditer(text):
        path = match.group(1).strip()
        if path:
            return [AssetReference(path=path, kind=AssetKind.MATERIAL)]

    return []


def extract_mtl_references(text: str) -> List[AssetReference]:
    """
    Return every texture map referenced by an MTL file, in file order.
    Duplicates are kept; the resolver deduplicates after normalizing.
    """
    if not isinstance(text, str):
        return []

    refs: List[AssetReference] = []
    for match in _TEXTURE_MAP.finditer(text):
        path = _strip_options(match.group(2))
        if path:
            path = path.replace("\\", "/")
            refs.append(AssetReference(path=path, kind=AssetKind.TEXTURE))

    return refs


def _strip_options(args: str) -> str:
    tokens = args.split()
    i = 0
    while i < len(tokens):
        option = tokens[i].lower()
        arity = _OPTION_ARITY.get(option)
        if arity is None:
            break
        i += 1
        # Optional trailing numbers (-o u [v [w]]); the file name always stays
        taken = 0
        while taken < arity and i < len(tokens) - 1:
            if option not in _TEXT_OPTIONS and not _is_number(tokens[i]):
                break
            i += 1
            taken += 1

    if i >= len(tokens):
        return ""
    if i == 0:
        return args.strip()
    # Keep inner spaces of file names intact
    return " ".join(tokens[i:])


def _is_number(token: str) -> bool:
    try:
        float(token)
    except ValueError:
        return False
    return True
