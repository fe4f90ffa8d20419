import json

import pytest

from magpie.assets.errors import UnsupportedFormat
from magpie.assets.extractors import (
    FormatEntry,
    extract_gltf_references,
    extract_mtl_references,
    extract_obj_references,
    lookup_format,
    mime_type_for,
    register_format,
)
from magpie.assets.types import AssetKind, AssetReference


def test_obj_single_material_library():
    text = "# cube\nmtllib foo.mtl\nv 0 0 0\nusemtl red\n"

    refs = extract_obj_references(text)

    assert refs == [AssetReference(path="foo.mtl", kind=AssetKind.MATERIAL)]


def test_obj_returns_at_most_one_material():
    text = "mtllib first.mtl\nmtllib second.mtl\n"

    refs = extract_obj_references(text)

    assert [r.path for r in refs] == ["first.mtl"]


def test_obj_keeps_spaces_in_file_names():
    refs = extract_obj_references("  mtllib my model.mtl  \r\n")

    assert refs[0].path == "my model.mtl"


@pytest.mark.parametrize(
    "text",
    ["", "v 0 0 0\nf 1 2 3\n", "mtllib\n", "mtllib   \n", "# mtllib foo.mtl"],
)
def test_obj_without_directive_yields_nothing(text):
    assert extract_obj_references(text) == []


def test_obj_non_text_input_yields_nothing():
    assert extract_obj_references(None) == []


def test_mtl_texture_maps_in_order():
    text = "newmtl skin\nKd 1 1 1\nmap_Kd tex.png\nmap_Bump bump.png\n"

    refs = extract_mtl_references(text)

    assert refs == [
        AssetReference(path="tex.png", kind=AssetKind.TEXTURE),
        AssetReference(path="bump.png", kind=AssetKind.TEXTURE),
    ]


def test_mtl_keeps_duplicates():
    text = "map_Kd a.png\nmap_Ka a.png\n"

    assert [r.path for r in extract_mtl_references(text)] == ["a.png", "a.png"]


def test_mtl_skips_texture_options():
    text = (
        "map_Kd -s 1 1 1 -o 0.5 diffuse.png\n"
        "map_Bump -bm 0.3 normal map.png\n"
        "bump -clamp on bump.jpg\n"
    )

    refs = extract_mtl_references(text)

    assert [r.path for r in refs] == [
        "diffuse.png",
        "normal map.png",
        "bump.jpg",
    ]


def test_mtl_normalizes_backslashes():
    refs = extract_mtl_references("map_Kd images\\wood.jpg\n")

    assert refs[0].path == "images/wood.jpg"


def test_mtl_ignores_non_texture_lines():
    text = "newmtl a\nNs 10\nKd 0.5 0.5 0.5\nmap_Kd\n"

    assert extract_mtl_references(text) == []


def test_mtl_map_aat_is_not_a_texture():
    text = "newmtl m\nmap_aat on\nmap_Kd skin.png\n"

    assert [r.path for r in extract_mtl_references(text)] == ["skin.png"]


def test_mtl_paths_are_not_percent_decoded():
    refs = extract_mtl_references("map_Kd a%20b.png\n")

    assert refs[0].path == "a%20b.png"


def test_gltf_buffers_then_images():
    doc = {
        "buffers": [{"uri": "mesh.bin", "byteLength": 12}],
        "images": [{"uri": "albedo.png"}, {"bufferView": 2}],
    }

    refs = extract_gltf_references(doc)

    assert refs == [
        AssetReference(path="mesh.bin", kind=AssetKind.BUFFER),
        AssetReference(path="albedo.png", kind=AssetKind.TEXTURE),
    ]


def test_gltf_skips_embedded_data():
    doc = {
        "buffers": [
            {"uri": "data:application/octet-stream;base64,AAAA"},
            {"uri": "external.bin"},
        ],
        "images": [{"uri": "data:image/png;base64,iVBORw0KGgo="}],
    }

    refs = extract_gltf_references(doc)

    assert [r.path for r in refs] == ["external.bin"]


def test_gltf_uris_are_percent_decoded():
    doc = {
        "buffers": [{"uri": "scene%20data.bin"}],
        "images": [{"uri": "tex/albedo%20map.png"}],
    }

    assert [r.path for r in extract_gltf_references(doc)] == [
        "scene data.bin",
        "tex/albedo map.png",
    ]


def test_gltf_accepts_raw_json_text():
    text = json.dumps({"images": [{"uri": "a.jpg"}]})

    assert [r.path for r in extract_gltf_references(text)] == ["a.jpg"]
    assert [r.path for r in extract_gltf_references(text.encode())] == [
        "a.jpg"
    ]


@pytest.mark.parametrize(
    "doc", ["{not json", "[1, 2]", {"buffers": "nope"}, {"images": [1, None]}]
)
def test_gltf_unparsable_yields_nothing(doc):
    assert extract_gltf_references(doc) == []


def test_lookup_format_is_case_insensitive():
    entry = lookup_format(".OBJ")

    assert entry.top_level is extract_obj_references
    assert entry.second_level is extract_mtl_references


def test_single_file_formats_have_no_extractors():
    entry = lookup_format("stl")

    assert entry.top_level is None
    assert entry.second_level is None


def test_unknown_format_raises():
    with pytest.raises(UnsupportedFormat):
        lookup_format("blend")


def test_register_format_adds_one_entry():
    register_format("objx", FormatEntry(extract_obj_references))

    assert lookup_format("objx").top_level is extract_obj_references


def test_mime_types():
    assert mime_type_for("gltf") == "model/gltf+json"
    assert mime_type_for(".OBJ") == "model/obj"
    assert mime_type_for("xyz") == "application/octet-stream"
