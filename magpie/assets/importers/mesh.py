# magpie/assets/importers/mesh.py
from typing import List, Tuple

import numpy as np

from magpie.assets.importers.base import AssetImporter
from magpie.assets.importers.data import MeshData, VertexLayout

_LAYOUT = VertexLayout(
    attributes=["in_pos", "in_normal", "in_uv"],
    format="3f 3f 2f",
    stride_bytes=32,
)


class ObjImporter(AssetImporter):
    def import_bytes(self, data: bytes, name: str) -> MeshData:
        positions: List[Tuple[float, float, float]] = []
        normals: List[Tuple[float, float, float]] = []
        uvs: List[Tuple[float, float]] = []
        vertices: List[Tuple[float, ...]] = []
        libraries: List[str] = []

        text = data.decode("utf-8-sig", errors="replace")
        for line in text.splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue

            parts = line.split()
            tag = parts[0]

            if tag == "v":
                px, py, pz = map(float, parts[1:4])
                positions.append((px, py, pz))

            elif tag == "vn":
                nx, ny, nz = map(float, parts[1:4])
                normals.append((nx, ny, nz))

            elif tag == "vt":
                u, v = map(float, parts[1:3])
                uvs.append((u, v))

            elif tag == "mtllib":
                libraries.append(line[len(tag) :].strip())

            elif tag == "f":
                if len(parts) < 4:
                    raise ValueError(f"Degenerate face in {name}: {line}")

                corners = [self._parse_face_vertex(t) for t in parts[1:]]
                # Fan triangulation for quads and larger polygons
                for i in range(1, len(corners) - 1):
                    for v_idx, vt_idx, vn_idx in (
                        corners[0],
                        corners[i],
                        corners[i + 1],
                    ):
                        nx, ny, nz = (
                            normals[vn_idx]
                            if vn_idx is not None
                            else (0.0, 1.0, 0.0)
                        )
                        u, v = uvs[vt_idx] if vt_idx is not None else (0.0, 0.0)
                        vertices.append((*positions[v_idx], nx, ny, nz, u, v))

        if not vertices:
            raise ValueError(f"No geometry found in OBJ: {name}")

        vertex_array = np.asarray(vertices, dtype="<f4")
        points = np.asarray(positions, dtype=np.float64)
        lo = points.min(axis=0)
        hi = points.max(axis=0)

        return MeshData(
            vertices=vertex_array.tobytes(),
            vertex_layout=_LAYOUT,
            aabb=(
                (float(lo[0]), float(lo[1]), float(lo[2])),
                (float(hi[0]), float(hi[1]), float(hi[2])),
            ),
            material_libraries=tuple(libraries),
        )

    def _parse_index(self, val: str) -> int | None:
        if not val:
            return None
        idx = int(val)
        return idx - 1 if idx > 0 else idx

    def _parse_face_vertex(
        self, token: str
    ) -> Tuple[int, int | None, int | None]:
        parts = token.split("/")
        v = self._parse_index(parts[0])
        vt = (
            self._parse_index(parts[1]) if len(parts) > 1 and parts[1] else None
        )
        vn = (
            self._parse_index(parts[2]) if len(parts) > 2 and parts[2] else None
        )

        # v cannot be None if file is valid, but type checker might complain
        if v is None:
            raise ValueError(f"Invalid vertex index in token: {token}")

        return v, vt, vn
