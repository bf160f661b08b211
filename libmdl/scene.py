"""libmdl.scene

MDL -> JSON scene writer.

The output is the three.js JSON model layout (format 3):

  materials     one diffuse material pointing at textures/<name>.jpg
  vertices      frame 0, flat x,y,z list
  morphTargets  every frame (frame 0 included), only when there is more than one
  uvs           a single UV layer, see build_uvs
  faces         flat list of 8 ints per triangle, see build_faces

All floats go through f32() so the JSON carries the shortest decimal that
survives a float32 round trip.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

import numpy as np

from .model import MdlFile, MdlHeader, STVert, Vert

logger = logging.getLogger(__name__)

# face type bits: 2 = has material, 8 = has per-vertex uvs
FACE_TRI_MATERIAL_UVS = 10
MATERIAL_INDEX = 0


@dataclass
class ExportOptions:
    texture_dir: str = "textures"
    texture_ext: str = ".jpg"
    wrap: Tuple[str, str] = ("repeat", "repeat")


def f32(x) -> float:
    """Round x to float32, returned as the shortest float that still reads back the same."""
    return float(np.format_float_positional(np.float32(x), unique=True, trim="-"))


def f32_list(values) -> List[float]:
    """f32() over a whole array, formatting each distinct float32 only once.

    Quantized positions and texel coords repeat a lot, so this is a small
    table lookup per element. Distinct values are keyed on their bit pattern
    so -0.0 and 0.0 stay apart.
    """
    a = np.ascontiguousarray(np.asarray(values, dtype=np.float32).ravel())
    bits, inverse = np.unique(a.view(np.uint32), return_inverse=True)
    table = [f32(x) for x in bits.view(np.float32)]
    return [table[i] for i in inverse.ravel().tolist()]


def dequantize(hdr: MdlHeader, verts: Sequence[Vert]) -> np.ndarray:
    """scale * v + origin per axis, in float32. Returns an (N, 3) array."""
    q = np.array([v.v for v in verts], dtype=np.float32).reshape(-1, 3)
    scale = np.array([hdr.scale.x, hdr.scale.y, hdr.scale.z], dtype=np.float32)
    origin = np.array([hdr.origin.x, hdr.origin.y, hdr.origin.z], dtype=np.float32)
    return q * scale + origin


def _flat_positions(hdr: MdlHeader, verts: Sequence[Vert]) -> List[float]:
    return f32_list(dequantize(hdr, verts))


def has_seam(stverts: Sequence[STVert]) -> bool:
    return any(st.on_seam for st in stverts)


def build_uvs(mdl: MdlFile) -> List[float]:
    """Flat u,v list for the single UV layer.

    The first numverts pairs are the plain st coords with v flipped (skins are
    stored top to bottom). If any vertex sits on the seam, a second run of
    numverts pairs follows: the back-side copy of each seam vertex, shifted
    right by half the skin width, and 0,0 filler for everything else.
    """
    w = mdl.header.skin_width
    h = mdl.header.skin_height

    st = np.array([(x.on_seam, x.s, x.t) for x in mdl.stverts], dtype=np.int64).reshape(-1, 3)
    onseam, s, t = st[:, 0] != 0, st[:, 1], st[:, 2]
    v = 1 - t / h
    blocks = [np.column_stack([s / w, v])]

    if has_seam(mdl.stverts):
        half = w // 2  # integer half width
        logger.debug("seam vertices present, appending shifted uvs (half width %d)", half)
        shifted = np.column_stack([(s + half) / w, v])
        blocks.append(np.where(onseam[:, None], shifted, 0.0))
    return f32_list(np.concatenate(blocks))


def build_faces(mdl: MdlFile) -> List[int]:
    """Flat face list: type, 3 vertex indices, material, 3 uv indices.

    Winding is flipped (v0, v2, v1) for both vertex and uv indices. A corner
    of a back-facing triangle that sits on the seam uses the shifted uv copy
    at index + numverts.
    """
    numverts = mdl.header.num_verts
    faces: List[int] = []
    for tri in mdl.triangles:
        uv = [
            v + numverts if not tri.front and mdl.stverts[v].on_seam else v
            for v in tri.verts
        ]
        v0, v1, v2 = tri.verts
        faces.extend([FACE_TRI_MATERIAL_UVS, v0, v2, v1, MATERIAL_INDEX, uv[0], uv[2], uv[1]])
    return faces


def build_scene(mdl: MdlFile, options: Optional[ExportOptions] = None) -> Dict:
    opts = options or ExportOptions()
    hdr = mdl.header

    scene: Dict = {
        "materials": [
            {
                "mapDiffuse": f"{opts.texture_dir}/{mdl.name}{opts.texture_ext}",
                "mapDiffuseWrap": list(opts.wrap),
            }
        ],
        "vertices": _flat_positions(hdr, mdl.frames[0].verts),
    }

    if len(mdl.frames) > 1:
        scene["morphTargets"] = [
            {"name": frame.name, "vertices": _flat_positions(hdr, frame.verts)}
            for frame in mdl.frames
        ]

    scene["uvs"] = [build_uvs(mdl)]
    scene["faces"] = build_faces(mdl)
    return scene


def write_scene(scene: Dict, fp: TextIO) -> None:
    json.dump(scene, fp, separators=(",", ":"))
    fp.write("\n")


def write_json(mdl: MdlFile, out_path: str, options: Optional[ExportOptions] = None) -> None:
    """Export an MdlFile to a JSON scene file.

    The scene is built in memory before the file is created. If writing fails
    the partial file is removed.
    """
    scene = build_scene(mdl, options)
    f = open(out_path, "w", encoding="utf-8")
    try:
        with f:
            write_scene(scene, f)
    except Exception:
        os.remove(out_path)
        raise
    logger.debug("wrote %s", out_path)
