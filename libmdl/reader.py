"""libmdl.reader

Sequential Quake MDL (IDPO, version 6) reader.

The file is walked strictly front to back:

- header (84 bytes, its counts size everything after it)
- skins (pixel payload skipped, never decoded)
- st verts, triangles
- frames (simple frames only; frame groups are rejected)

Any short read is fatal. There is no partial model: either read_mdl returns
a complete MdlFile or it raises MdlReadError.
"""

from __future__ import annotations

import io
import logging
import os
import struct
from typing import BinaryIO, List, Optional

from .model import (
    FRAME_NAME_SIZE,
    MDL_IDENT,
    MDL_VERSION,
    Frame,
    FrameType,
    MdlFile,
    MdlHeader,
    Skin,
    SkinType,
    STVert,
    Triangle,
    Vec3,
    Vert,
)

logger = logging.getLogger(__name__)


class MdlReadError(RuntimeError):
    pass


class MdlFormatError(MdlReadError):
    pass


class UnsupportedFrameError(MdlFormatError):
    pass


# Wire layouts (little-endian, no padding)
_HEADER = struct.Struct("<II3f3ff3f8If")
_U32 = struct.Struct("<I")
_SKIN_GROUP = struct.Struct("<If")
_STVERT = struct.Struct("<3I")
_TRIANGLE = struct.Struct("<4I")
_VERT = struct.Struct("<4B")

_CHUNK = 1 << 20


class _Bin:
    """Forward-only reader over a binary stream."""

    def __init__(self, fp: BinaryIO):
        self.fp = fp
        self.ofs = 0
        # bytes left from the starting position; None when the stream can't tell
        self.size: Optional[int] = None
        if fp.seekable():
            start = fp.tell()
            self.size = fp.seek(0, io.SEEK_END) - start
            fp.seek(start)

    def tell(self) -> int:
        return self.ofs

    def _eof(self, n: int) -> MdlReadError:
        return MdlReadError(f"Unexpected EOF at {self.ofs}, need {n}")

    def _need(self, n: int) -> None:
        # counts come straight from the header, check them before allocating or seeking
        if self.size is not None and n > self.size - self.ofs:
            raise self._eof(n)

    def read(self, n: int) -> bytes:
        self._need(n)
        parts = []
        left = n
        while left:
            chunk = self.fp.read(min(left, _CHUNK))
            if not chunk:
                break
            parts.append(chunk)
            left -= len(chunk)
        if left:
            raise self._eof(n)
        self.ofs += n
        return b"".join(parts)

    def skip(self, n: int) -> None:
        if self.size is not None:
            self._need(n)
            self.fp.seek(n, io.SEEK_CUR)
            self.ofs += n
        else:
            while n:
                k = min(n, _CHUNK)
                self.read(k)
                n -= k

    def unpack(self, st: struct.Struct) -> tuple:
        return st.unpack(self.read(st.size))

    def unpack_array(self, st: struct.Struct, count: int) -> List[tuple]:
        # one read for the whole array so a truncated block is caught up front
        return list(st.iter_unpack(self.read(st.size * count)))

    def u32(self) -> int:
        return self.unpack(_U32)[0]


def _parse_header(b: _Bin) -> MdlHeader:
    f = b.unpack(_HEADER)
    hdr = MdlHeader(
        ident=f[0],
        version=f[1],
        scale=Vec3(*f[2:5]),
        origin=Vec3(*f[5:8]),
        radius=f[8],
        offsets=Vec3(*f[9:12]),
        num_skins=f[12],
        skin_width=f[13],
        skin_height=f[14],
        num_verts=f[15],
        num_triangles=f[16],
        num_frames=f[17],
        sync_type=f[18],
        flags=f[19],
        size=f[20],
    )
    if hdr.ident != MDL_IDENT:
        raise MdlFormatError(f'MDL magic {hdr.ident} != "IDPO"')
    if hdr.version != MDL_VERSION:
        raise MdlFormatError(f"MDL version {hdr.version} != {MDL_VERSION}")
    if hdr.num_frames == 0:
        raise MdlFormatError("MDL has no frames")
    if hdr.num_verts and not (hdr.skin_width and hdr.skin_height):
        raise MdlFormatError(f"MDL skin size {hdr.skin_width}x{hdr.skin_height} is empty")
    logger.debug(
        "header: skins=%d skin=%dx%d verts=%d tris=%d frames=%d",
        hdr.num_skins, hdr.skin_width, hdr.skin_height,
        hdr.num_verts, hdr.num_triangles, hdr.num_frames,
    )
    return hdr


def _parse_skin(b: _Bin, hdr: MdlHeader) -> Skin:
    skin = Skin(type=SkinType.from_tag(b.u32()))
    if skin.type is SkinType.GROUP:
        skin.count, skin.time = b.unpack(_SKIN_GROUP)
    skin.pixel_bytes = skin.count * hdr.skin_width * hdr.skin_height
    b.skip(skin.pixel_bytes)
    return skin


def _parse_vert(raw: tuple) -> Vert:
    return Vert(v=raw[:3], normal=raw[3])


def frame_name(raw: bytes, index: int) -> str:
    """Decode a frame name buffer, falling back to "Frame <index>"."""
    name = raw.split(b"\0", 1)[0].decode("ascii", errors="replace")
    if not name:
        name = f"Frame {index}"
    return name


def _parse_frame(b: _Bin, hdr: MdlHeader, index: int) -> Frame:
    ofs = b.tell()
    ftype = FrameType.from_tag(b.u32())
    if ftype is FrameType.GROUP:
        raise UnsupportedFrameError(f"Frame {index} at {ofs} is a frame group (unsupported)")
    mins = _parse_vert(b.unpack(_VERT))
    maxs = _parse_vert(b.unpack(_VERT))
    name = frame_name(b.read(FRAME_NAME_SIZE), index)
    verts = [_parse_vert(r) for r in b.unpack_array(_VERT, hdr.num_verts)]
    return Frame(type=ftype, mins=mins, maxs=maxs, name=name, verts=verts)


def read_mdl_stream(fp: BinaryIO, name: str) -> MdlFile:
    b = _Bin(fp)
    hdr = _parse_header(b)

    skins = [_parse_skin(b, hdr) for _ in range(hdr.num_skins)]
    logger.debug("skins: %d skipped, st verts @ %d", len(skins), b.tell())

    stverts = [STVert(*r) for r in b.unpack_array(_STVERT, hdr.num_verts)]

    triangles: List[Triangle] = []
    for i, (front, v0, v1, v2) in enumerate(b.unpack_array(_TRIANGLE, hdr.num_triangles)):
        for v in (v0, v1, v2):
            if v >= hdr.num_verts:
                raise MdlFormatError(f"Triangle {i} references vertex {v} (numverts={hdr.num_verts})")
        triangles.append(Triangle(front=front, verts=(v0, v1, v2)))
    logger.debug("tris: %d, frames @ %d", len(triangles), b.tell())

    frames = [_parse_frame(b, hdr, k) for k in range(hdr.num_frames)]
    logger.debug("frames: %s", ", ".join(f.name for f in frames))

    return MdlFile(
        name=name,
        header=hdr,
        skins=skins,
        stverts=stverts,
        triangles=triangles,
        frames=frames,
    )


def model_name(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


def read_mdl(path: str) -> MdlFile:
    with open(path, "rb") as f:
        return read_mdl_stream(f, model_name(path))
