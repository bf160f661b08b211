from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Optional, Tuple


# "IDPO" read as a little-endian uint32
MDL_IDENT = 1330660425
MDL_VERSION = 6

FRAME_NAME_SIZE = 16


class SkinType(IntEnum):
    SINGLE = 0
    GROUP = 1

    @classmethod
    def from_tag(cls, tag: int) -> "SkinType":
        return cls.SINGLE if tag == 0 else cls.GROUP


class FrameType(IntEnum):
    SIMPLE = 0
    GROUP = 1  # not supported yet

    @classmethod
    def from_tag(cls, tag: int) -> "FrameType":
        return cls.SIMPLE if tag == 0 else cls.GROUP


# -----------------------------
# High-level, stable DTO used by summarize_mdl
# -----------------------------

@dataclass
class MdlSummary:
    name: str
    version: int
    skin_width: int
    skin_height: int
    num_skins: int
    num_verts: int
    num_triangles: int
    num_frames: int
    seam_verts: int
    frame_names: List[str]

    @property
    def has_seam(self) -> bool:
        return self.seam_verts > 0


# -----------------------------
# Records, laid out in file order
# -----------------------------

@dataclass(frozen=True)
class Vec3:
    x: float
    y: float
    z: float


@dataclass(frozen=True)
class MdlHeader:
    """Fixed 84-byte header. Counts in here size every later array."""

    ident: int
    version: int
    scale: Vec3
    origin: Vec3
    radius: float
    offsets: Vec3
    num_skins: int
    skin_width: int
    skin_height: int
    num_verts: int
    num_triangles: int
    num_frames: int
    sync_type: int
    flags: int
    size: float


@dataclass
class Skin:
    """Skin block. Pixel bytes are skipped, only their length is kept."""

    type: SkinType
    count: int = 1
    time: Optional[float] = None  # group header only
    pixel_bytes: int = 0


@dataclass(frozen=True)
class STVert:
    on_seam: int
    s: int
    t: int


@dataclass(frozen=True)
class Triangle:
    front: int
    verts: Tuple[int, int, int]


@dataclass(frozen=True)
class Vert:
    """Quantized position. The normal index is carried but never exported."""

    v: Tuple[int, int, int]
    normal: int


@dataclass
class Frame:
    type: FrameType
    mins: Vert
    maxs: Vert
    name: str
    verts: List[Vert] = field(default_factory=list)


@dataclass
class MdlFile:
    name: str
    header: MdlHeader
    skins: List[Skin]
    stverts: List[STVert]
    triangles: List[Triangle]
    frames: List[Frame]
