from __future__ import annotations
from .model import MdlFile, MdlSummary


def summarize_mdl(mdl: MdlFile) -> MdlSummary:
    hdr = mdl.header
    return MdlSummary(
        name=mdl.name,
        version=hdr.version,
        skin_width=hdr.skin_width,
        skin_height=hdr.skin_height,
        num_skins=len(mdl.skins),
        num_verts=len(mdl.stverts),
        num_triangles=len(mdl.triangles),
        num_frames=len(mdl.frames),
        seam_verts=sum(1 for st in mdl.stverts if st.on_seam),
        frame_names=[f.name for f in mdl.frames],
    )
