from .model import MdlFile, MdlSummary
from .reader import MdlFormatError, MdlReadError, UnsupportedFrameError, read_mdl, read_mdl_stream
from .scene import ExportOptions, build_scene, write_json
from .summary import summarize_mdl

__all__ = [
    "MdlFile",
    "MdlSummary",
    "MdlReadError",
    "MdlFormatError",
    "UnsupportedFrameError",
    "read_mdl",
    "read_mdl_stream",
    "ExportOptions",
    "build_scene",
    "write_json",
    "summarize_mdl",
]
