from __future__ import annotations
import argparse
import logging
import os
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from libmdl.reader import MdlReadError, model_name, read_mdl
from libmdl.scene import ExportOptions, write_json
from libmdl.summary import summarize_mdl

console = Console()
log = logging.getLogger("mdl2json")


def setup_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def default_output(mdl_path: str) -> str:
    # written to the working directory, not next to the input
    return model_name(mdl_path) + ".json"


def print_summary(mdl) -> None:
    s = summarize_mdl(mdl)
    t = Table(title=f"{escape(s.name)} (MDL v{s.version})")
    t.add_column("Field")
    t.add_column("Value", justify="right", overflow="fold")
    t.add_row("Skin", f"{s.skin_width}x{s.skin_height} x{s.num_skins}")
    t.add_row("Vertices", str(s.num_verts))
    t.add_row("Triangles", str(s.num_triangles))
    t.add_row("Seam vertices", f"{s.seam_verts}" + (" (uvs doubled)" if s.has_seam else ""))
    t.add_row("Frames", str(s.num_frames))
    if s.num_frames > 1:
        t.add_row("Morph targets", escape(", ".join(s.frame_names)))
    console.print(t)


def cmd_convert(args: argparse.Namespace) -> int:
    out = args.out or default_output(args.mdl)

    try:
        mdl = read_mdl(args.mdl)
    except OSError as e:
        raise SystemExit(f"{args.mdl}: {e.strerror or e}")
    except MdlReadError as e:
        raise SystemExit(f"{args.mdl}: {e}")

    try:
        write_json(mdl, out, ExportOptions())
    except OSError as e:
        raise SystemExit(f"{out}: {e.strerror or e}")

    log.debug("converted %s -> %s", os.path.abspath(args.mdl), os.path.abspath(out))
    console.print(f"[green]Wrote:[/green] {escape(out)}")
    print_summary(mdl)
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="mdl2json", description="Convert a Quake MDL model to a JSON scene")
    p.add_argument("mdl", help="input model (.mdl)")
    p.add_argument("out", nargs="?", default=None, help="output scene (default: <model name>.json)")
    p.set_defaults(fn=cmd_convert)
    return p


def main(argv=None) -> int:
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.fn(args))


if __name__ == "__main__":
    raise SystemExit(main())
