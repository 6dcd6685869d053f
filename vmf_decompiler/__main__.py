"""
Command line entry point.

    vmf-decompiler map.bsp -o map.vmf
    python -m vmf_decompiler map.bsp --debug
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from vmf_decompiler.config import DecompileConfig, load_config
from vmf_decompiler.pipeline.decompiler import decompile_file
from vmf_decompiler.validation.core import DecompileError

logger = logging.getLogger("vmf_decompiler")


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Rebuild the brushes of a Source BSP as a VMF.")
    p.add_argument("bsp", type=Path, help="Input .bsp file")
    p.add_argument("-o", "--output", type=Path, default=None,
                   help="Output .vmf file (default: input name with .vmf suffix)")
    p.add_argument("--config", type=Path, default=None, help="JSON config file")
    p.add_argument("--debug", action="store_true", default=None,
                   help="Write decompile_debug blocks and log skipped sides as warnings")
    p.add_argument("--no-details", dest="write_details", action="store_false", default=None,
                   help="Keep detail brushes in worldspawn instead of func_detail entities")
    p.add_argument("--areaportals", dest="write_areaportals", action="store_true", default=None,
                   help="Leave areaportal brushes out of worldspawn")
    p.add_argument("--face-texture", default=None,
                   help="Force this material on every side")
    p.add_argument("--no-fix-tools", dest="fix_tool_textures", action="store_false", default=None,
                   help="Don't repair tool textures from brush contents and surface flags")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def build_config(args: argparse.Namespace) -> DecompileConfig:
    """Config file values, overridden by any flags given on the command line."""
    config = load_config(args.config) if args.config else DecompileConfig()

    overrides = {
        name: getattr(args, name)
        for name in ("debug", "write_details", "write_areaportals", "face_texture", "fix_tool_textures")
        if getattr(args, name) is not None
    }
    if overrides:
        config = dataclasses.replace(config, **overrides)
    config.validate()
    return config


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    output = args.output or args.bsp.with_suffix(".vmf")
    try:
        config = build_config(args)
        result = decompile_file(args.bsp, output, config)
    except DecompileError as exc:
        logger.error("%s", exc)
        return 1
    except OSError as exc:
        logger.error("Can't access file: %s", exc)
        return 1

    logger.info("Done in %.2fs: %s", result.elapsed_time, result.output_file)
    return 0


if __name__ == "__main__":
    sys.exit(main())
