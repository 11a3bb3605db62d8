#!/usr/bin/env python3
"""
WRP world decoder command line.

  wrp-decoder info <input.wrp> [output_dir]
  wrp-decoder forest <input.wrp> <output.geojson|->
"""
import sys
import logging
import argparse
from pathlib import Path
from typing import List, Optional

from .base.binary_reader import WorldParseError
from .decoder import read_file
from .forest import extract_from_objects
from .json_handler import build_forest_geojson, build_world_json, dump_json, save_world_outputs
from .models import ReadOptions, WorldData
from .utils import log_exception, setup_logging

DEFAULT_OFFSET_X = 200000.0
DEFAULT_OFFSET_Z = 0.0


def _console_level(args: argparse.Namespace) -> int:
    if args.debug or args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    return logging.WARNING


def _print_summary(world: WorldData, input_path: str) -> None:
    err = sys.stderr
    print(f"Parsed: {input_path} ({world.format.signature} v{world.format.version})", file=err)
    print(f"Grid: {world.grid.land_size_x}x{world.grid.land_size_y} cells "
          f"({world.grid.cell_size:.0f}m cell size)", file=err)
    print(f"World: {world.bounds.world_size_x:.0f}x{world.bounds.world_size_y:.0f}m, "
          f"elevation {world.bounds.min_elevation:.1f}..{world.bounds.max_elevation:.1f}m", file=err)
    print(f"Textures: {world.stats.texture_count}, Models: {world.stats.model_count}, "
          f"Objects: {world.stats.object_count}", file=err)
    if world.stats.road_net_count > 0:
        print(f"Road nets: {world.stats.road_net_count}", file=err)
    if world.warnings:
        print(f"Warnings: {len(world.warnings)}", file=err)
        for warning in world.warnings:
            print(f"  [{warning.kind}] {warning.message}", file=err)


def run_info(args: argparse.Namespace) -> int:
    """Decode a world and write its summary files"""
    input_path = Path(args.input)
    json_stdout = args.json or args.output_dir == '-'
    if args.output_dir and args.output_dir != '-':
        output_dir = Path(args.output_dir)
    else:
        output_dir = input_path.parent / f"{input_path.stem}_info"

    logger = setup_logging(
        None if json_stdout else output_dir,
        debug=args.debug,
        console_level=_console_level(args),
    )

    # world.json alone never needs the object list
    options = ReadOptions(skip_objects=args.no_objects or json_stdout)
    logger.info(f"Reading {input_path}")
    try:
        world = read_file(input_path, options)
    except (OSError, WorldParseError) as e:
        log_exception(logger, f"Error parsing {input_path}", e)
        return 1

    if json_stdout:
        dump_json(build_world_json(world), sys.stdout, args.pretty)
        return 0

    try:
        written = save_world_outputs(world, output_dir, args.pretty, args.offset_x, args.offset_z)
    except OSError as e:
        log_exception(logger, "Error writing output", e)
        return 1
    for path in written:
        logger.debug(f"Wrote {path}")

    _print_summary(world, str(input_path))
    print(f"Output: {output_dir}", file=sys.stderr)
    return 0


def run_forest(args: argparse.Namespace) -> int:
    """Extract forest polygons and write them as GeoJSON"""
    logger = setup_logging(None, debug=args.debug, console_level=_console_level(args))

    try:
        world = read_file(args.input)
    except (OSError, WorldParseError) as e:
        log_exception(logger, f"Error parsing {args.input}", e)
        return 1

    if not world.objects:
        logger.error(f"No objects in {args.input}")
        return 1

    polygons = extract_from_objects(world.objects)
    if not polygons:
        logger.error(f"No forest objects found in {args.input}")
        return 1

    total_area = sum(p.area for p in polygons)
    print(f"Source: {args.input} ({world.format.signature} v{world.format.version})", file=sys.stderr)
    print(f"Polygons: {len(polygons)} forest areas", file=sys.stderr)
    print(f"Total forest area: {total_area / 1e6:.2f} km^2 ({total_area:.0f} m^2)", file=sys.stderr)

    if args.index is not None:
        if not 0 <= args.index < len(polygons):
            logger.error(f"Index {args.index} out of range (0..{len(polygons) - 1})")
            return 1
        selected = polygons[args.index]
        logger.info(f"Exporting shape index {args.index} (ID={selected.id}, type={selected.type.value}, "
                    f"cells={selected.cell_count}, area={selected.area:.0f} m^2)")
        polygons = [selected]

    doc = build_forest_geojson(polygons, args.offset_x, args.offset_z)
    if args.output == '-':
        dump_json(doc, sys.stdout, args.pretty)
        return 0

    try:
        with open(args.output, 'w', encoding='utf-8') as f:
            dump_json(doc, f, args.pretty)
    except OSError as e:
        log_exception(logger, f"Cannot create {args.output}", e)
        return 1
    print(f"Output: {args.output}", file=sys.stderr)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='wrp-decoder',
        description='Decode WRP world files (OPRW, 4WVR, 1WVR)'
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--pretty', action='store_true', help='Pretty-print JSON output')
    common.add_argument('-v', '--verbose', action='count', default=0, help='Verbose logging (repeat for debug)')
    common.add_argument('--debug', action='store_true', help='Enable debug logging')
    common.add_argument('--offset-x', type=float, default=DEFAULT_OFFSET_X,
                        help='X coordinate offset (default: %(default)s)')
    common.add_argument('--offset-z', type=float, default=DEFAULT_OFFSET_Z,
                        help='Z coordinate offset (default: %(default)s)')

    subparsers = parser.add_subparsers(dest='command', required=True)

    info = subparsers.add_parser('info', parents=[common], help='Write world summary files')
    info.add_argument('input', help='Input .wrp file')
    info.add_argument('output_dir', nargs='?', help="Output directory ('-' for world.json on stdout)")
    info.add_argument('--json', action='store_true', help='Write world.json to stdout instead of files')
    info.add_argument('--no-objects', action='store_true', help='Skip object records')
    info.set_defaults(func=run_info)

    forest = subparsers.add_parser('forest', parents=[common], help='Extract forest polygons as GeoJSON')
    forest.add_argument('input', help='Input .wrp file')
    forest.add_argument('output', help="Output .geojson file ('-' for stdout)")
    forest.add_argument('--index', type=int, help='Export only the polygon at this 0-based index')
    forest.set_defaults(func=run_forest)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
