# src/heightmapper/cli.py

import argparse
import logging
import sys
from typing import Optional, List

from heightmapper.pipeline import HeightmapParams, export_heightmap

def setup_logging(level: int = logging.INFO) -> None:
    """
    Configures the standard logging format and level for the command-line interface.

    Args:
        level (int): The logging threshold level.
    """
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

def build_parser() -> argparse.ArgumentParser:
    """
    Declares the command-line surface. Defaults mirror HeightmapParams.
    """
    defaults = HeightmapParams()

    parser = argparse.ArgumentParser(
        prog="heightmapper",
        description="Rasterizes a LAS/LAZ point cloud into an encoded heightmap image "
                    "(R = intensity, G/B = 16-bit elevation in 1/256 units)."
    )
    parser.add_argument("input", help="Source .las or .laz file.")
    parser.add_argument("output", help="Destination image (.png, .tif or .tiff).")
    parser.add_argument(
        "--width",
        type=int,
        default=defaults.width,
        help=f"Number of raster columns. Defaults to {defaults.width}."
    )
    parser.add_argument(
        "--height",
        type=int,
        default=defaults.height,
        help=f"Number of raster rows. Defaults to {defaults.height}."
    )
    parser.add_argument(
        "--range",
        dest="search_range",
        type=int,
        default=defaults.search_range,
        help=f"Neighbourhood half-width in cells used to reconstruct each pixel. Defaults to {defaults.search_range}."
    )
    parser.add_argument(
        "--exclude",
        type=int,
        nargs="*",
        default=list(defaults.excluded_classes),
        metavar="CLASS",
        help="Classification codes to discard. Pass the flag with no values to keep every class. "
             f"Defaults to {' '.join(str(c) for c in defaults.excluded_classes)}."
    )
    parser.add_argument(
        "--z-datum",
        type=float,
        default=defaults.z_datum,
        help=f"Vertical datum subtracted from elevations. Defaults to {defaults.z_datum}."
    )
    parser.add_argument(
        "--extent",
        type=float,
        default=None,
        help="Fixed world span of the grid. Derived from the file bounds when omitted."
    )
    parser.add_argument(
        "--crs",
        type=str,
        default=None,
        help="Coordinate reference system to tag the output with (e.g. EPSG:32619)."
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enables debug logging."
    )
    return parser

def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments and runs a full rasterization.
    """
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    params = HeightmapParams(
        width=args.width,
        height=args.height,
        search_range=args.search_range,
        excluded_classes=tuple(args.exclude),
        z_datum=args.z_datum,
        extent=args.extent
    )

    try:
        path = export_heightmap(args.input, args.output, params=params, crs=args.crs)
    except (OSError, ValueError) as e:
        logging.error(f"Heightmap generation failed: {e}")
        sys.exit(1)

    logging.info(f"Heightmap written to {path}")

if __name__ == "__main__":
    main()
