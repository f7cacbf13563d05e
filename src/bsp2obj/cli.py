"""
Command Line Interface for the BSP to OBJ converter.

Provides the main entry point for converting BSP files to OBJ and MTL files.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .converter import ConverterConfig, convert_bsp_file


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s: %(message)s",
)
logger = logging.getLogger("bsp2obj")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bsp2obj",
        description="Convert Half-Life BSP files to Wavefront OBJ and MTL files.",
        epilog="""
Examples:
  bsp2obj c1a0.bsp
  bsp2obj -o exported/ c1a0.bsp c1a1.bsp
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    # Positional arguments
    parser.add_argument(
        "input",
        type=Path,
        nargs="+",
        help="Input .bsp file(s)",
    )

    parser.add_argument(
        "-o", "--destination",
        type=Path,
        metavar="DIR",
        help="Output directory (default: same directory as each input)",
    )

    # Verbosity
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output",
    )
    verbosity.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode",
    )

    # Version
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    return parser


def convert_file(
    bsp_path: Path,
    destination: Optional[Path] = None,
    config: Optional[ConverterConfig] = None,
    verbose: bool = False,
) -> int:
    """
    Convert one BSP file.

    Returns:
        Exit code (0 = success, 1 = error)
    """
    # Validate input
    if not bsp_path.exists():
        logger.error(f"Input file not found: {bsp_path}")
        return 1

    if not bsp_path.suffix.lower() == ".bsp":
        logger.warning(f"Input file may not be a BSP file: {bsp_path}")

    logger.info(f"Processing: {bsp_path}")

    try:
        result = convert_bsp_file(bsp_path, destination, config)
    except ValueError as e:
        logger.error(f"Invalid BSP file: {e}")
        return 1
    except OSError as e:
        logger.error(f"File error: {e}")
        return 1
    except Exception as e:
        logger.error(f"Conversion failed: {e}")
        if verbose:
            import traceback
            traceback.print_exc()
        return 1

    logger.info(f"Wrote {result.obj_path} and {result.mtl_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    # Configure logging level
    if args.quiet:
        logger.setLevel(logging.WARNING)
    elif args.verbose:
        logger.setLevel(logging.DEBUG)

    config = ConverterConfig()

    for bsp_path in args.input:
        exit_code = convert_file(bsp_path, args.destination, config, verbose=args.verbose)
        if exit_code != 0:
            return exit_code

    logger.info("Done!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
