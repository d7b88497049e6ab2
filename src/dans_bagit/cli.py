"""Command-line interface for dans-bagit."""

import argparse
import json
import logging
import shutil
import sys
import tempfile
from pathlib import Path

from dans_bagit.builder import DANSBagBuilder
from dans_bagit.metadata import DDM, DIM
from dans_bagit.reader import DANSBagReader
from dans_bagit.segments import FileSegmentIterator
from dans_bagit.tag_file import TagFile
from schemas.request import BagRequest

DEFAULT_SEGMENT_SIZE = 100 * 1024 * 1024
SEGMENT_MANIFEST = "segments-md5.txt"


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the CLI."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def build_bag(args: argparse.Namespace) -> int:
    """Execute the build command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    request_path = args.request.resolve()
    if not request_path.exists():
        logger.error(f"Build request not found: {request_path}")
        return 1

    output = args.output.resolve()
    if output.exists():
        logger.error(f"Bag zip already exists: {output}")
        return 1

    working_dir = args.working_dir or Path(tempfile.mkdtemp(prefix="dans-bagit-"))

    try:
        request = BagRequest.model_validate(json.loads(request_path.read_text()))
        builder = DANSBagBuilder(
            request.name, output, working_dir, is_version_of=request.is_version_of
        )

        if request.dataset_metadata:
            builder.set_dataset_metadata(_build_dim(request.dataset_metadata))
        for ident, fields in request.data_files.items():
            builder.set_datafile_metadata(_build_dim(fields), ident)
        if request.profile or request.dcmi:
            ddm = DDM()
            for field in request.profile:
                ddm.add_profile_field(field.field, field.value, field.attrs or None)
            for field in request.dcmi:
                ddm.add_dcmi_field(field.field, field.value, field.attrs or None)
            builder.set_dataset_profile(ddm)

        for bitstream in request.bitstreams:
            source_path = request_path.parent / bitstream.path
            with source_path.open("rb") as source:
                builder.add_bitstream(
                    source,
                    bitstream.filename or source_path.name,
                    bitstream.format,
                    bitstream.description,
                    bitstream.data_file_ident,
                    bitstream.bundle,
                )

        builder.finalize()

        logger.info(f"Built bag: {builder.base}")
        logger.info(f"  Bitstreams: {len(builder.bitstreams)}")
        logger.info(f"  Size: {builder.size()} bytes")
        logger.info(f"  MD5: {builder.md5()}")
        logger.info(f"  Output: {output}")

        return 0

    except Exception as e:
        logger.error(f"Failed to build bag: {e}")
        return 1

    finally:
        if not args.keep_working_dir and working_dir.exists():
            shutil.rmtree(working_dir)


def inspect_bag(args: argparse.Namespace) -> int:
    """Execute the inspect command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    bag_path = args.bag.resolve()
    if not bag_path.exists():
        logger.error(f"Bag zip not found: {bag_path}")
        return 1

    try:
        reader = DANSBagReader(bag_path)

        logger.info(f"Bag: {reader.name}")
        if reader.bag_info is not None:
            logger.info(f"  Created: {reader.bag_info.created}")
            if reader.bag_info.is_version_of:
                logger.info(f"  Is-Version-Of: {reader.bag_info.is_version_of}")
        for ident in reader.list_data_files():
            logger.info(f"  Data file: {ident}")
            for bundle in reader.list_bundles(ident):
                logger.info(f"    Bundle: {bundle}")
                for entry in reader.list_bitstreams(ident, bundle):
                    logger.info(
                        f"      {entry.filename} ({entry.size} bytes, "
                        f"{entry.format or 'unknown format'}, md5 {entry.md5})"
                    )

        return 0

    except Exception as e:
        logger.error(f"Failed to read bag: {e}")
        return 1


def segment_bag(args: argparse.Namespace) -> int:
    """Execute the segment command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    setup_logging(args.verbose)
    logger = logging.getLogger(__name__)

    bag_path = args.bag.resolve()
    if not bag_path.exists():
        logger.error(f"Bag zip not found: {bag_path}")
        return 1

    output_dir = args.output
    output_dir.mkdir(parents=True, exist_ok=True)

    try:
        checksums = TagFile()
        count = 0
        with FileSegmentIterator(bag_path, args.size, md5=args.md5) as segments:
            for segment in segments:
                name = f"{bag_path.name}.{segment.index + 1:03d}"
                (output_dir / name).write_bytes(segment.read())
                if segment.md5:
                    checksums.add(name, segment.md5)
                count += 1

        if checksums.has_entries():
            (output_dir / SEGMENT_MANIFEST).write_text(checksums.serialize())

        logger.info(f"Segmented bag: {bag_path.name}")
        logger.info(f"  Segments: {count}")
        logger.info(f"  Output: {output_dir}")

        return 0

    except Exception as e:
        logger.error(f"Failed to segment bag: {e}")
        return 1


def _build_dim(fields) -> DIM:
    dim = DIM()
    for field in fields:
        dim.add_dspace_field(field.field, field.value)
    return dim


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = argparse.ArgumentParser(
        prog="dans-bagit",
        description="Build, inspect and segment DANS BagIt packages",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
    )

    build_parser = subparsers.add_parser(
        "build",
        help="Build a bag zip from a JSON build request",
        description="Stage the bitstreams and metadata described in a JSON build request and write a DANS BagIt zip.",
    )
    build_parser.add_argument(
        "--request",
        type=Path,
        required=True,
        help="Path to the JSON build request",
    )
    build_parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Path of the bag zip to write",
    )
    build_parser.add_argument(
        "--working-dir",
        type=Path,
        default=None,
        help="Directory for staging bitstreams (default: a new temporary directory)",
    )
    build_parser.add_argument(
        "--keep-working-dir",
        action="store_true",
        help="Do not remove the working directory after building",
    )
    build_parser.set_defaults(func=build_bag)

    inspect_parser = subparsers.add_parser(
        "inspect",
        help="List the contents of a bag zip",
        description="Load a DANS BagIt zip and list its data files, bundles and bitstreams.",
    )
    inspect_parser.add_argument(
        "--bag",
        type=Path,
        required=True,
        help="Path to the bag zip",
    )
    inspect_parser.set_defaults(func=inspect_bag)

    segment_parser = subparsers.add_parser(
        "segment",
        help="Split a bag zip into fixed-size segments",
        description="Split a DANS BagIt zip into fixed-size segment files for chunked deposit.",
    )
    segment_parser.add_argument(
        "--bag",
        type=Path,
        required=True,
        help="Path to the bag zip",
    )
    segment_parser.add_argument(
        "--output",
        type=Path,
        required=True,
        help="Directory to write segment files to",
    )
    segment_parser.add_argument(
        "--size",
        type=int,
        default=DEFAULT_SEGMENT_SIZE,
        help=f"Segment size in bytes (default: {DEFAULT_SEGMENT_SIZE})",
    )
    segment_parser.add_argument(
        "--md5",
        action="store_true",
        help=f"Compute an MD5 per segment and write {SEGMENT_MANIFEST}",
    )
    segment_parser.set_defaults(func=segment_bag)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
