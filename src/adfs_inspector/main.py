"""
Main entry point for ADFS Inspector.

This module provides the main() function behind the adfs-inspect command:
load a raw image, detect its ADFS format and print what it holds.

Exit codes:
    0  ADFS format recognised
    1  No ADFS format recognised
    2  Image could not be loaded
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from adfs_inspector import __version__
from adfs_inspector.analysis.reporter import (
    attribute_string,
    disc_record_report,
    old_map_report,
)
from adfs_inspector.core.directory import FiletypeStamp, LoadExec, iter_nodes
from adfs_inspector.core.disc_record import DiscRecord
from adfs_inspector.core.formats import MapKind
from adfs_inspector.core.settings import Settings, get_settings
from adfs_inspector.core.summary import DiscSummary, inspect_disc
from adfs_inspector.imaging.image_formats import ImageError
from adfs_inspector.imaging.sector_image import SectorImage
from adfs_inspector.utils.error_handler import describe_error, is_fatal_error
from adfs_inspector.utils.logging import (
    log_detection,
    log_image_info,
    log_operation,
    setup_logging,
)

logger = logging.getLogger(__name__)

EXIT_RECOGNISED = 0
EXIT_UNRECOGNISED = 1
EXIT_LOAD_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    parser = argparse.ArgumentParser(
        prog='adfs-inspect',
        description='Identify an ADFS floppy image and list its contents.',
    )
    parser.add_argument('image', help='raw .adf/.adl/.img image file')
    parser.add_argument('--no-tree', action='store_true',
                        help='do not walk the directory tree')
    parser.add_argument('--settings', metavar='FILE',
                        help='settings file to use instead of the default')
    parser.add_argument('--log-file', metavar='FILE',
                        help='write a log file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='show progress and debug logging')
    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {__version__}')
    return parser


def _log_disc_record(record: DiscRecord) -> None:
    for line in disc_record_report(record).splitlines():
        logger.info("%s", line)


def _directory_table(summary: DiscSummary) -> Table:
    """Directory tree as a rich table, one row per object."""
    show_indirect = summary.disc_format.map_kind is MapKind.OLD_MAP

    table = Table(title=f"Directory tree ({summary.object_count} objects)")
    table.add_column("Path")
    table.add_column("Access")
    table.add_column("Length", justify="right")
    if show_indirect:
        table.add_column("Address")
    table.add_column("Load/Time")
    table.add_column("Exec/Type")

    for path, _, node in iter_nodes(summary.tree):
        entry = node.entry
        row = [path, attribute_string(entry.attributes), str(entry.length)]
        if show_indirect:
            row.append(f"{entry.indirect_address:06x}")

        info = entry.info
        if isinstance(info, LoadExec):
            row.extend([f"{info.load_address:08x}", f"{info.exec_address:08x}"])
        elif isinstance(info, FiletypeStamp):
            when = info.timestamp.strftime('%Y-%m-%d %H:%M:%S') if info.timestamp else ""
            row.extend([when, f"{info.filetype:03x} {info.filetype_name}".rstrip()])
        table.add_row(*(Text(cell) for cell in row))

    return table


def render_summary(console: Console, summary: DiscSummary, show_tree: bool = True) -> None:
    """Print an inspected disc to a rich console."""
    disc_format = summary.disc_format

    if not disc_format.is_known:
        console.print(f"Format: {disc_format.label}", markup=False)
        console.print(f"Reason: {summary.detection.reason}", markup=False)
        return

    console.print(f"[bold]Format:[/bold] {disc_format.label}")
    console.print(f"Title: \"{summary.title}\"", markup=False)

    if summary.old_map is not None:
        console.print(old_map_report(summary.old_map), markup=False, highlight=False)
    if summary.disc_record is not None:
        console.print(disc_record_report(summary.disc_record), markup=False, highlight=False)

    if not show_tree:
        return

    if summary.root_offset is None:
        console.print("Directory tree: not available for new map discs")
    elif summary.tree:
        console.print(_directory_table(summary))
    else:
        console.print("Directory tree: empty")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for ADFS Inspector.

    Args:
        argv: Arguments, sys.argv[1:] when None

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)

    settings = Settings(args.settings) if args.settings else get_settings()

    level = logging.DEBUG if args.verbose else settings.logging.get_level()
    console_level = logging.INFO if args.verbose else logging.WARNING
    setup_logging(args.log_file or settings.logging.log_file, level, console_level)

    console = Console()

    try:
        image = SectorImage.load(args.image)
    except (ImageError, OSError) as e:
        logger.error("Failed to load %s: %s", args.image, e)
        console.print(describe_error(e, "load"), markup=False)
        if is_fatal_error(e):
            return EXIT_LOAD_ERROR
        raise

    log_image_info(args.image, image.geometry)

    report = _log_disc_record if settings.detection.report_disc_records else None
    summary = inspect_disc(image, settings.walker, report, walk_tree=not args.no_tree)
    log_detection(summary.disc_format, summary.detection.reason)
    if summary.root_offset is not None:
        log_operation("walk", f"{summary.object_count} objects from 0x{summary.root_offset:X}",
                      logging.DEBUG)

    render_summary(console, summary, show_tree=not args.no_tree)

    if summary.disc_format.is_known:
        return EXIT_RECOGNISED
    return EXIT_UNRECOGNISED


if __name__ == "__main__":
    sys.exit(main())
