"""
Text reports for decoded ADFS structures.

This module provides plain text reporting for:
- Old map contents (free space tables, disc name, boot option)
- New map disc records
- Directory listings with attributes, addresses and filetypes
- Whole-disc summaries
"""

from typing import List, Sequence

from adfs_inspector.core.directory import (
    Attribute,
    DirectoryEntry,
    DirectoryNode,
    FiletypeStamp,
    LoadExec,
)
from adfs_inspector.core.disc_record import DiscRecord
from adfs_inspector.core.formats import MapKind, boot_option_name
from adfs_inspector.core.old_map import OldMapRecord
from adfs_inspector.core.summary import DiscSummary


TIMESTAMP_FORMAT = '%H:%M:%S %d/%m/%Y'
INDENT = "  "


def _printable(raw: bytes) -> str:
    return ''.join(chr(c) if 32 <= c <= 126 else '.' for c in raw)


# =============================================================================
# Old Map
# =============================================================================

def old_map_report(record: OldMapRecord) -> str:
    """
    Generate a report of an old map.

    Only the free space entries in use are listed.

    Example:
        >>> print(old_map_report(decode_old_map(image)))
        FreeStart: 007 ...
        Disc name: "Welcome"
    """
    starts = ' '.join(f"{start:03x}" for start, _ in record.free_space)
    lengths = ' '.join(f"{length:03x}" for _, length in record.free_space)

    lines = [
        f"FreeStart: {starts}",
        f"Disc name: \"{record.disc_name}\"",
        f"Disc size in (256 byte) sectors: {record.total_sectors}",
        f"Check0: {record.check0:02x}",
        f"FreeLen: {lengths}",
        f"Disc ID: {record.disc_id:04x} ({record.disc_id})",
        f"Boot option: {record.boot_option_raw:02x} {boot_option_name(record.boot_option_raw)}",
        f"FreeEnd: {record.free_end:02x}",
        f"Check1: {record.check1:02x}",
        f"Free space: {record.free_sectors} sectors in {len(record.free_space)} entries",
    ]
    return "\n".join(lines)


# =============================================================================
# Disc Record
# =============================================================================

def disc_record_report(record: DiscRecord) -> str:
    """Generate a report of a new map disc record."""
    lines = [
        "ADFS Disc Record",
        f"Sector size in bytes: {record.sector_size}",
        f"Sectors/track: {record.secspertrack}",
        f"Heads: {record.heads} ({record.head_layout})",
        f"Density: {record.density} {record.density_name}",
        f"ID field length of a map fragment in bits: {record.idlen}",
    ]
    if not record.idlen_valid:
        lines.append("Invalid idlen size")

    lines.extend([
        f"Bytes/map bit: 0x{record.log2bpmb:02x} ({record.bytes_per_map_bit})",
        f"Track to track skew: {record.skew}",
        f"Boot option: {record.bootoption} {boot_option_name(record.bootoption)}",
        f"Lowest sector: {record.lowest_sector}",
        f"Treat sides as {'sequence' if record.sides_sequenced else 'interleaved'}",
        f"Disc is {record.tracks} track",
        f"Zones in map: {record.zones}",
        f"Non-allocation bits between zones: 0x{record.zone_spare:04x}",
        f"Root directory address: 0x{record.root:08x}",
        f"Disc size in bytes: {record.total_disc_size}",
        f"Disc cycle ID: 0x{record.disc_id:04x}",
        f"Disc name: \"{_printable(record.disc_name_raw)}\"",
        f"Disc filetype: 0x{record.disc_type:08x}",
        f"Share size: 0x{record.log2sharesize:02x}",
        f"Big flag: 0x{record.big_flag:02x}",
        f"Root size: 0x{record.root_size:08x}",
    ])
    return "\n".join(lines)


# =============================================================================
# Directory Listings
# =============================================================================

def attribute_string(attributes: Attribute) -> str:
    """
    Six-letter access string: R W L D/F r w.

    Executable objects show as readable.

    Example:
        >>> attribute_string(Attribute.OWNER_READ | Attribute.DIRECTORY)
        'R--D--'
    """
    readable = attributes & (Attribute.OWNER_READ | Attribute.EXECUTABLE)
    return ''.join((
        'R' if readable else '-',
        'W' if attributes & Attribute.OWNER_WRITE else '-',
        'L' if attributes & Attribute.LOCKED else '-',
        'D' if attributes & Attribute.DIRECTORY else 'F',
        'r' if attributes & Attribute.PUBLIC_READ else '-',
        'w' if attributes & Attribute.PUBLIC_WRITE else '-',
    ))


def format_entry_line(entry: DirectoryEntry, depth: int = 0,
                      show_indirect: bool = True) -> str:
    """
    One listing line for a directory entry.

    Name padded to 10, attributes, length, indirect address (old map),
    then load/exec addresses or timestamp and filetype.
    """
    parts = [f"{INDENT * depth}{entry.name:<10}", attribute_string(entry.attributes),
             f"{entry.length:10d}"]

    if show_indirect:
        parts.append(f"{entry.indirect_address:06x}")

    info = entry.info
    if isinstance(info, LoadExec):
        parts.append(f"{info.load_address:08x}")
        parts.append(f"{info.exec_address:08x}")
    elif isinstance(info, FiletypeStamp):
        if info.timestamp is not None:
            parts.append(info.timestamp.strftime(TIMESTAMP_FORMAT))
        parts.append(f"{info.filetype:03x} {info.filetype_name}".rstrip())

    return ' '.join(parts)


def directory_listing(nodes: Sequence[DirectoryNode], depth: int = 0,
                      show_indirect: bool = True) -> List[str]:
    """
    Listing lines for a tree, children indented under their directory.

    Returns:
        Lines in walk order
    """
    lines = []
    for node in nodes:
        lines.append(format_entry_line(node.entry, depth, show_indirect))
        if node.children:
            lines.extend(directory_listing(node.children, depth + 1, show_indirect))
    return lines


# =============================================================================
# Whole Disc
# =============================================================================

def describe_disc(summary: DiscSummary, include_tree: bool = True) -> str:
    """
    Generate a complete text report for an inspected disc.

    Args:
        summary: Result of inspect_disc()
        include_tree: Append the directory listing

    Returns:
        Multi-line report
    """
    disc_format = summary.disc_format
    lines = [
        "=" * 70,
        "ADFS DISC REPORT",
        "=" * 70,
        f"Format: {disc_format.label}",
    ]

    if not disc_format.is_known:
        lines.append(f"Reason: {summary.detection.reason}")
        return "\n".join(lines)

    lines.append(f"Title: \"{summary.title}\"")
    lines.append("")

    if summary.old_map is not None:
        lines.append(old_map_report(summary.old_map))
    if summary.disc_record is not None:
        lines.append(disc_record_report(summary.disc_record))

    if include_tree:
        lines.append("")
        if summary.root_offset is None:
            lines.append("Directory tree: not available for new map discs")
        else:
            lines.append(f"Directory tree at 0x{summary.root_offset:x} "
                         f"({summary.object_count} objects)")
            lines.extend(directory_listing(
                summary.tree,
                show_indirect=disc_format.map_kind is MapKind.OLD_MAP,
            ))

    return "\n".join(lines)
