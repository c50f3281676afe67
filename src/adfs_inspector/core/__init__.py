"""
Core ADFS decoding.

This package decodes the on-disc structures of ADFS floppies: the old
and new free space maps, the disc record, and the directory tree, and
identifies which ADFS format an image holds.
"""

from adfs_inspector.core.errors import (
    AdfsError,
    MissingSectorError,
    TruncatedSectorError,
    ChecksumMismatchError,
    StructuralInvariantError,
    UnrecognizedFormatError,
)

from adfs_inspector.core.formats import (
    DiscFormat,
    MapKind,
    DirKind,
    OrderingPolicy,
    BootOption,
    boot_option_name,
    ordering_for,
    root_directory_offset,
)

from adfs_inspector.core.checksum import (
    checksum,
    zone_validity_byte,
    boot_block_checksum_valid,
)

from adfs_inspector.core.values import (
    read_le,
    read_le_array,
)

from adfs_inspector.core.old_map import (
    OldMapRecord,
    parse_old_map,
    old_map_problems,
    validate_old_map,
    decode_old_map,
    disc_title,
)

from adfs_inspector.core.disc_record import (
    DiscRecord,
    parse_disc_record,
    decode_disc_record,
    validate_disc_record,
)

from adfs_inspector.core.detector import (
    DetectionResult,
    inspect_format,
    detect_format,
    require_format,
)

from adfs_inspector.core.directory import (
    Attribute,
    LoadExec,
    FiletypeStamp,
    DirectoryEntry,
    DirectoryNode,
    DirectoryWalker,
    iter_nodes,
    parse_entry,
    walk,
    walk_directory,
)

from adfs_inspector.core.filetypes import (
    FILETYPE_NAMES,
    filetype_name,
)

from adfs_inspector.core.settings import (
    Settings,
    InspectorSettings,
    WalkerSettings,
    DetectionSettings,
    LoggingSettings,
    get_settings,
)

from adfs_inspector.core.summary import (
    DiscSummary,
    inspect_disc,
)

__all__ = [
    # Errors
    'AdfsError',
    'MissingSectorError',
    'TruncatedSectorError',
    'ChecksumMismatchError',
    'StructuralInvariantError',
    'UnrecognizedFormatError',

    # Formats
    'DiscFormat',
    'MapKind',
    'DirKind',
    'OrderingPolicy',
    'BootOption',
    'boot_option_name',
    'ordering_for',
    'root_directory_offset',

    # Checksums and values
    'checksum',
    'zone_validity_byte',
    'boot_block_checksum_valid',
    'read_le',
    'read_le_array',

    # Maps
    'OldMapRecord',
    'parse_old_map',
    'old_map_problems',
    'validate_old_map',
    'decode_old_map',
    'disc_title',
    'DiscRecord',
    'parse_disc_record',
    'decode_disc_record',
    'validate_disc_record',

    # Detection
    'DetectionResult',
    'inspect_format',
    'detect_format',
    'require_format',

    # Directories
    'Attribute',
    'LoadExec',
    'FiletypeStamp',
    'DirectoryEntry',
    'DirectoryNode',
    'DirectoryWalker',
    'iter_nodes',
    'parse_entry',
    'walk',
    'walk_directory',
    'FILETYPE_NAMES',
    'filetype_name',

    # Settings
    'Settings',
    'InspectorSettings',
    'WalkerSettings',
    'DetectionSettings',
    'LoggingSettings',
    'get_settings',

    # Whole disc
    'DiscSummary',
    'inspect_disc',
]
