"""
ADFS Inspector - Acorn ADFS disk image inspection.

Identifies which ADFS format (S, M, L, D, E, E+, F, F+, G) a raw floppy
image holds, decodes its free space map or disc record, and lists its
directory tree. Images are never modified.
"""

__version__ = "1.0.0"
__license__ = "MIT"

from adfs_inspector.core import (
    DiscFormat,
    detect_format,
    decode_old_map,
    decode_disc_record,
    disc_title,
    walk_directory,
    filetype_name,
    inspect_disc,
)

from adfs_inspector.imaging import (
    SectorImage,
    SectorStream,
)

__all__ = [
    "__version__",

    # Detection and decoding
    "DiscFormat",
    "detect_format",
    "decode_old_map",
    "decode_disc_record",
    "disc_title",
    "walk_directory",
    "filetype_name",
    "inspect_disc",

    # Sector access
    "SectorImage",
    "SectorStream",
]
