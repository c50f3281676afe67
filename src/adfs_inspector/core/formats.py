"""
ADFS format tags and the geometry each one implies.

A detected DiscFormat fully determines the sector size, map kind,
directory kind and nominal sectors per track; none of these are stored
separately so they can never disagree.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum, auto
from typing import Dict, Optional


# Sector sizes
ADFS_8BIT_SECTOR_SIZE = 256
ADFS_16BIT_SECTOR_SIZE = 1024

# Old map disc addresses are always in 256 byte units, even on D format
OLD_MAP_ALLOCATION_UNIT = ADFS_8BIT_SECTOR_SIZE

# Root directory follows the two old map sectors (PRM 2-200)
OLD_DIR_ROOT_OFFSET = ADFS_8BIT_SECTOR_SIZE * 2
NEW_DIR_ROOT_OFFSET = ADFS_16BIT_SECTOR_SIZE

# Track width used by the directory stream ordering policy
DIRECTORY_TRACK_WIDTH = 80


class MapKind(Enum):
    """Free-space map encodings."""
    OLD_MAP = auto()   # Fixed FreeStart/FreeLen tables (S/M/L/D)
    NEW_MAP = auto()   # Zone bitmap with disc record (E/F/G)


class DirKind(Enum):
    """Directory record encodings."""
    OLD_DIR = auto()   # "Hugo", 47 entries, attributes in name high bits
    NEW_DIR = auto()   # "Nick", 77 entries, attribute byte per entry


class OrderingPolicy(Enum):
    """How logical tracks map onto cylinders and heads."""
    SEQUENCED = auto()     # All of side 0, then all of side 1
    INTERLEAVED = auto()   # Track n on cylinder n//2, head n%2


class BootOption(IntEnum):
    """*OPT 4 boot actions."""
    NO_ACTION = 0
    LOAD = 1
    RUN = 2
    EXEC = 3


BOOT_OPTION_NAMES: Dict[int, str] = {
    BootOption.NO_ACTION: "No action",
    BootOption.LOAD: "*Load boot file",
    BootOption.RUN: "*Run boot file",
    BootOption.EXEC: "*Exec boot file",
}


def boot_option_name(value: int) -> str:
    """Human readable name of a boot option value."""
    return BOOT_OPTION_NAMES.get(value, "Unknown")


@dataclass(frozen=True)
class FormatGeometry:
    """
    Layout implied by a disc format.

    Attributes:
        sector_size: Physical sector size in bytes
        map_kind: Free-space map encoding
        dir_kind: Directory encoding
        sectors_per_track: Nominal sectors per track
    """
    sector_size: int
    map_kind: MapKind
    dir_kind: DirKind
    sectors_per_track: int


class DiscFormat(Enum):
    """ADFS disc formats distinguishable by detection."""
    UNKNOWN = "Unknown"
    S = "S"
    M = "M"
    L = "L"
    D = "D"
    E = "E"
    E_PLUS = "E+"
    F = "F"
    F_PLUS = "F+"
    G = "G"

    @property
    def geometry(self) -> Optional[FormatGeometry]:
        """Geometry for this format, None when unknown."""
        return _FORMAT_GEOMETRY.get(self)

    @property
    def sector_size(self) -> Optional[int]:
        geometry = self.geometry
        return geometry.sector_size if geometry else None

    @property
    def map_kind(self) -> Optional[MapKind]:
        geometry = self.geometry
        return geometry.map_kind if geometry else None

    @property
    def dir_kind(self) -> Optional[DirKind]:
        geometry = self.geometry
        return geometry.dir_kind if geometry else None

    @property
    def sectors_per_track(self) -> Optional[int]:
        geometry = self.geometry
        return geometry.sectors_per_track if geometry else None

    @property
    def is_known(self) -> bool:
        return self is not DiscFormat.UNKNOWN

    @property
    def label(self) -> str:
        """Display name, e.g. "ADFS E+"."""
        if self is DiscFormat.UNKNOWN:
            return "Unknown"
        return f"ADFS {self.value}"


_OLD_SMALL = FormatGeometry(ADFS_8BIT_SECTOR_SIZE, MapKind.OLD_MAP, DirKind.OLD_DIR, 16)

_FORMAT_GEOMETRY: Dict[DiscFormat, FormatGeometry] = {
    DiscFormat.S: _OLD_SMALL,
    DiscFormat.M: _OLD_SMALL,
    DiscFormat.L: _OLD_SMALL,
    DiscFormat.D: FormatGeometry(ADFS_16BIT_SECTOR_SIZE, MapKind.OLD_MAP, DirKind.NEW_DIR, 5),
    DiscFormat.E: FormatGeometry(ADFS_16BIT_SECTOR_SIZE, MapKind.NEW_MAP, DirKind.NEW_DIR, 5),
    DiscFormat.E_PLUS: FormatGeometry(ADFS_16BIT_SECTOR_SIZE, MapKind.NEW_MAP, DirKind.NEW_DIR, 5),
    DiscFormat.F: FormatGeometry(ADFS_16BIT_SECTOR_SIZE, MapKind.NEW_MAP, DirKind.NEW_DIR, 10),
    DiscFormat.F_PLUS: FormatGeometry(ADFS_16BIT_SECTOR_SIZE, MapKind.NEW_MAP, DirKind.NEW_DIR, 10),
    DiscFormat.G: FormatGeometry(ADFS_16BIT_SECTOR_SIZE, MapKind.NEW_MAP, DirKind.NEW_DIR, 20),
}

# Old map total sector counts (256 byte units) for each format
OLD_MAP_SIZES: Dict[int, DiscFormat] = {
    3200: DiscFormat.D,   # 5 * 4 * 80 * 2
    2560: DiscFormat.L,   # 16 * 80 * 2
    1280: DiscFormat.M,   # 16 * 80 * 1
    640: DiscFormat.S,    # 16 * 40 * 1
}


def ordering_for(dir_kind: DirKind) -> OrderingPolicy:
    """Stream ordering used when reading directories of this kind."""
    if dir_kind is DirKind.OLD_DIR:
        return OrderingPolicy.SEQUENCED
    return OrderingPolicy.INTERLEAVED


def root_directory_offset(disc_format: DiscFormat) -> Optional[int]:
    """
    Absolute byte offset of the root directory on an old map disc.

    Returns None for new map and unknown formats, whose root is located
    through the map.
    """
    if disc_format.map_kind is not MapKind.OLD_MAP:
        return None
    if disc_format.dir_kind is DirKind.NEW_DIR:
        return NEW_DIR_ROOT_OFFSET
    return OLD_DIR_ROOT_OFFSET
