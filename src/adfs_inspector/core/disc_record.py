"""
New map disc record decoding.

The disc record is the 64-byte geometry and identity header of a new map
disc. It appears at offset 4 of map zone 0 on discs without a boot block
(E format), and at 0x1C0 into the boot block at disc address 0xC00 on
discs that have one (F and G formats, RISC OS PRM 2-213). On a floppy
with 1024-byte sectors 0xC00 is cylinder 0, head 0, sector 3.
"""

import logging
from dataclasses import dataclass

from .errors import StructuralInvariantError
from .formats import ADFS_16BIT_SECTOR_SIZE
from .values import read_le

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DISC_RECORD_SIZE = 64

# Where the record sits
NEW_MAP_DISC_RECORD_OFFSET = 4
BOOT_BLOCK_DISC_RECORD_OFFSET = 0x1C0
BOOT_BLOCK_SECTOR = (0, 0, 3)

# idlen upper bound
MAX_IDLEN = 19

DISC_NAME_LEN = 10
DISC_NAME_TERMINATORS = (0x00, 0x0D, 0x0A)

# lowsector packed flags
LOWSECTOR_MASK = 0x3F
LOWSECTOR_SEQUENCE_SIDES = 0x40
LOWSECTOR_40_TRACK = 0x80

DENSITY_NAMES = {
    0: "Hard disk",
    1: "Single density (125Kbps FM)",
    2: "Double density (250Kbps FM)",
    3: "Double+ density (300Kbps FM)",
    4: "Quad density (500Kbps FM)",
    8: "Octal density (1000Kbps FM)",
}


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class DiscRecord:
    """
    Parsed disc record.

    Attributes:
        log2secsize: log2 of the sector size
        secspertrack: Sectors per track
        heads: Head count (1 = sides sequenced, 2 = interleaved)
        density: Recording density code
        idlen: Bits in a map fragment id
        log2bpmb: log2 of bytes per map bit
        skew: Track to track sector skew
        bootoption: Boot option
        lowsector: Lowest sector id plus side/track flags
        nzones: Zone count, low byte
        zone_spare: Non-allocation bits between zones
        root: Root directory indirect disc address
        disc_size: Disc size in bytes, low word
        disc_id: Disc cycle id
        disc_name_raw: Disc name bytes
        disc_type: Filetype of the disc
        disc_size_high: Disc size in bytes, high word
        log2sharesize: log2 of the share size
        big_flag: Big disc flag
        nzones_high: Zone count, high byte
        format_version: Format version
        root_size: Root directory size (non-zero on "+" formats)
    """
    log2secsize: int
    secspertrack: int
    heads: int
    density: int
    idlen: int
    log2bpmb: int
    skew: int
    bootoption: int
    lowsector: int
    nzones: int
    zone_spare: int
    root: int
    disc_size: int
    disc_id: int
    disc_name_raw: bytes
    disc_type: int
    disc_size_high: int
    log2sharesize: int
    big_flag: int
    nzones_high: int
    format_version: int
    root_size: int

    @property
    def sector_size(self) -> int:
        return 1 << self.log2secsize

    @property
    def bytes_per_map_bit(self) -> int:
        return 1 << self.log2bpmb

    @property
    def lowest_sector(self) -> int:
        return self.lowsector & LOWSECTOR_MASK

    @property
    def sides_sequenced(self) -> bool:
        return (self.lowsector & LOWSECTOR_SEQUENCE_SIDES) != 0

    @property
    def tracks(self) -> int:
        return 40 if self.lowsector & LOWSECTOR_40_TRACK else 80

    @property
    def zones(self) -> int:
        return (self.nzones_high << 8) | self.nzones

    @property
    def total_disc_size(self) -> int:
        """Disc size in bytes including the high word."""
        return (self.disc_size_high << 32) | self.disc_size

    @property
    def idlen_valid(self) -> bool:
        return self.log2secsize + 3 <= self.idlen <= MAX_IDLEN

    @property
    def name(self) -> str:
        """Disc name up to the first NUL, CR or LF, top bits masked off."""
        chars = []
        for byte in self.disc_name_raw:
            c = byte & 0x7F
            if c in DISC_NAME_TERMINATORS:
                break
            chars.append(chr(c))
        return ''.join(chars).rstrip()

    @property
    def head_layout(self) -> str:
        if self.heads == 1:
            return "sequenced"
        if self.heads == 2:
            return "interleaved"
        return "Unknown"

    @property
    def density_name(self) -> str:
        return DENSITY_NAMES.get(self.density, "Unknown")


# =============================================================================
# Decoding
# =============================================================================

def parse_disc_record(buffer: bytes, offset: int = 0) -> DiscRecord:
    """
    Decode a disc record.

    Args:
        buffer: Bytes holding the record
        offset: Offset of the record within buffer

    Returns:
        DiscRecord (short buffers are zero padded)
    """
    raw = bytes(buffer[offset:offset + DISC_RECORD_SIZE])
    if len(raw) < DISC_RECORD_SIZE:
        raw += bytes(DISC_RECORD_SIZE - len(raw))

    return DiscRecord(
        log2secsize=raw[0],
        secspertrack=raw[1],
        heads=raw[2],
        density=raw[3],
        idlen=raw[4],
        log2bpmb=raw[5],
        skew=raw[6],
        bootoption=raw[7],
        lowsector=raw[8],
        nzones=raw[9],
        zone_spare=read_le(raw, 2, 10),
        root=read_le(raw, 4, 12),
        disc_size=read_le(raw, 4, 16),
        disc_id=read_le(raw, 2, 20),
        disc_name_raw=raw[22:22 + DISC_NAME_LEN],
        disc_type=read_le(raw, 4, 32),
        disc_size_high=read_le(raw, 4, 36),
        log2sharesize=raw[40],
        big_flag=raw[41],
        nzones_high=raw[42],
        format_version=read_le(raw, 4, 44),
        root_size=read_le(raw, 4, 48),
    )


decode_disc_record = parse_disc_record


def validate_disc_record(record: DiscRecord) -> None:
    """
    Check the disc record invariants floppy detection relies on.

    Raises:
        StructuralInvariantError: For an idlen outside
            [log2secsize + 3, 19] or a sector size other than 1024
    """
    if not record.idlen_valid:
        raise StructuralInvariantError(
            f"Invalid idlen {record.idlen} for log2secsize {record.log2secsize}"
        )
    if record.sector_size != ADFS_16BIT_SECTOR_SIZE:
        raise StructuralInvariantError(
            f"Unsupported sector size {record.sector_size}"
        )
