"""
Old map decoding for ADFS S, M, L and D discs.

The old map occupies the first 512 bytes of the disc: two 256-byte
halves, each ending in its own checksum. The FreeStart table sits in the
first half and the FreeLen table in the second, with the disc name split
across both halves one character at a time (RISC OS PRM 2-200).

Byte layout:
    0x000  FreeStart[82] (3 bytes each)
    0x0F6  reserved, must be zero
    0x0F7  disc name, even characters (5)
    0x0FC  disc size in 256-byte sectors (3)
    0x0FF  check0
    0x100  FreeLen[82] (3 bytes each)
    0x1F6  disc name, odd characters (5)
    0x1FB  disc id (2)
    0x1FD  boot option
    0x1FE  free space end pointer
    0x1FF  check1
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .checksum import checksum, SECTOR_SIZE_256
from .errors import ChecksumMismatchError, StructuralInvariantError
from .formats import (
    ADFS_8BIT_SECTOR_SIZE,
    ADFS_16BIT_SECTOR_SIZE,
    BootOption,
    DiscFormat,
    MapKind,
    OLD_MAP_SIZES,
)
from .values import read_le, read_le_array

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

OLD_MAP_SIZE = ADFS_8BIT_SECTOR_SIZE * 2
OLD_MAP_ENTRY = 3          # Bytes per FreeStart/FreeLen entry
OLD_MAP_LEN = 82           # Entries per table

FREE_START_OFFSET = 0x000
RESERVED_OFFSET = 0x0F6
NAME_EVEN_OFFSET = 0x0F7
SIZE_OFFSET = 0x0FC
CHECK0_OFFSET = 0x0FF
FREE_LEN_OFFSET = 0x100
NAME_ODD_OFFSET = 0x1F6
DISC_ID_OFFSET = 0x1FB
BOOT_OPTION_OFFSET = 0x1FD
FREE_END_OFFSET = 0x1FE
CHECK1_OFFSET = 0x1FF

NAME_HALF_LEN = 5

# Free space values are 21-bit sector numbers in 3-byte fields
FREE_SPACE_RESERVED_BITS = 0xE00000


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class OldMapRecord:
    """
    Parsed old map.

    Attributes:
        free_start: FreeStart table, all 82 entries
        free_length: FreeLen table, all 82 entries
        reserved: Reserved byte (zero on a valid map)
        name_even: Raw even characters of the disc name
        name_odd: Raw odd characters of the disc name
        total_sectors: Disc size in 256-byte sectors
        check0: Stored checksum of the first half
        check1: Stored checksum of the second half
        disc_id: Disc identifier
        boot_option_raw: Boot option byte as stored
        free_end: Free space end pointer, in bytes into each table
    """
    free_start: Tuple[int, ...]
    free_length: Tuple[int, ...]
    reserved: int
    name_even: bytes
    name_odd: bytes
    total_sectors: int
    check0: int
    check1: int
    disc_id: int
    boot_option_raw: int
    free_end: int
    computed_check0: int = 0
    computed_check1: int = 0
    disc_name: str = field(init=False)

    def __post_init__(self):
        self.disc_name = decode_disc_name(self.name_even, self.name_odd)

    @property
    def boot_option(self) -> Optional[BootOption]:
        """Boot option as an enum, None for values outside 0-3."""
        try:
            return BootOption(self.boot_option_raw)
        except ValueError:
            return None

    @property
    def free_entries(self) -> int:
        """Number of FreeStart/FreeLen entries in use."""
        return self.free_end // OLD_MAP_ENTRY

    @property
    def free_space(self) -> List[Tuple[int, int]]:
        """(start, length) pairs of the free space entries in use."""
        count = min(self.free_entries, OLD_MAP_LEN)
        return list(zip(self.free_start[:count], self.free_length[:count]))

    @property
    def free_sectors(self) -> int:
        """Total free space in 256-byte sectors."""
        return sum(length for _, length in self.free_space)

    @property
    def checksums_valid(self) -> bool:
        return (self.check0 == self.computed_check0 and
                self.check1 == self.computed_check1)

    @property
    def disc_format(self) -> DiscFormat:
        """Format implied by the disc size, UNKNOWN for other sizes."""
        return OLD_MAP_SIZES.get(self.total_sectors, DiscFormat.UNKNOWN)


# =============================================================================
# Decoding
# =============================================================================

def decode_disc_name(name_even: bytes, name_odd: bytes) -> str:
    """
    Rebuild the disc name from its two interleaved halves.

    Characters alternate between the halves and the name stops at the
    first zero byte in either one. High bits are masked off.
    """
    chars = []
    for i in range(NAME_HALF_LEN):
        c = name_even[i]
        if c == 0x00:
            break
        chars.append(chr(c & 0x7F))

        c = name_odd[i]
        if c == 0x00:
            break
        chars.append(chr(c & 0x7F))
    return ''.join(chars)


def parse_old_map(buffer: bytes) -> OldMapRecord:
    """
    Interpret a 512-byte buffer as an old map.

    Never fails: shorter buffers are zero padded, and validity is a
    separate question answered by old_map_problems().

    Args:
        buffer: Sector 0 and sector 1 of the disc, concatenated

    Returns:
        OldMapRecord with stored and recomputed checksums
    """
    buf = bytes(buffer[:OLD_MAP_SIZE])
    if len(buf) < OLD_MAP_SIZE:
        buf += bytes(OLD_MAP_SIZE - len(buf))

    free_start = read_le_array(buf, OLD_MAP_ENTRY, OLD_MAP_LEN, FREE_START_OFFSET)
    free_length = read_le_array(buf, OLD_MAP_ENTRY, OLD_MAP_LEN, FREE_LEN_OFFSET)

    return OldMapRecord(
        free_start=tuple(int(v) for v in free_start),
        free_length=tuple(int(v) for v in free_length),
        reserved=buf[RESERVED_OFFSET],
        name_even=buf[NAME_EVEN_OFFSET:NAME_EVEN_OFFSET + NAME_HALF_LEN],
        name_odd=buf[NAME_ODD_OFFSET:NAME_ODD_OFFSET + NAME_HALF_LEN],
        total_sectors=read_le(buf, OLD_MAP_ENTRY, SIZE_OFFSET),
        check0=buf[CHECK0_OFFSET],
        check1=buf[CHECK1_OFFSET],
        disc_id=read_le(buf, 2, DISC_ID_OFFSET),
        boot_option_raw=buf[BOOT_OPTION_OFFSET],
        free_end=buf[FREE_END_OFFSET],
        computed_check0=checksum(buf[:ADFS_8BIT_SECTOR_SIZE], SECTOR_SIZE_256),
        computed_check1=checksum(buf[ADFS_8BIT_SECTOR_SIZE:], SECTOR_SIZE_256),
    )


def old_map_problems(record: OldMapRecord) -> List[str]:
    """
    List the old map invariants a record breaks, in the order tested.

    Returns:
        Problem descriptions; empty when the record is a valid old map
    """
    problems = []

    if record.reserved != 0:
        problems.append(f"reserved byte is 0x{record.reserved:02X}")

    if record.check0 != record.computed_check0:
        problems.append("check0 mismatch")

    if record.check1 != record.computed_check1:
        problems.append("check1 mismatch")

    combined = 0
    for value in record.free_start + record.free_length:
        combined |= value
    if combined & FREE_SPACE_RESERVED_BITS:
        problems.append("free space entry has top bits set")

    if record.free_end % OLD_MAP_ENTRY != 0:
        problems.append(f"free space end {record.free_end} is not a multiple of {OLD_MAP_ENTRY}")

    return problems


def validate_old_map(record: OldMapRecord) -> None:
    """
    Raise for the first old map invariant a record breaks.

    Raises:
        StructuralInvariantError: Reserved byte, free space bits or end pointer
        ChecksumMismatchError: check0 or check1 does not match
    """
    if record.reserved != 0:
        raise StructuralInvariantError(f"Old map reserved byte is 0x{record.reserved:02X}")

    if record.check0 != record.computed_check0:
        raise ChecksumMismatchError("old map first half", record.computed_check0, record.check0)

    if record.check1 != record.computed_check1:
        raise ChecksumMismatchError("old map second half", record.computed_check1, record.check1)

    problems = old_map_problems(record)
    if problems:
        raise StructuralInvariantError(f"Old map invalid: {problems[0]}")


def old_map_buffer(image) -> Optional[bytes]:
    """
    Assemble the 512-byte old map buffer from sectors 0 and 1.

    With 256-byte sectors the two sectors are joined; with 1024-byte
    sectors the whole map lives in sector 0.

    Returns:
        The buffer, or None if either sector is absent, empty, or the two
        sectors differ in size
    """
    sector0 = image.find_sector(0, 0, 0)
    sector1 = image.find_sector(0, 0, 1)

    if sector0 is None or sector1 is None:
        return None
    if sector0.data is None or sector1.data is None:
        return None
    if sector0.size != sector1.size or sector0.size not in (ADFS_8BIT_SECTOR_SIZE, ADFS_16BIT_SECTOR_SIZE):
        return None

    buf = bytearray(OLD_MAP_SIZE)
    if sector1.size == ADFS_8BIT_SECTOR_SIZE:
        buf[:ADFS_8BIT_SECTOR_SIZE] = sector0.data
        buf[ADFS_8BIT_SECTOR_SIZE:] = sector1.data
    else:
        buf[:] = sector0.data[:OLD_MAP_SIZE]
    return bytes(buf)


def decode_old_map(image) -> Optional[OldMapRecord]:
    """
    Decode and validate the old map of an image.

    Args:
        image: SectorSource to read sectors 0 and 1 from

    Returns:
        OldMapRecord when the map is valid, None otherwise
    """
    buf = old_map_buffer(image)
    if buf is None:
        logger.debug("Old map sectors unavailable")
        return None

    record = parse_old_map(buf)
    problems = old_map_problems(record)
    if problems:
        logger.debug("Not an old map: %s", "; ".join(problems))
        return None
    return record


def disc_title(image, disc_format: DiscFormat) -> str:
    """
    Disc title of an old map disc.

    Returns:
        Decoded name, or "" for new map and unknown formats or when the
        map sectors cannot be read
    """
    if disc_format.map_kind is not MapKind.OLD_MAP:
        return ""

    buf = old_map_buffer(image)
    if buf is None:
        return ""
    return parse_old_map(buf).disc_name
