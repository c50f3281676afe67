"""
ADFS format detection.

ADFS discs carry no format tag, so the format is inferred by trying each
map layout in turn and keeping the first one whose checksums and
structure hold together:

    1. Old map in sectors 0/1      -> S, M, L or D by disc size
    2. New map zone 0 in sector 0  -> E or E+
    3. Boot block at 0xC00         -> F, F+ or G

Every failure is a soft signal that rules one trial out; detection never
raises and always ends in a DiscFormat, UNKNOWN if nothing matched.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .checksum import boot_block_checksum_valid, zone_validity_byte
from .disc_record import (
    BOOT_BLOCK_DISC_RECORD_OFFSET,
    BOOT_BLOCK_SECTOR,
    NEW_MAP_DISC_RECORD_OFFSET,
    DiscRecord,
    parse_disc_record,
)
from .errors import (
    AdfsError,
    MissingSectorError,
    StructuralInvariantError,
    TruncatedSectorError,
    UnrecognizedFormatError,
)
from .formats import (
    ADFS_8BIT_SECTOR_SIZE,
    ADFS_16BIT_SECTOR_SIZE,
    OLD_MAP_SIZES,
    DiscFormat,
)
from .old_map import OldMapRecord, parse_old_map, validate_old_map

logger = logging.getLogger(__name__)


# Sniff buffer holds one 1024-byte sector or two 256-byte sectors
SNIFF_SIZE = ADFS_16BIT_SECTOR_SIZE

DiscRecordReporter = Callable[[DiscRecord], None]


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class DetectionResult:
    """
    Outcome of format detection with the evidence behind it.

    Attributes:
        disc_format: Detected format
        old_map: Old map record, for old map formats
        disc_record: Disc record, for new map formats
        disc_record_offset: Absolute disc offset of the disc record
        reason: Why detection ended where it did
    """
    disc_format: DiscFormat = DiscFormat.UNKNOWN
    old_map: Optional[OldMapRecord] = None
    disc_record: Optional[DiscRecord] = None
    disc_record_offset: Optional[int] = None
    reason: str = ""

    @property
    def recognised(self) -> bool:
        return self.disc_format.is_known


# =============================================================================
# Sector Fetching
# =============================================================================

def _fetch(image, cylinder: int, head: int, sector: int) -> bytes:
    """Fetch sector data or raise the matching soft error."""
    view = image.find_sector(cylinder, head, sector)
    if view is None:
        raise MissingSectorError(cylinder, head, sector)
    if view.data is None or view.size == 0:
        raise TruncatedSectorError(f"Sector C{cylinder}/H{head}/S{sector} has no data")
    return view.data


def _sniff_buffer(image) -> Tuple[bytes, int]:
    """
    Build the sniff buffer from sectors 0 and 1.

    Returns:
        Tuple of (sniff bytes, sector size)

    Raises:
        MissingSectorError, TruncatedSectorError: Sectors unusable
        StructuralInvariantError: Sector sizes differ or are not ADFS sizes
    """
    sector0 = _fetch(image, 0, 0, 0)
    sector1 = _fetch(image, 0, 0, 1)

    size0, size1 = len(sector0), len(sector1)
    if size0 != size1 or size0 not in (ADFS_8BIT_SECTOR_SIZE, ADFS_16BIT_SECTOR_SIZE):
        raise StructuralInvariantError(f"Sector sizes {size0}/{size1} are not an ADFS pair")

    sniff = bytearray(SNIFF_SIZE)
    sniff[:size0] = sector0
    if size1 == ADFS_8BIT_SECTOR_SIZE:
        sniff[ADFS_8BIT_SECTOR_SIZE:ADFS_8BIT_SECTOR_SIZE * 2] = sector1
    return bytes(sniff), size0


# =============================================================================
# Trials
# =============================================================================

def _try_old_map(sniff: bytes, result: DetectionResult) -> None:
    """Old map trial, RISC OS PRM 2-200/201."""
    record = parse_old_map(sniff)
    validate_old_map(record)

    disc_format = OLD_MAP_SIZES.get(record.total_sectors)
    if disc_format is None:
        raise StructuralInvariantError(
            f"Old map disc size {record.total_sectors} matches no format"
        )

    result.disc_format = disc_format
    result.old_map = record
    result.reason = f"old map, {record.total_sectors} sectors"


def _try_new_map(sniff: bytes, result: DetectionResult,
                 report: Optional[DiscRecordReporter]) -> None:
    """New map trial, zone 0 check byte then disc record, PRM 2-206."""
    zone_check = zone_validity_byte(sniff, sniff[NEW_MAP_DISC_RECORD_OFFSET], 0)
    if zone_check != sniff[0]:
        raise StructuralInvariantError(
            f"Zone 0 check byte 0x{sniff[0]:02X} != computed 0x{zone_check:02X}"
        )

    record = parse_disc_record(sniff, NEW_MAP_DISC_RECORD_OFFSET)
    _report(report, record)

    if not record.idlen_valid:
        logger.debug("Disc record idlen %d outside [%d, 19]",
                     record.idlen, record.log2secsize + 3)

    if record.sector_size == ADFS_16BIT_SECTOR_SIZE and record.secspertrack == 5:
        result.disc_format = DiscFormat.E_PLUS if record.root_size != 0 else DiscFormat.E
        result.disc_record = record
        result.disc_record_offset = NEW_MAP_DISC_RECORD_OFFSET
        result.reason = "new map zone 0"
        return

    raise StructuralInvariantError(
        f"New map disc record {record.sector_size}B x {record.secspertrack} is not E format"
    )


def _try_boot_block(image, result: DetectionResult,
                    report: Optional[DiscRecordReporter]) -> None:
    """Boot block trial, disc record at 0xC00 + 0x1C0, PRM 2-213/215."""
    cylinder, head, sector = BOOT_BLOCK_SECTOR
    block = _fetch(image, cylinder, head, sector)

    if not boot_block_checksum_valid(block):
        raise StructuralInvariantError("Boot block checksum mismatch")

    record = parse_disc_record(block, BOOT_BLOCK_DISC_RECORD_OFFSET)
    _report(report, record)

    if record.sector_size == ADFS_16BIT_SECTOR_SIZE:
        if record.secspertrack == 10:
            result.disc_format = DiscFormat.F_PLUS if record.root_size != 0 else DiscFormat.F
        elif record.secspertrack == 20:
            result.disc_format = DiscFormat.G

    if result.disc_format.is_known:
        result.disc_record = record
        result.disc_record_offset = sector * ADFS_16BIT_SECTOR_SIZE + BOOT_BLOCK_DISC_RECORD_OFFSET
        result.reason = "boot block disc record"
        return

    raise StructuralInvariantError(
        f"Boot block disc record {record.sector_size}B x {record.secspertrack} is not F/G format"
    )


def _report(report: Optional[DiscRecordReporter], record: DiscRecord) -> None:
    """Hand a decoded record to the diagnostic reporter, if any."""
    if report is None:
        return
    try:
        report(record)
    except Exception as e:
        logger.warning("Disc record reporter failed: %s", e)


# =============================================================================
# Public API
# =============================================================================

def inspect_format(image, report: Optional[DiscRecordReporter] = None) -> DetectionResult:
    """
    Run every detection trial and keep the evidence.

    Args:
        image: SectorSource to examine
        report: Optional callable receiving each decoded DiscRecord

    Returns:
        DetectionResult; disc_format is UNKNOWN if nothing matched
    """
    result = DetectionResult()

    try:
        sniff, sector_size = _sniff_buffer(image)
    except AdfsError as e:
        result.reason = str(e)
        logger.debug("Detection stopped: %s", e)
        return result

    try:
        _try_old_map(sniff, result)
        return result
    except AdfsError as e:
        logger.debug("Old map trial failed: %s", e)
        result.reason = str(e)

    if sector_size != ADFS_16BIT_SECTOR_SIZE:
        return result

    try:
        _try_new_map(sniff, result, report)
        return result
    except AdfsError as e:
        logger.debug("New map trial failed: %s", e)
        result.reason = str(e)

    try:
        _try_boot_block(image, result, report)
    except AdfsError as e:
        logger.debug("Boot block trial failed: %s", e)
        result.reason = str(e)

    return result


def detect_format(image, report: Optional[DiscRecordReporter] = None) -> DiscFormat:
    """
    Classify a disk image as one of the ADFS formats.

    A pure function of sector content: calling it twice on the same image
    gives the same answer.

    Args:
        image: SectorSource to examine
        report: Optional callable receiving each decoded DiscRecord;
            it cannot influence the outcome

    Returns:
        DiscFormat, UNKNOWN when no trial matched

    Example:
        >>> image = SectorImage.load("welcome.adl")
        >>> detect_format(image)
        <DiscFormat.L: 'L'>
    """
    result = inspect_format(image, report)
    logger.debug("Detected format %s (%s)", result.disc_format.label, result.reason)
    return result.disc_format


def require_format(image) -> DiscFormat:
    """
    Like detect_format() but raise when nothing matched.

    Raises:
        UnrecognizedFormatError: If every trial failed
    """
    result = inspect_format(image)
    if not result.recognised:
        raise UnrecognizedFormatError(f"Unrecognised ADFS format: {result.reason}")
    return result.disc_format
