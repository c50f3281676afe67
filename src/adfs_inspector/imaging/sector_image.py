"""
Sector-level access to raw ADFS disk images.

This module provides the SectorImage class, an in-memory view of a raw
sector dump that hands out read-only SectorView handles by cylinder,
head and sector. Sectors can be marked missing or damaged to model
imperfect dumps taken from failing media.

Key Features:
    - Load raw ADF/ADL/IMG dumps with geometry inferred from size
    - Cylinder-major (side interleaved) or side-major track layout
    - Missing and truncated sector simulation
    - SectorSource protocol consumed by the ADFS decoders
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Protocol, Set, Tuple, runtime_checkable

from .image_formats import (
    ImageFormat,
    ImageGeometry,
    ImageCorruptError,
    ImageGeometryError,
    ImageReadError,
    detect_image_format,
    infer_geometry,
)

logger = logging.getLogger(__name__)


# Fill byte for sectors beyond the end of a truncated dump
DEFAULT_FILL_BYTE = 0x00

SectorAddress = Tuple[int, int, int]


# =============================================================================
# Sector Handles
# =============================================================================

@dataclass(frozen=True)
class SectorView:
    """
    Read-only handle to one physical sector.

    Attributes:
        cylinder: Cylinder number (0-based)
        head: Head number (0 or 1)
        sector: Sector id as recorded on disc (0-based for ADFS)
        data: Sector contents, None when the sector header was found but
            its data field could not be read
    """
    cylinder: int
    head: int
    sector: int
    data: Optional[bytes]

    @property
    def size(self) -> int:
        """Size of the sector data in bytes (0 if there is none)."""
        return len(self.data) if self.data is not None else 0

    @property
    def has_data(self) -> bool:
        return self.data is not None


@runtime_checkable
class SectorSource(Protocol):
    """Anything that can locate sectors by physical address."""

    sectors_per_track: int
    sector_size: int

    def find_sector(self, cylinder: int, head: int, sector: int) -> Optional[SectorView]:
        ...


# =============================================================================
# SectorImage Class
# =============================================================================

class SectorImage:
    """
    In-memory raw sector image.

    Attributes:
        cylinders: Number of cylinders
        heads: Number of heads (sides)
        sectors_per_track: Sectors per track
        sector_size: Size of each sector in bytes
        sides_sequential: True when the dump stores all of side 0 before
            side 1, False for the usual cylinder-major layout

    Example:
        # Load an existing dump
        image = SectorImage.load("games.adl")
        view = image.find_sector(0, 0, 0)

        # Build an image in memory
        image = SectorImage.from_bytes(raw, ImageGeometry(80, 2, 5, 1024))
    """

    def __init__(self, geometry: ImageGeometry, data: Optional[bytes] = None,
                 sides_sequential: bool = False):
        """
        Initialize SectorImage.

        Args:
            geometry: Physical geometry of the dump
            data: Raw image bytes; padded with zeros or cut to the
                geometry's capacity
            sides_sequential: Side-major track layout
        """
        if geometry.cylinders <= 0 or geometry.heads <= 0 or geometry.sectors_per_track <= 0:
            raise ImageGeometryError("Invalid image geometry", geometry=geometry)

        self._geometry = geometry
        self._sides_sequential = sides_sequential
        self._filepath: Optional[str] = None
        self._format: ImageFormat = ImageFormat.IMG
        self._missing: Set[SectorAddress] = set()
        self._damaged: Dict[SectorAddress, Optional[bytes]] = {}

        capacity = geometry.total_bytes
        self._data = bytearray(data or b'')
        if len(self._data) < capacity:
            self._data.extend(bytes([DEFAULT_FILL_BYTE]) * (capacity - len(self._data)))
        elif len(self._data) > capacity:
            del self._data[capacity:]

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def geometry(self) -> ImageGeometry:
        return self._geometry

    @property
    def cylinders(self) -> int:
        return self._geometry.cylinders

    @property
    def heads(self) -> int:
        return self._geometry.heads

    @property
    def sectors_per_track(self) -> int:
        return self._geometry.sectors_per_track

    @property
    def sector_size(self) -> int:
        return self._geometry.sector_size

    @property
    def total_sectors(self) -> int:
        return self._geometry.total_sectors

    @property
    def data(self) -> bytes:
        """Raw image bytes, damage excluded."""
        return bytes(self._data)

    @property
    def filepath(self) -> Optional[str]:
        return self._filepath

    @property
    def format(self) -> ImageFormat:
        return self._format

    @property
    def sides_sequential(self) -> bool:
        return self._sides_sequential

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def from_bytes(cls, data: bytes, geometry: Optional[ImageGeometry] = None,
                   sides_sequential: bool = False) -> 'SectorImage':
        """
        Build an image from raw bytes.

        Args:
            data: Raw dump
            geometry: Geometry to use; inferred from len(data) when None
            sides_sequential: Side-major track layout

        Raises:
            ImageGeometryError: If no geometry is given and none fits
        """
        if geometry is None:
            geometry = infer_geometry(len(data))
            if geometry is None:
                raise ImageGeometryError(f"No ADFS geometry matches {len(data)} bytes")
        return cls(geometry, data, sides_sequential)

    @classmethod
    def load(cls, filepath: str, geometry: Optional[ImageGeometry] = None,
             sides_sequential: bool = False) -> 'SectorImage':
        """
        Load image from file.

        Args:
            filepath: Path to image file
            geometry: Geometry override
            sides_sequential: Side-major track layout

        Raises:
            ImageReadError: If file cannot be read
            ImageCorruptError: If file is empty
            ImageGeometryError: If the geometry cannot be inferred
        """
        path = Path(filepath)

        if not path.exists():
            raise ImageReadError("File does not exist", filepath)

        if not path.is_file():
            raise ImageReadError("Path is not a file", filepath)

        logger.info("Loading image: %s", filepath)

        try:
            with open(path, 'rb') as f:
                raw = f.read()
        except OSError as e:
            raise ImageReadError(f"Failed to read file: {e}", filepath) from e

        if not raw:
            raise ImageCorruptError("File is empty", filepath, file_size=0)

        if geometry is None:
            geometry = infer_geometry(len(raw))
            if geometry is None:
                raise ImageGeometryError(f"No ADFS geometry matches {len(raw)} bytes", filepath)

        if len(raw) != geometry.total_bytes:
            logger.warning("File size %d differs from expected %d, adjusting",
                           len(raw), geometry.total_bytes)

        image = cls(geometry, raw, sides_sequential)
        image._filepath = filepath
        image._format = detect_image_format(filepath)

        logger.info("Loaded %d sectors (%s)", image.total_sectors, geometry)
        return image

    # =========================================================================
    # Sector Access
    # =========================================================================

    def is_valid_chs(self, cylinder: int, head: int, sector: int) -> bool:
        """Check if a physical address lies inside this image."""
        return (0 <= cylinder < self.cylinders and
                0 <= head < self.heads and
                0 <= sector < self.sectors_per_track)

    def chs_to_offset(self, cylinder: int, head: int, sector: int) -> int:
        """Byte offset of a sector within the raw dump."""
        if self._sides_sequential:
            track = head * self.cylinders + cylinder
        else:
            track = cylinder * self.heads + head
        return (track * self.sectors_per_track + sector) * self.sector_size

    def find_sector(self, cylinder: int, head: int, sector: int) -> Optional[SectorView]:
        """
        Locate a sector.

        Returns:
            SectorView, or None if the sector is not present
        """
        address = (cylinder, head, sector)

        if not self.is_valid_chs(cylinder, head, sector) or address in self._missing:
            return None

        if address in self._damaged:
            return SectorView(cylinder, head, sector, self._damaged[address])

        offset = self.chs_to_offset(cylinder, head, sector)
        return SectorView(cylinder, head, sector,
                          bytes(self._data[offset:offset + self.sector_size]))

    def set_sector(self, cylinder: int, head: int, sector: int, data: bytes) -> None:
        """
        Replace the contents of a sector.

        Data shorter than the sector size is zero padded.

        Raises:
            ValueError: If the address is outside the image or data is too long
        """
        if not self.is_valid_chs(cylinder, head, sector):
            raise ValueError(f"Invalid sector address C{cylinder}/H{head}/S{sector}")
        if len(data) > self.sector_size:
            raise ValueError(f"Sector data too long: {len(data)} > {self.sector_size}")

        offset = self.chs_to_offset(cylinder, head, sector)
        padded = bytes(data) + bytes(self.sector_size - len(data))
        self._data[offset:offset + self.sector_size] = padded

    def drop_sector(self, cylinder: int, head: int, sector: int) -> None:
        """Make a sector unfindable, as if its header never read."""
        self._missing.add((cylinder, head, sector))

    def mark_damaged(self, cylinder: int, head: int, sector: int,
                     data: Optional[bytes] = None) -> None:
        """
        Make a sector findable but without (complete) data.

        Args:
            data: None for no data at all, or a short byte string
        """
        self._damaged[(cylinder, head, sector)] = data

    def __repr__(self) -> str:
        return (
            f"SectorImage({self.cylinders}C/{self.heads}H/{self.sectors_per_track}S "
            f"@ {self.sector_size}B = {self._geometry.total_bytes // 1024}KB)"
        )

    def __len__(self) -> int:
        """Return total number of sectors."""
        return self.total_sectors


# =============================================================================
# Module Exports
# =============================================================================

__all__ = [
    'SectorImage',
    'SectorView',
    'SectorSource',
    'DEFAULT_FILL_BYTE',
]
