"""
Raw ADFS image formats and geometry inference.

ADFS dumps carry no header, so the only way to learn the physical
geometry of a raw image is from its size. This module holds the table of
known ADFS geometries, the image error hierarchy, and the helpers that
map file sizes and extensions onto them.

Supported layouts:
    - ADF: single sided S/M dumps, or 800K/1.6M/3.2M E/F/G dumps
    - ADL: double sided L dumps, tracks interleaved by side
    - IMG: any of the above under a generic extension
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Image Errors
# =============================================================================

class ImageError(Exception):
    """Base exception for problems with the image file itself."""

    def __init__(self, message: str, filepath: Optional[str] = None):
        self.message = message
        self.filepath = filepath
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.filepath is None:
            return self.message
        return f"{self.message} [File: {self.filepath}]"


class ImageCorruptError(ImageError):
    """Raised when an image file holds no usable sector data."""

    def __init__(self, message: str, filepath: Optional[str] = None,
                 file_size: Optional[int] = None):
        self.file_size = file_size
        super().__init__(message, filepath)

    def _format_message(self) -> str:
        text = super()._format_message()
        if self.file_size is None:
            return text
        return f"{text} [Size: {self.file_size} bytes]"


class ImageGeometryError(ImageError):
    """Raised when no ADFS geometry fits an image, or a geometry is unusable."""

    def __init__(self, message: str, filepath: Optional[str] = None,
                 geometry: Optional['ImageGeometry'] = None):
        self.geometry = geometry
        super().__init__(message, filepath)

    def _format_message(self) -> str:
        text = super()._format_message()
        if self.geometry is None:
            return text
        return f"{text} [Geometry: {self.geometry}]"


class ImageReadError(ImageError):
    """Raised when the image file cannot be opened or read."""


# =============================================================================
# Enums and Constants
# =============================================================================

class ImageFormat(Enum):
    """Raw ADFS image container types."""
    ADF = auto()      # Acorn ADFS dump (.adf)
    ADL = auto()      # Double sided L dump (.adl)
    IMG = auto()      # Generic raw sector image
    UNKNOWN = auto()  # Unrecognised extension


@dataclass(frozen=True)
class ImageGeometry:
    """
    Physical geometry of a raw image.

    Attributes:
        cylinders: Number of cylinders
        heads: Number of heads (sides)
        sectors_per_track: Sectors per track
        sector_size: Sector size in bytes
        name: Description of the layout
    """
    cylinders: int
    heads: int
    sectors_per_track: int
    sector_size: int
    name: str = ""

    @property
    def track_size(self) -> int:
        return self.sectors_per_track * self.sector_size

    @property
    def total_sectors(self) -> int:
        return self.cylinders * self.heads * self.sectors_per_track

    @property
    def total_bytes(self) -> int:
        return self.total_sectors * self.sector_size

    def __str__(self) -> str:
        return (f"{self.cylinders}C/{self.heads}H/{self.sectors_per_track}S, "
                f"{self.sector_size}B/sec")


# Known ADFS floppy geometries, keyed by raw image size
STANDARD_GEOMETRIES: List[ImageGeometry] = [
    ImageGeometry(40, 1, 16, 256, "ADFS S (160K)"),      # 163,840 bytes
    ImageGeometry(80, 1, 16, 256, "ADFS M (320K)"),      # 327,680 bytes
    ImageGeometry(80, 2, 16, 256, "ADFS L (640K)"),      # 655,360 bytes
    ImageGeometry(80, 2, 5, 1024, "ADFS D/E (800K)"),    # 819,200 bytes
    ImageGeometry(80, 2, 10, 1024, "ADFS F (1.6M)"),     # 1,638,400 bytes
    ImageGeometry(80, 2, 20, 1024, "ADFS G (3.2M)"),     # 3,276,800 bytes
]

# File extension mappings
EXTENSION_MAP: Dict[str, ImageFormat] = {
    '.adf': ImageFormat.ADF,
    '.adl': ImageFormat.ADL,
    '.adm': ImageFormat.ADF,
    '.ads': ImageFormat.ADF,
    '.img': ImageFormat.IMG,
    '.raw': ImageFormat.IMG,
    '.bin': ImageFormat.IMG,
}


# =============================================================================
# Helpers
# =============================================================================

def get_format_for_extension(extension: str) -> ImageFormat:
    """
    Get image format for a file extension.

    Args:
        extension: File extension with or without a leading dot

    Returns:
        ImageFormat, UNKNOWN if not recognised
    """
    ext = extension.lower()
    if not ext.startswith('.'):
        ext = '.' + ext
    return EXTENSION_MAP.get(ext, ImageFormat.UNKNOWN)


def detect_image_format(filepath: str) -> ImageFormat:
    """Detect image container type from the file extension."""
    image_format = get_format_for_extension(Path(filepath).suffix)
    logger.debug("Image %s has container type %s", filepath, image_format.name)
    return image_format


def infer_geometry(file_size: int) -> Optional[ImageGeometry]:
    """
    Infer an ADFS geometry from a raw image size.

    Exact matches win. Otherwise the smallest geometry the file could be
    a truncated dump of is used, provided at least one full track exists.

    Args:
        file_size: Size of the raw image in bytes

    Returns:
        Matching ImageGeometry, or None if no geometry fits
    """
    for geometry in STANDARD_GEOMETRIES:
        if geometry.total_bytes == file_size:
            return geometry

    for geometry in STANDARD_GEOMETRIES:
        if geometry.track_size <= file_size < geometry.total_bytes:
            return geometry

    return None
