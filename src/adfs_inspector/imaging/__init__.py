"""
Sector image access for ADFS inspection.

This package provides the sector layer the ADFS decoders sit on:
raw image loading with geometry inference, physical sector lookup,
and a cursor-based byte stream with ADFS side ordering policies.

Key Classes:
    SectorImage: In-memory raw dump with find_sector()
    SectorView: Read-only handle to one sector
    SectorStream: Seek/read over a SectorSource

Key Functions:
    infer_geometry: Match a raw image size to an ADFS geometry
    logical_track_to_physical: Apply an ordering policy to a track
"""

from .image_formats import (
    ImageError,
    ImageCorruptError,
    ImageGeometryError,
    ImageReadError,
    ImageFormat,
    ImageGeometry,
    STANDARD_GEOMETRIES,
    detect_image_format,
    get_format_for_extension,
    infer_geometry,
)

from .sector_image import (
    SectorImage,
    SectorView,
    SectorSource,
)

from .sector_stream import (
    SectorStream,
    logical_track_to_physical,
)

__all__ = [
    # Errors
    'ImageError',
    'ImageCorruptError',
    'ImageGeometryError',
    'ImageReadError',

    # Formats
    'ImageFormat',
    'ImageGeometry',
    'STANDARD_GEOMETRIES',
    'detect_image_format',
    'get_format_for_extension',
    'infer_geometry',

    # Sector access
    'SectorImage',
    'SectorView',
    'SectorSource',
    'SectorStream',
    'logical_track_to_physical',
]
