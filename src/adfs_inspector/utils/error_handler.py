"""
Error handling utilities for ADFS Inspector.

Turns the decoder and image exceptions into user-facing messages and
classifies which of them should end a run.
"""

from adfs_inspector.core.errors import (
    AdfsError,
    ChecksumMismatchError,
    MissingSectorError,
    StructuralInvariantError,
    TruncatedSectorError,
    UnrecognizedFormatError,
)
from adfs_inspector.imaging.image_formats import (
    ImageCorruptError,
    ImageError,
    ImageGeometryError,
    ImageReadError,
)


def describe_error(exc: BaseException, operation: str = "inspection") -> str:
    """
    Context-aware message for an exception.

    Args:
        exc: Exception raised during an operation
        operation: Description of the operation that failed

    Returns:
        Formatted error message with a hint where one helps

    Example:
        >>> describe_error(ImageGeometryError("Cannot infer geometry"), "load")
        'load failed: Cannot infer geometry. Image size matches no ADFS floppy layout'
    """
    hints = (
        (ImageGeometryError, "Image size matches no ADFS floppy layout"),
        (ImageCorruptError, "Image file is damaged"),
        (ImageReadError, "Check the path and file permissions"),
        (FileNotFoundError, "Image file does not exist"),
        (PermissionError, "Permission denied reading the image"),
        (UnrecognizedFormatError, "Not an ADFS S, M, L, D, E, F or G image"),
        (MissingSectorError, "Sector missing from the image"),
        (TruncatedSectorError, "Sector data is incomplete"),
        (ChecksumMismatchError, "Map checksum does not match"),
        (StructuralInvariantError, "On-disc structure is inconsistent"),
    )

    for exc_type, hint in hints:
        if isinstance(exc, exc_type):
            return f"{operation} failed: {exc}. {hint}"
    return f"{operation} failed: {exc}"


def is_fatal_error(exc: BaseException) -> bool:
    """
    Determine if an error should end the run.

    Image file errors are fatal: nothing can be decoded without the image.
    Decoder errors only invalidate the structure being read.

    Example:
        >>> is_fatal_error(ImageReadError("unreadable"))
        True
        >>> is_fatal_error(MissingSectorError(0, 0, 3))
        False
    """
    if isinstance(exc, (ImageError, OSError)):
        return True
    if isinstance(exc, AdfsError):
        return False
    return True
