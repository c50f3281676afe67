"""
Little-endian field decoding for packed ADFS records.

ADFS structures pack 1, 2, 3 and 4 byte fields with no alignment, so
fields are composed byte by byte rather than through struct formats.
"""

import numpy as np


def read_le(data: bytes, length: int, offset: int = 0) -> int:
    """
    Read an unsigned little-endian value of 1..4 bytes.

    Args:
        data: Source buffer
        length: Field width in bytes (1-4)
        offset: Byte offset of the field within data

    Returns:
        Unsigned integer value

    Raises:
        ValueError: If length is outside 1..4

    Example:
        >>> read_le(b'\\x80\\x02\\x00', 3)
        640
    """
    if length < 1 or length > 4:
        raise ValueError(f"Field length must be 1-4 bytes, got {length}")

    value = 0
    for position in range(length):
        value |= data[offset + position] << (8 * position)
    return value


def read_le_array(data: bytes, width: int, count: int, offset: int = 0) -> np.ndarray:
    """
    Decode ``count`` consecutive little-endian fields of ``width`` bytes.

    Used for the old map free-space tables, which are arrays of 3-byte
    values.

    Args:
        data: Source buffer
        width: Width of each field in bytes (1-4)
        count: Number of fields
        offset: Byte offset of the first field

    Returns:
        numpy array of uint32 values
    """
    if width < 1 or width > 4:
        raise ValueError(f"Field width must be 1-4 bytes, got {width}")

    raw = np.frombuffer(bytes(data[offset:offset + width * count]), dtype=np.uint8)
    if raw.size < width * count:
        raw = np.concatenate([raw, np.zeros(width * count - raw.size, dtype=np.uint8)])

    fields = raw.reshape(count, width).astype(np.uint32)
    shifts = np.arange(width, dtype=np.uint32) * 8
    return np.bitwise_or.reduce(fields << shifts, axis=1).astype(np.uint32)
