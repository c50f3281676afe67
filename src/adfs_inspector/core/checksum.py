"""
Checksums used by ADFS maps and boot blocks.

Both algorithms come from the RISC OS PRM (old map 2-200, new map zone
check 2-206, boot block 2-215) and must match bit for bit, otherwise no
real disc will ever validate.
"""

# Sector sizes whose checksum seeds differ
SECTOR_SIZE_256 = 256
SECTOR_SIZE_1024 = 1024

# Boot block occupies the first half of the sector at 0xC00
BOOT_BLOCK_SIZE = 512


def checksum(buffer: bytes, sector_size: int) -> int:
    """
    Compute the ADFS sector checksum.

    Sums bytes from ``sector_size - 2`` down to 0 with end-around carry.
    The last byte is where the checksum is stored and is never read.

    Args:
        buffer: Sector bytes (at least ``sector_size - 1`` long)
        sector_size: Nominal size; 1024 seeds the sum with 0, anything
            else seeds it with 255

    Returns:
        Checksum byte

    Example:
        >>> sector = bytes(256)
        >>> checksum(sector, 256)
        255
    """
    total = 0 if sector_size == SECTOR_SIZE_1024 else 255
    carry = 0

    for index in range(sector_size - 2, -1, -1):
        total = total + buffer[index] + carry
        carry = 1 if total > 255 else 0
        total &= 0xFF

    return total & 0xFF


def zone_validity_byte(map_bytes: bytes, log2_sector_size: int, zone: int) -> int:
    """
    Compute the zone check byte of a new map zone.

    Walks the zone backwards one word at a time keeping four byte lanes,
    each carrying into the next. Byte 0 of the zone holds the check byte
    itself and is left out of the final fold.

    Args:
        map_bytes: Map data starting at zone 0
        log2_sector_size: log2 of the sector size, must be 8..10
        zone: Zone number

    Returns:
        The expected zone check byte, or 0 for an unsupported sector size
    """
    if log2_sector_size < 8 or log2_sector_size > 10:
        return 0

    zone_start = zone << log2_sector_size
    zone_end = (zone + 1) << log2_sector_size

    if len(map_bytes) < zone_end:
        map_bytes = bytes(map_bytes) + bytes(zone_end - len(map_bytes))

    sum0 = sum1 = sum2 = sum3 = 0

    rover = zone_end - 4
    while rover > zone_start:
        sum0 += map_bytes[rover] + (sum3 >> 8)
        sum3 &= 0xFF
        sum1 += map_bytes[rover + 1] + (sum0 >> 8)
        sum0 &= 0xFF
        sum2 += map_bytes[rover + 2] + (sum1 >> 8)
        sum1 &= 0xFF
        sum3 += map_bytes[rover + 3] + (sum2 >> 8)
        sum2 &= 0xFF
        rover -= 4

    # rover == zone_start here; skip the check byte at rover + 0
    sum0 += sum3 >> 8
    sum1 += map_bytes[rover + 1] + (sum0 >> 8)
    sum2 += map_bytes[rover + 2] + (sum1 >> 8)
    sum3 += map_bytes[rover + 3] + (sum2 >> 8)

    return (sum0 ^ sum1 ^ sum2 ^ sum3) & 0xFF


def boot_block_checksum_valid(sector_data: bytes) -> bool:
    """
    Check the boot block checksum at the start of the 0xC00 sector.

    The sum runs over bytes 0..510 and is stored in byte 511.
    """
    if sector_data is None or len(sector_data) < BOOT_BLOCK_SIZE:
        return False
    return checksum(sector_data, BOOT_BLOCK_SIZE) == sector_data[BOOT_BLOCK_SIZE - 1]
