"""
Byte-stream access to a sector image through an explicit cursor.

Directory walking reads ADFS structures as if the disc were one flat
byte range. Where that range lands physically depends on the ordering
policy: sequenced discs fill side 0 before side 1, interleaved discs
alternate sides track by track. The cursor is a plain integer owned by
the stream, so callers save and restore it as an ordinary value.
"""

import logging
from typing import List, Tuple

from adfs_inspector.core.errors import MissingSectorError, TruncatedSectorError
from adfs_inspector.core.formats import DIRECTORY_TRACK_WIDTH, OrderingPolicy
from .sector_image import SectorSource

logger = logging.getLogger(__name__)


def logical_track_to_physical(track: int, policy: OrderingPolicy,
                              track_width: int = DIRECTORY_TRACK_WIDTH) -> Tuple[int, int]:
    """
    Map a logical track number to (cylinder, head).

    Args:
        track: Logical track number
        policy: Side ordering policy
        track_width: Tracks per side for the sequenced policy

    Returns:
        Tuple of (cylinder, head)

    Example:
        >>> logical_track_to_physical(81, OrderingPolicy.SEQUENCED, 80)
        (1, 1)
        >>> logical_track_to_physical(81, OrderingPolicy.INTERLEAVED, 80)
        (40, 1)
    """
    if policy is OrderingPolicy.SEQUENCED:
        return (track % track_width, track // track_width)
    return (track // 2, track % 2)


class SectorStream:
    """
    Seekable byte reader over a SectorSource.

    Example:
        stream = SectorStream(image)
        stream.seek(0x200, OrderingPolicy.SEQUENCED, 80)
        header = stream.read(5, OrderingPolicy.SEQUENCED, 80)
        saved = stream.offset
    """

    def __init__(self, source: SectorSource):
        self._source = source
        self._offset = 0

    @property
    def source(self) -> SectorSource:
        return self._source

    @property
    def offset(self) -> int:
        """Current absolute byte offset."""
        return self._offset

    def seek(self, offset: int, policy: OrderingPolicy = OrderingPolicy.SEQUENCED,
             track_width: int = DIRECTORY_TRACK_WIDTH) -> int:
        """
        Move the cursor to an absolute byte offset.

        The policy and track width are accepted for symmetry with read();
        the cursor itself is policy independent.

        Returns:
            The new offset

        Raises:
            ValueError: If offset is negative
        """
        if offset < 0:
            raise ValueError(f"Cannot seek to negative offset {offset}")
        self._offset = offset
        return self._offset

    def read(self, length: int, policy: OrderingPolicy = OrderingPolicy.SEQUENCED,
             track_width: int = DIRECTORY_TRACK_WIDTH) -> bytes:
        """
        Read bytes at the cursor and advance it.

        The cursor only moves if the whole read succeeds.

        Args:
            length: Number of bytes to read
            policy: Side ordering policy
            track_width: Tracks per side for the sequenced policy

        Returns:
            Exactly ``length`` bytes

        Raises:
            MissingSectorError: If a sector in the range is not present
            TruncatedSectorError: If a sector has no data or too little
        """
        sector_size = self._source.sector_size
        sectors_per_track = self._source.sectors_per_track

        chunks: List[bytes] = []
        position = self._offset
        remaining = length

        while remaining > 0:
            logical_sector, within = divmod(position, sector_size)
            track, sector = divmod(logical_sector, sectors_per_track)
            cylinder, head = logical_track_to_physical(track, policy, track_width)

            view = self._source.find_sector(cylinder, head, sector)
            if view is None:
                raise MissingSectorError(cylinder, head, sector)

            take = min(remaining, sector_size - within)
            if view.data is None or view.size < within + take:
                raise TruncatedSectorError(
                    f"Sector C{cylinder}/H{head}/S{sector} has insufficient data",
                    expected_size=within + take,
                    actual_size=view.size,
                )

            chunks.append(view.data[within:within + take])
            position += take
            remaining -= take

        self._offset = position
        return b''.join(chunks)
