"""
ADFS directory decoding and tree walking.

Old ("Hugo") and new ("Nick") directories share one record layout: a
5-byte header followed by fixed 26-byte entry slots. They differ in slot
count and in where the attributes live. Old directories keep them in the
top bit of the first seven name characters; new directories have an
attribute byte at the end of each slot.

Entry layout:
    0   name (10 bytes, top bits may carry old attributes)
    10  load address (4)
    14  exec address (4)
    18  length (4)
    22  indirect disc address (3)
    25  attributes (new) / sequence number (old)

When the top 12 bits of the load address are all set the load and exec
words instead hold a filetype and a 40-bit centisecond timestamp counted
from 1900 (RISC OS PRM 2-16).

Only old map discs are walked. Directory addresses on new map discs are
fragment ids that need the map's fragment table to resolve, which is not
implemented.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import IntFlag
from typing import Iterator, List, Optional, Set, Tuple, Union

from adfs_inspector.imaging.sector_stream import SectorStream
from .errors import MissingSectorError, TruncatedSectorError
from .filetypes import filetype_name
from .formats import (
    DIRECTORY_TRACK_WIDTH,
    OLD_MAP_ALLOCATION_UNIT,
    DirKind,
    DiscFormat,
    MapKind,
    ordering_for,
)
from .values import read_le

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

DIR_HEADER_SIZE = 5
DIR_ENTRY_SIZE = 26
DIR_NAME_LEN = 10

ADFS_OLDDIR_ENTRIES = 47
ADFS_NEWDIR_ENTRIES = 77

OLD_DIR_MARKER = b'Hugo'
NEW_DIR_MARKER = b'Nick'

# Load address sentinel marking a filetype + timestamp entry
FILETYPE_SENTINEL_MASK = 0xFFF00000

# Seconds between 1900-01-01 (RISC OS epoch) and 1970-01-01
RISCOS_UNIX_EPOCH_DIFF = 2208988800

UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

NAME_TERMINATORS = (0x00, 0x0D, 0x0A)


class Attribute(IntFlag):
    """Object attributes, new directory bit positions."""
    OWNER_READ = 0x01
    OWNER_WRITE = 0x02
    LOCKED = 0x04
    DIRECTORY = 0x08
    EXECUTABLE = 0x10
    PUBLIC_READ = 0x20
    PUBLIC_WRITE = 0x40


# Old directories: the top bit of name byte N carries attribute N
OLD_ATTRIBUTE_ORDER = (
    Attribute.OWNER_READ,
    Attribute.OWNER_WRITE,
    Attribute.LOCKED,
    Attribute.DIRECTORY,
    Attribute.EXECUTABLE,
    Attribute.PUBLIC_READ,
    Attribute.PUBLIC_WRITE,
)


# =============================================================================
# Data Classes
# =============================================================================

@dataclass(frozen=True)
class LoadExec:
    """Load and execution addresses of an untyped object."""
    load_address: int
    exec_address: int


@dataclass(frozen=True)
class FiletypeStamp:
    """
    Filetype and timestamp of a typed object.

    Attributes:
        filetype: 12-bit filetype code
        centiseconds: Centiseconds since 1900-01-01
        timestamp: UTC time, None when the stamp predates 1970
    """
    filetype: int
    centiseconds: int
    timestamp: Optional[datetime]

    @property
    def filetype_name(self) -> str:
        return filetype_name(self.filetype)


EntryInfo = Union[LoadExec, FiletypeStamp]


@dataclass
class DirectoryHeader:
    """Directory header: master sequence number and start marker."""
    master_sequence: int
    start_name: bytes

    @property
    def marker_valid(self) -> bool:
        return self.start_name in (OLD_DIR_MARKER, NEW_DIR_MARKER)


@dataclass
class DirectoryEntry:
    """
    One decoded directory slot.

    Attributes:
        name: Object name
        attributes: Access and type attributes
        length: Object length in bytes
        indirect_address: 3-byte indirect disc address
        info: Load/exec addresses or filetype/timestamp
        load_word: Raw load address field
        exec_word: Raw exec address field
        sequence: Sequence number (old directories) or attribute byte
    """
    name: str
    attributes: Attribute
    length: int
    indirect_address: int
    info: EntryInfo
    load_word: int = 0
    exec_word: int = 0
    sequence: int = 0

    @property
    def is_directory(self) -> bool:
        return bool(self.attributes & Attribute.DIRECTORY)

    @property
    def has_filetype(self) -> bool:
        return isinstance(self.info, FiletypeStamp)

    @property
    def filetype(self) -> Optional[int]:
        if isinstance(self.info, FiletypeStamp):
            return self.info.filetype
        return None

    @property
    def timestamp(self) -> Optional[datetime]:
        if isinstance(self.info, FiletypeStamp):
            return self.info.timestamp
        return None


@dataclass
class DirectoryNode:
    """
    A directory entry and, for directories, what it contains.

    Attributes:
        name: Object name
        entry: Decoded entry
        offset: Absolute disc offset of the child directory, if any
        children: Child nodes (directories on old map discs only)
    """
    name: str
    entry: DirectoryEntry
    offset: Optional[int] = None
    children: List['DirectoryNode'] = field(default_factory=list)

    @property
    def is_directory(self) -> bool:
        return self.entry.is_directory

    def iter_tree(self, prefix: str = "$", depth: int = 0) -> Iterator[Tuple[str, int, 'DirectoryNode']]:
        """Yield (path, depth, node) for this node and everything below it."""
        path = f"{prefix}.{self.name}"
        yield path, depth, self
        for child in self.children:
            yield from child.iter_tree(path, depth + 1)


def iter_nodes(nodes: List[DirectoryNode], prefix: str = "$") -> Iterator[Tuple[str, int, DirectoryNode]]:
    """Yield (path, depth, node) over a whole listing, depth first."""
    for node in nodes:
        yield from node.iter_tree(prefix)


# =============================================================================
# Field Decoding
# =============================================================================

def decode_name(raw: bytes) -> str:
    """
    Decode an entry name.

    Top bits are masked off and the name ends at NUL, CR or LF, or after
    ten characters.
    """
    chars = []
    for byte in raw[:DIR_NAME_LEN]:
        c = byte & 0x7F
        if c in NAME_TERMINATORS:
            break
        chars.append(chr(c))
    return ''.join(chars)


def decode_old_attributes(raw_name: bytes) -> Attribute:
    """Rebuild attributes from the top bits of an old directory name."""
    attributes = Attribute(0)
    for byte, flag in zip(raw_name, OLD_ATTRIBUTE_ORDER):
        if byte & 0x80:
            attributes |= flag
    return attributes


def riscos_time_to_datetime(centiseconds: int) -> Optional[datetime]:
    """
    Convert RISC OS centiseconds since 1900 to a UTC datetime.

    Returns:
        datetime, or None for stamps earlier than 1970-01-01
    """
    seconds = centiseconds // 100
    if seconds < RISCOS_UNIX_EPOCH_DIFF:
        return None
    return UNIX_EPOCH + timedelta(seconds=seconds - RISCOS_UNIX_EPOCH_DIFF)


def decode_entry_info(load_word: int, exec_word: int) -> EntryInfo:
    """
    Split the load/exec words into their tagged meaning.

    Example:
        >>> decode_entry_info(0xFFFA3200, 0).filetype
        2610
    """
    if (load_word & FILETYPE_SENTINEL_MASK) == FILETYPE_SENTINEL_MASK:
        filetype = (load_word & 0x000FFF00) >> 8
        centiseconds = ((load_word & 0xFF) << 32) | exec_word
        return FiletypeStamp(filetype, centiseconds, riscos_time_to_datetime(centiseconds))
    return LoadExec(load_word, exec_word)


def parse_header(raw: bytes) -> DirectoryHeader:
    """Decode the 5-byte directory header."""
    return DirectoryHeader(master_sequence=raw[0], start_name=bytes(raw[1:DIR_HEADER_SIZE]))


def parse_entry(raw: bytes, dir_kind: DirKind) -> DirectoryEntry:
    """
    Decode one 26-byte directory slot.

    Args:
        raw: Slot bytes
        dir_kind: Directory encoding, selects where attributes come from

    Returns:
        DirectoryEntry
    """
    name_field = raw[:DIR_NAME_LEN]
    load_word = read_le(raw, 4, 10)
    exec_word = read_le(raw, 4, 14)

    if dir_kind is DirKind.NEW_DIR:
        attributes = Attribute(raw[25] & 0x7F)
    else:
        attributes = decode_old_attributes(name_field)

    return DirectoryEntry(
        name=decode_name(name_field),
        attributes=attributes,
        length=read_le(raw, 4, 18),
        indirect_address=read_le(raw, 3, 22),
        info=decode_entry_info(load_word, exec_word),
        load_word=load_word,
        exec_word=exec_word,
        sequence=raw[25],
    )


# =============================================================================
# Tree Walking
# =============================================================================

class DirectoryWalker:
    """
    Recursive directory reader over a SectorStream.

    Child directories are read at ``indirect_address * sector_size``. The
    stream cursor is saved before each descent and restored after it, so
    siblings are read from where the parent left off however much the
    child consumed.

    Example:
        walker = DirectoryWalker(SectorStream(image), DirKind.OLD_DIR)
        nodes = walker.walk(0x200)
    """

    def __init__(self, stream: SectorStream, dir_kind: DirKind,
                 sector_size: int = OLD_MAP_ALLOCATION_UNIT,
                 track_width: int = DIRECTORY_TRACK_WIDTH,
                 guard_cycles: bool = True,
                 max_depth: Optional[int] = None):
        self._stream = stream
        self._dir_kind = dir_kind
        self._sector_size = sector_size
        self._track_width = track_width
        self._policy = ordering_for(dir_kind)
        self._guard_cycles = guard_cycles
        self._max_depth = max_depth
        self._visited: Set[int] = set()

        if dir_kind is DirKind.OLD_DIR:
            self._slots = ADFS_OLDDIR_ENTRIES
        else:
            self._slots = ADFS_NEWDIR_ENTRIES

    @property
    def visited(self) -> Set[int]:
        """Directory offsets read so far."""
        return set(self._visited)

    def walk(self, offset: int, depth: int = 0) -> List[DirectoryNode]:
        """
        Read the directory at offset and everything below it.

        A missing or truncated sector anywhere in this directory's own
        header or slots empties this directory's listing; the caller's
        listing is unaffected.

        Args:
            offset: Absolute byte offset of the directory
            depth: Nesting level, 0 for the root

        Returns:
            Child nodes in slot order
        """
        if self._guard_cycles:
            if offset in self._visited:
                logger.warning("Directory at 0x%X already visited, not descending", offset)
                return []
            self._visited.add(offset)

        stream, policy, width = self._stream, self._policy, self._track_width

        try:
            stream.seek(offset, policy, width)
            header = parse_header(stream.read(DIR_HEADER_SIZE, policy, width))
            if not header.marker_valid:
                logger.debug("Directory at 0x%X has start marker %r", offset, header.start_name)

            nodes = []
            for _ in range(self._slots):
                raw = stream.read(DIR_ENTRY_SIZE, policy, width)

                # Empty name ends the directory (PRM 2-211)
                if raw[0] == 0:
                    break

                entry = parse_entry(raw, self._dir_kind)
                node = DirectoryNode(entry.name, entry)

                if entry.is_directory:
                    node.offset = entry.indirect_address * self._sector_size
                    node.children = self._descend(node.offset, depth + 1)

                nodes.append(node)

        except (MissingSectorError, TruncatedSectorError) as e:
            logger.warning("Directory at 0x%X unreadable: %s", offset, e)
            return []

        return nodes

    def _descend(self, offset: int, depth: int) -> List[DirectoryNode]:
        """Walk a child directory, restoring the cursor afterwards."""
        if self._max_depth is not None and depth > self._max_depth:
            logger.info("Depth limit %d reached at 0x%X", self._max_depth, offset)
            return []

        saved = self._stream.offset
        try:
            return self.walk(offset, depth)
        finally:
            self._stream.seek(saved, self._policy, self._track_width)


def walk(stream: SectorStream, offset: int, sector_size: int, dir_kind: DirKind,
         track_width: int = DIRECTORY_TRACK_WIDTH,
         guard_cycles: bool = True,
         max_depth: Optional[int] = None) -> List[DirectoryNode]:
    """
    Walk the directory tree rooted at offset.

    Args:
        stream: Stream over the disc
        offset: Absolute byte offset of the directory
        sector_size: Unit of indirect disc addresses
        dir_kind: Directory encoding
        track_width: Tracks per side for the stream ordering
        guard_cycles: Refuse to read any directory offset twice
        max_depth: Deepest nesting level to descend to, None for no limit

    Returns:
        Nodes of the directory
    """
    walker = DirectoryWalker(stream, dir_kind, sector_size, track_width,
                             guard_cycles, max_depth)
    return walker.walk(offset)


def walk_directory(image, offset: int, disc_format: DiscFormat,
                   track_width: int = DIRECTORY_TRACK_WIDTH,
                   guard_cycles: bool = True,
                   max_depth: Optional[int] = None) -> List[DirectoryNode]:
    """
    Walk the directory tree of an image from offset.

    Only old map formats are walked; new map and unknown formats return
    an empty list.

    Args:
        image: SectorSource to read from
        offset: Absolute byte offset of the directory
        disc_format: Detected format of the image

    Returns:
        Nodes of the directory
    """
    if disc_format.map_kind is not MapKind.OLD_MAP:
        logger.info("Directory walk not supported for %s: new map fragment addresses "
                    "are not resolved", disc_format.label)
        return []

    return walk(SectorStream(image), offset, OLD_MAP_ALLOCATION_UNIT,
                disc_format.dir_kind, track_width, guard_cycles, max_depth)
