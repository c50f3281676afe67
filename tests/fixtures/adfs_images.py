"""
Synthetic ADFS image builders for testing.

Builds old map (S/M/L/D), new map (E/E+) and boot block (F/F+/G) images
in memory with valid checksums, plus directory records to populate them.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from adfs_inspector.core.checksum import checksum, zone_validity_byte
from adfs_inspector.core.directory import (
    ADFS_NEWDIR_ENTRIES,
    ADFS_OLDDIR_ENTRIES,
    DIR_ENTRY_SIZE,
    DIR_HEADER_SIZE,
    NEW_DIR_MARKER,
    OLD_DIR_MARKER,
    OLD_ATTRIBUTE_ORDER,
    Attribute,
)
from adfs_inspector.core.formats import (
    DIRECTORY_TRACK_WIDTH,
    DirKind,
    DiscFormat,
    OrderingPolicy,
    ordering_for,
)
from adfs_inspector.imaging.image_formats import ImageGeometry, STANDARD_GEOMETRIES
from adfs_inspector.imaging.sector_image import SectorImage
from adfs_inspector.imaging.sector_stream import logical_track_to_physical


# Old map sizes in 256-byte sectors
OLD_MAP_TOTAL_SECTORS = {
    DiscFormat.S: 640,
    DiscFormat.M: 1280,
    DiscFormat.L: 2560,
    DiscFormat.D: 3200,
}

GEOMETRY_S, GEOMETRY_M, GEOMETRY_L, GEOMETRY_DE, GEOMETRY_F, GEOMETRY_G = STANDARD_GEOMETRIES

OLD_MAP_GEOMETRY = {
    DiscFormat.S: GEOMETRY_S,
    DiscFormat.M: GEOMETRY_M,
    DiscFormat.L: GEOMETRY_L,
    DiscFormat.D: GEOMETRY_DE,
}

# Directory sizes on disc
OLD_DIR_SIZE = 0x500
NEW_DIR_SIZE = 0x800

# Load address prefix marking a filetype + timestamp
FILETYPE_LOAD_PREFIX = 0xFFF00000

# Centiseconds from 1900 to 2000-01-01 00:00:00 UTC
CENTISECONDS_2000 = (2208988800 + 946684800) * 100


# =============================================================================
# Entries and Directories
# =============================================================================

@dataclass
class EntrySpec:
    """Description of one directory entry to build."""
    name: str
    attributes: Attribute = Attribute.OWNER_READ | Attribute.OWNER_WRITE
    length: int = 0
    indirect: int = 0
    load: int = 0
    exec_address: int = 0
    sequence: int = 0


def file_entry(name: str, length: int = 0x100, indirect: int = 0x20,
               load: int = 0x1900, exec_address: int = 0x8023,
               attributes: Attribute = Attribute.OWNER_READ | Attribute.OWNER_WRITE) -> EntrySpec:
    """A plain file with load and exec addresses."""
    return EntrySpec(name, attributes, length, indirect, load, exec_address)


def typed_entry(name: str, filetype: int, centiseconds: int = CENTISECONDS_2000,
                length: int = 0x40, indirect: int = 0x20) -> EntrySpec:
    """A file carrying a filetype and timestamp."""
    load = FILETYPE_LOAD_PREFIX | (filetype << 8) | ((centiseconds >> 32) & 0xFF)
    exec_address = centiseconds & 0xFFFFFFFF
    return EntrySpec(name, Attribute.OWNER_READ | Attribute.OWNER_WRITE,
                     length, indirect, load, exec_address)


def dir_entry(name: str, indirect: int) -> EntrySpec:
    """A subdirectory entry."""
    return EntrySpec(name, Attribute.DIRECTORY | Attribute.OWNER_READ | Attribute.LOCKED,
                     OLD_DIR_SIZE, indirect)


def build_entry(spec: EntrySpec, dir_kind: DirKind) -> bytes:
    """Encode one 26-byte directory slot."""
    raw = bytearray(DIR_ENTRY_SIZE)

    name = spec.name.encode('ascii')[:10]
    raw[:len(name)] = name
    if len(name) < 10:
        raw[len(name)] = 0x0D

    if dir_kind is DirKind.OLD_DIR:
        for position, flag in enumerate(OLD_ATTRIBUTE_ORDER):
            if spec.attributes & flag:
                raw[position] |= 0x80
        raw[25] = spec.sequence
    else:
        raw[25] = int(spec.attributes)

    raw[10:14] = spec.load.to_bytes(4, 'little')
    raw[14:18] = spec.exec_address.to_bytes(4, 'little')
    raw[18:22] = spec.length.to_bytes(4, 'little')
    raw[22:25] = spec.indirect.to_bytes(3, 'little')
    return bytes(raw)


def build_directory(entries: Sequence[EntrySpec], dir_kind: DirKind,
                    master_sequence: int = 1) -> bytes:
    """
    Encode a whole directory: header, slots and zero filled tail.

    Unused slots are zero, so the first of them ends the listing.
    """
    if dir_kind is DirKind.OLD_DIR:
        marker, slots, size = OLD_DIR_MARKER, ADFS_OLDDIR_ENTRIES, OLD_DIR_SIZE
    else:
        marker, slots, size = NEW_DIR_MARKER, ADFS_NEWDIR_ENTRIES, NEW_DIR_SIZE

    if len(entries) > slots:
        raise ValueError(f"{len(entries)} entries do not fit in {slots} slots")

    raw = bytearray(size)
    raw[0] = master_sequence
    raw[1:DIR_HEADER_SIZE] = marker
    for index, spec in enumerate(entries):
        start = DIR_HEADER_SIZE + index * DIR_ENTRY_SIZE
        raw[start:start + DIR_ENTRY_SIZE] = build_entry(spec, dir_kind)
    return bytes(raw)


def write_logical(image: SectorImage, offset: int, data: bytes,
                  policy: OrderingPolicy,
                  track_width: int = DIRECTORY_TRACK_WIDTH) -> None:
    """Write data at a logical disc offset using an ordering policy."""
    sector_size = image.sector_size
    position = offset
    remaining = memoryview(bytes(data))

    while remaining:
        logical_sector, within = divmod(position, sector_size)
        track, sector = divmod(logical_sector, image.sectors_per_track)
        cylinder, head = logical_track_to_physical(track, policy, track_width)

        current = bytearray(image.find_sector(cylinder, head, sector).data)
        take = min(len(remaining), sector_size - within)
        current[within:within + take] = remaining[:take]
        image.set_sector(cylinder, head, sector, bytes(current))

        position += take
        remaining = remaining[take:]


# =============================================================================
# Old Map
# =============================================================================

def build_old_map(total_sectors: int, free_space: Sequence[Tuple[int, int]] = (),
                  name: str = "", disc_id: int = 0x1234, boot_option: int = 0) -> bytes:
    """
    Encode a 512-byte old map with valid checksums.

    Args:
        total_sectors: Disc size in 256-byte sectors
        free_space: (start, length) pairs
        name: Disc name, up to 10 characters
        disc_id: Disc identifier
        boot_option: Boot option byte
    """
    raw = bytearray(512)

    for index, (start, length) in enumerate(free_space):
        raw[index * 3:index * 3 + 3] = start.to_bytes(3, 'little')
        raw[0x100 + index * 3:0x100 + index * 3 + 3] = length.to_bytes(3, 'little')

    encoded = name.encode('ascii')[:10]
    for index, c in enumerate(encoded):
        if index % 2 == 0:
            raw[0xF7 + index // 2] = c
        else:
            raw[0x1F6 + index // 2] = c

    raw[0xFC:0xFF] = total_sectors.to_bytes(3, 'little')
    raw[0x1FB:0x1FD] = disc_id.to_bytes(2, 'little')
    raw[0x1FD] = boot_option
    raw[0x1FE] = len(free_space) * 3

    raw[0xFF] = checksum(raw[:256], 256)
    raw[0x1FF] = checksum(raw[256:], 256)
    return bytes(raw)


def refresh_old_map_checksums(raw: bytearray) -> bytearray:
    """Recompute both old map checksums after editing a map."""
    raw[0xFF] = checksum(raw[:256], 256)
    raw[0x1FF] = checksum(raw[256:512], 256)
    return raw


@dataclass
class OldDiscSpec:
    """An old map disc: format, name, root listing and subdirectories."""
    disc_format: DiscFormat = DiscFormat.L
    name: str = "TestDisc"
    free_space: List[Tuple[int, int]] = field(default_factory=lambda: [(0x100, 0x200)])
    root: List[EntrySpec] = field(default_factory=list)
    subdirectories: Dict[int, List[EntrySpec]] = field(default_factory=dict)
    boot_option: int = 0


def build_old_map_image(spec: Optional[OldDiscSpec] = None) -> SectorImage:
    """
    Build an old map disc image.

    Subdirectories are keyed by indirect disc address in 256-byte units
    and written where the directory walker will look for them.
    """
    spec = spec or OldDiscSpec()
    disc_format = spec.disc_format
    geometry = OLD_MAP_GEOMETRY[disc_format]
    image = SectorImage(geometry)

    old_map = build_old_map(OLD_MAP_TOTAL_SECTORS[disc_format], spec.free_space,
                            spec.name, boot_option=spec.boot_option)
    if geometry.sector_size == 256:
        image.set_sector(0, 0, 0, old_map[:256])
        image.set_sector(0, 0, 1, old_map[256:])
    else:
        image.set_sector(0, 0, 0, old_map)

    dir_kind = disc_format.dir_kind
    policy = ordering_for(dir_kind)
    root_offset = 0x400 if dir_kind is DirKind.NEW_DIR else 0x200

    write_logical(image, root_offset, build_directory(spec.root, dir_kind), policy)
    for indirect, entries in spec.subdirectories.items():
        write_logical(image, indirect * 256, build_directory(entries, dir_kind), policy)

    return image


# =============================================================================
# New Map and Boot Block
# =============================================================================

def build_disc_record(log2secsize: int = 10, secspertrack: int = 5, heads: int = 2,
                      density: int = 2, idlen: int = 15, log2bpmb: int = 7,
                      skew: int = 1, bootoption: int = 0, lowsector: int = 0,
                      nzones: int = 1, zone_spare: int = 0, root: int = 0x203,
                      disc_size: int = 819200, disc_id: int = 0x4B1D,
                      name: str = "NewMapDisc", disc_type: int = 0,
                      disc_size_high: int = 0, log2sharesize: int = 0,
                      big_flag: int = 0, nzones_high: int = 0,
                      format_version: int = 0, root_size: int = 0) -> bytes:
    """Encode a 64-byte disc record."""
    raw = bytearray(64)
    raw[0:10] = bytes([log2secsize, secspertrack, heads, density, idlen,
                       log2bpmb, skew, bootoption, lowsector, nzones])
    raw[10:12] = zone_spare.to_bytes(2, 'little')
    raw[12:16] = root.to_bytes(4, 'little')
    raw[16:20] = disc_size.to_bytes(4, 'little')
    raw[20:22] = disc_id.to_bytes(2, 'little')
    encoded = name.encode('ascii')[:10]
    raw[22:22 + len(encoded)] = encoded
    raw[32:36] = disc_type.to_bytes(4, 'little')
    raw[36:40] = disc_size_high.to_bytes(4, 'little')
    raw[40] = log2sharesize
    raw[41] = big_flag
    raw[42] = nzones_high
    raw[44:48] = format_version.to_bytes(4, 'little')
    raw[48:52] = root_size.to_bytes(4, 'little')
    return bytes(raw)


def build_new_map_zone(disc_record: bytes, log2secsize: int = 10) -> bytes:
    """Encode map zone 0 holding a disc record, with a valid check byte."""
    zone = bytearray(1 << log2secsize)
    zone[4:4 + len(disc_record)] = disc_record
    # Free link field so the zone is not all record and zeros
    zone[1:3] = (0x8000 | 0x0240).to_bytes(2, 'little')
    zone[0] = zone_validity_byte(zone, log2secsize, 0)
    return bytes(zone)


def build_new_map_image(root_size: int = 0, secspertrack: int = 5) -> SectorImage:
    """Build an E (or E+ with root_size) image with the map in sector 0."""
    image = SectorImage(GEOMETRY_DE)
    record = build_disc_record(secspertrack=secspertrack, root_size=root_size)
    image.set_sector(0, 0, 0, build_new_map_zone(record))
    return image


def build_boot_block(disc_record: bytes) -> bytes:
    """Encode a boot block sector with the disc record at 0x1C0."""
    sector = bytearray(1024)
    sector[0x1C0:0x1C0 + len(disc_record)] = disc_record
    sector[511] = checksum(sector, 512)
    return bytes(sector)


def build_boot_block_image(secspertrack: int = 10, root_size: int = 0,
                           geometry: Optional[ImageGeometry] = None) -> SectorImage:
    """Build an F/F+/G image with a boot block at 0xC00."""
    if geometry is None:
        geometry = GEOMETRY_G if secspertrack == 20 else GEOMETRY_F
    image = SectorImage(geometry)
    record = build_disc_record(secspertrack=secspertrack, root_size=root_size,
                               disc_size=geometry.total_bytes, name="BootDisc")
    image.set_sector(0, 0, 3, build_boot_block(record))
    return image


# =============================================================================
# Ready-made Discs
# =============================================================================

def create_old_map_disc(disc_format: DiscFormat = DiscFormat.L) -> SectorImage:
    """
    Old map disc with a small tree.

    Root: !Boot (file), Games (dir at 0x07), Notes (typed Text file)
    Games: Elite (file), Saves (dir at 0x0C)
    Saves: Slot1 (file)
    """
    root = [
        file_entry("!Boot", length=0x20),
        dir_entry("Games", 0x07),
        typed_entry("Notes", 0xFFF),
    ]
    games = [
        file_entry("Elite", length=0x5000, indirect=0x30),
        dir_entry("Saves", 0x0C),
    ]
    saves = [file_entry("Slot1", length=0x10, indirect=0x80)]

    if disc_format is DiscFormat.D:
        # D directories are 0x800 long, keep them clear of each other
        root[1] = dir_entry("Games", 0x0C)
        games[1] = dir_entry("Saves", 0x14)
        subdirectories = {0x0C: games, 0x14: saves}
    else:
        subdirectories = {0x07: games, 0x0C: saves}

    return build_old_map_image(OldDiscSpec(
        disc_format=disc_format,
        name="Adventure",
        root=root,
        subdirectories=subdirectories,
    ))


def create_empty_disc(disc_format: DiscFormat = DiscFormat.S) -> SectorImage:
    """Old map disc with no free space entries and an empty root."""
    return build_old_map_image(OldDiscSpec(disc_format=disc_format, name="Empty",
                                           free_space=[]))
