"""
Test fixtures for ADFS Inspector.

Provides builders for synthetic ADFS images so the decoders can be
tested without real disc dumps.
"""

from tests.fixtures.adfs_images import (
    CENTISECONDS_2000,
    OLD_MAP_TOTAL_SECTORS,
    GEOMETRY_S,
    GEOMETRY_M,
    GEOMETRY_L,
    GEOMETRY_DE,
    GEOMETRY_F,
    GEOMETRY_G,
    EntrySpec,
    OldDiscSpec,
    file_entry,
    typed_entry,
    dir_entry,
    build_entry,
    build_directory,
    build_old_map,
    refresh_old_map_checksums,
    build_old_map_image,
    build_disc_record,
    build_new_map_zone,
    build_new_map_image,
    build_boot_block,
    build_boot_block_image,
    write_logical,
    create_old_map_disc,
    create_empty_disc,
)

__all__ = [
    "CENTISECONDS_2000",
    "OLD_MAP_TOTAL_SECTORS",
    "GEOMETRY_S",
    "GEOMETRY_M",
    "GEOMETRY_L",
    "GEOMETRY_DE",
    "GEOMETRY_F",
    "GEOMETRY_G",
    "EntrySpec",
    "OldDiscSpec",
    "file_entry",
    "typed_entry",
    "dir_entry",
    "build_entry",
    "build_directory",
    "build_old_map",
    "refresh_old_map_checksums",
    "build_old_map_image",
    "build_disc_record",
    "build_new_map_zone",
    "build_new_map_image",
    "build_boot_block",
    "build_boot_block_image",
    "write_logical",
    "create_old_map_disc",
    "create_empty_disc",
]
