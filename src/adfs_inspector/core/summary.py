"""
Whole-disc inspection: format, identity and directory tree in one pass.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from .detector import DetectionResult, DiscRecordReporter, inspect_format
from .directory import DirectoryNode, iter_nodes, walk_directory
from .disc_record import DiscRecord
from .formats import DiscFormat, root_directory_offset
from .old_map import OldMapRecord
from .settings import WalkerSettings

logger = logging.getLogger(__name__)


@dataclass
class DiscSummary:
    """
    Everything decoded from one disc image.

    Attributes:
        detection: Format detection result and its evidence
        title: Disc title ("" when the format has none to offer)
        root_offset: Absolute offset of the root directory, if walked
        tree: Root directory listing
    """
    detection: DetectionResult
    title: str = ""
    root_offset: Optional[int] = None
    tree: List[DirectoryNode] = field(default_factory=list)

    @property
    def disc_format(self) -> DiscFormat:
        return self.detection.disc_format

    @property
    def old_map(self) -> Optional[OldMapRecord]:
        return self.detection.old_map

    @property
    def disc_record(self) -> Optional[DiscRecord]:
        return self.detection.disc_record

    @property
    def object_count(self) -> int:
        """Objects in the tree, directories included."""
        return sum(1 for _ in iter_nodes(self.tree))


def inspect_disc(image, walker: Optional[WalkerSettings] = None,
                 report: Optional[DiscRecordReporter] = None,
                 walk_tree: bool = True) -> DiscSummary:
    """
    Detect the format of an image and decode what it describes.

    Args:
        image: SectorSource to inspect
        walker: Directory walk settings, defaults when None
        report: Optional disc record reporter passed to detection
        walk_tree: Read the directory tree of old map discs

    Returns:
        DiscSummary; for unrecognised images only detection is filled in
    """
    walker = walker or WalkerSettings()

    summary = DiscSummary(detection=inspect_format(image, report))
    disc_format = summary.disc_format

    if not disc_format.is_known:
        logger.info("Unrecognised image: %s", summary.detection.reason)
        return summary

    if summary.old_map is not None:
        summary.title = summary.old_map.disc_name
    elif summary.disc_record is not None:
        summary.title = summary.disc_record.name

    root = root_directory_offset(disc_format)
    if walk_tree and root is not None:
        summary.root_offset = root
        summary.tree = walk_directory(image, root, disc_format,
                                      track_width=walker.track_width,
                                      guard_cycles=walker.guard_cycles,
                                      max_depth=walker.max_depth)

    logger.info("%s disc '%s', %d objects", disc_format.label, summary.title,
                summary.object_count)
    return summary
