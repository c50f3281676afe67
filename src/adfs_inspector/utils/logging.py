"""
Logging configuration for ADFS Inspector.

Provides file and console logging with system information capture for
debugging and troubleshooting.
"""

import logging
import platform
import sys
from pathlib import Path
from typing import Optional

# Marks handlers installed by setup_logging() so repeated calls replace them
_HANDLER_TAG = '_adfs_inspector_handler'

FILE_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
CONSOLE_FORMAT = '%(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logging(log_file: Optional[str] = None, level: int = logging.INFO,
                  console_level: int = logging.WARNING) -> None:
    """
    Configure logging for the application.

    Sets up an optional log file at the given level and a console handler
    on stderr, keeping stdout free for reports.

    Args:
        log_file: Path to log file, None for console only
        level: Root and file logging level (default: logging.INFO)
        console_level: Console logging level (default: logging.WARNING)

    Example:
        >>> setup_logging("adfs_inspector.log", logging.DEBUG)
        >>> logging.info("Application started")
    """
    reset_logging()

    root = logging.getLogger()
    root.setLevel(min(level, console_level))

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        setattr(file_handler, _HANDLER_TAG, True)
        root.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    setattr(console_handler, _HANDLER_TAG, True)
    root.addHandler(console_handler)

    log_system_info()


def reset_logging() -> None:
    """Remove and close the handlers installed by setup_logging()."""
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_TAG, False):
            root.removeHandler(handler)
            handler.close()


def log_system_info() -> None:
    """Log platform and interpreter details at DEBUG level."""
    logging.debug("=" * 60)
    logging.debug("ADFS Inspector - System Information")
    logging.debug("=" * 60)
    logging.debug("Platform: %s %s", platform.system(), platform.release())
    logging.debug("Machine: %s", platform.machine())
    logging.debug("Python version: %s", sys.version)
    logging.debug("Python executable: %s", sys.executable)
    logging.debug("=" * 60)


def log_operation(operation: str, details: str, level: int = logging.INFO) -> None:
    """
    Log an inspection step with details.

    Args:
        operation: Name of the operation (e.g., "load_image", "walk")
        details: Additional details about the operation
        level: Logging level (default: logging.INFO)

    Example:
        >>> log_operation("walk", "root at 0x200", logging.DEBUG)
    """
    logging.log(level, "%s: %s", operation, details)


def log_detection(disc_format, reason: str) -> None:
    """
    Log the outcome of format detection.

    Example:
        >>> log_detection(DiscFormat.L, "old map, 2560 sectors")
    """
    if disc_format.is_known:
        logging.info("Detected %s (%s)", disc_format.label, reason)
    else:
        logging.warning("No ADFS format recognised (%s)", reason)


def log_image_info(filepath: str, geometry) -> None:
    """
    Log image file information.

    Args:
        filepath: Image path
        geometry: ImageGeometry of the loaded image
    """
    logging.info("Image: %s", filepath)
    logging.info(
        "Geometry: %dC/%dH/%dS (%d bytes/sector)",
        geometry.cylinders, geometry.heads,
        geometry.sectors_per_track, geometry.sector_size,
    )
    logging.info("Capacity: %d sectors (%d KB)",
                 geometry.total_sectors, geometry.total_bytes // 1024)
