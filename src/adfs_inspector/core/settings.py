"""
Settings management module for ADFS Inspector.

Settings are pydantic models persisted as a versioned JSON file in the
platform settings directory and shared through a singleton.

Features:
    - Singleton pattern for global settings access
    - JSON-based configuration file persistence
    - Platform-specific settings paths
    - Migration support between versions
    - Validation with fallback to defaults

Settings Categories:
    - Walker: Track width, cycle guard, depth limit
    - Detection: Disc record diagnostics
    - Logging: Log file and level
"""

import json
import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .formats import DIRECTORY_TRACK_WIDTH

# Module logger
logger = logging.getLogger(__name__)


LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


# =============================================================================
# Settings File Paths
# =============================================================================

def get_settings_dir() -> Path:
    """
    Get the platform-specific settings directory.

    Returns:
        Path to settings directory

    Platform paths:
        - Linux: ~/.config/adfs-inspector/
        - Windows: %APPDATA%/AdfsInspector/
        - macOS: ~/Library/Application Support/AdfsInspector/
    """
    if sys.platform == 'win32':
        base = Path(os.environ.get('APPDATA', Path.home() / 'AppData' / 'Roaming'))
        return base / 'AdfsInspector'
    elif sys.platform == 'darwin':
        return Path.home() / 'Library' / 'Application Support' / 'AdfsInspector'
    else:
        xdg_config = os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config')
        return Path(xdg_config) / 'adfs-inspector'


def get_settings_file() -> Path:
    """Get the settings file path."""
    return get_settings_dir() / 'settings.json'


# =============================================================================
# Settings Models
# =============================================================================

class WalkerSettings(BaseModel):
    """Directory walk settings."""
    track_width: int = Field(default=DIRECTORY_TRACK_WIDTH, ge=1)
    guard_cycles: bool = True                # Never read a directory offset twice
    max_depth: Optional[int] = Field(default=None, ge=0)


class DetectionSettings(BaseModel):
    """Format detection settings."""
    report_disc_records: bool = False        # Log every decoded disc record


class LoggingSettings(BaseModel):
    """Log output settings."""
    log_file: Optional[str] = None
    level: str = 'INFO'

    @field_validator('level')
    @classmethod
    def _check_level(cls, value: str) -> str:
        value = value.upper()
        if value not in LOG_LEVELS:
            raise ValueError(f"level must be one of {', '.join(LOG_LEVELS)}")
        return value

    def get_level(self) -> int:
        """Get level as a logging module constant."""
        return getattr(logging, self.level)


class InspectorSettings(BaseModel):
    """All settings categories."""
    walker: WalkerSettings = Field(default_factory=WalkerSettings)
    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


# =============================================================================
# Settings Manager (Singleton)
# =============================================================================

class Settings:
    """
    Singleton settings manager for ADFS Inspector.

    Usage:
        settings = Settings.instance()
        settings.walker.max_depth = 8
        settings.save()
    """

    _instance: Optional["Settings"] = None

    # Settings version for migration
    SETTINGS_VERSION = 1

    def __init__(self, settings_file: Optional[Path] = None):
        self._settings_file = Path(settings_file) if settings_file else None
        self.values = InspectorSettings()
        self.load()

    @classmethod
    def instance(cls, settings_file: Optional[Path] = None) -> "Settings":
        """
        Get the singleton settings instance.

        Args:
            settings_file: File to load from when the instance is first
                created; ignored afterwards
        """
        if cls._instance is None:
            cls._instance = cls(settings_file)
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Reset the singleton instance (for testing)."""
        cls._instance = None

    # =========================================================================
    # Category Access
    # =========================================================================

    @property
    def walker(self) -> WalkerSettings:
        return self.values.walker

    @property
    def detection(self) -> DetectionSettings:
        return self.values.detection

    @property
    def logging(self) -> LoggingSettings:
        return self.values.logging

    @property
    def settings_file(self) -> Path:
        """Get the settings file path."""
        return self._settings_file or get_settings_file()

    # =========================================================================
    # Persistence
    # =========================================================================

    def load(self) -> bool:
        """
        Load settings from file.

        A missing file leaves the defaults in place. Invalid JSON is backed
        up and replaced by defaults, as are values that fail validation.

        Returns:
            True if settings were loaded successfully
        """
        settings_file = self.settings_file

        if not settings_file.exists():
            logger.info("Settings file not found: %s", settings_file)
            return False

        try:
            with open(settings_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON in settings file: %s", e)
            self._backup_corrupted_file(settings_file)
            return False
        except OSError as e:
            logger.error("Error reading settings: %s", e)
            return False

        if not isinstance(data, dict):
            logger.error("Settings file does not hold an object: %s", settings_file)
            return False

        version = data.get('version', 0)
        if not isinstance(version, int) or isinstance(version, bool):
            logger.error("Invalid settings version %r in %s, using defaults", version, settings_file)
            self.values = InspectorSettings()
            return False
        if version < self.SETTINGS_VERSION:
            data = self._migrate_settings(data, version)

        categories = {key: data[key] for key in InspectorSettings.model_fields if key in data}
        try:
            self.values = InspectorSettings.model_validate(categories)
        except ValidationError as e:
            logger.error("Invalid settings in %s, using defaults: %s", settings_file, e)
            self.values = InspectorSettings()
            return False

        logger.info("Settings loaded from %s", settings_file)
        return True

    def save(self) -> bool:
        """
        Save settings to file.

        Returns:
            True if settings were saved successfully
        """
        settings_file = self.settings_file

        try:
            settings_file.parent.mkdir(parents=True, exist_ok=True)

            data = {
                'version': self.SETTINGS_VERSION,
                'saved_at': datetime.now().isoformat(),
            }
            data.update(self.values.model_dump())

            # Write to temp file first, then rename (atomic)
            temp_file = settings_file.with_suffix('.tmp')
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            temp_file.replace(settings_file)

            logger.info("Settings saved to %s", settings_file)
            return True

        except OSError as e:
            logger.error("Error saving settings: %s", e)
            return False

    def _migrate_settings(self, data: Dict[str, Any], from_version: int) -> Dict[str, Any]:
        """Bring an unversioned settings file up to the current version."""
        logger.info("Migrating settings from version %d to %d", from_version, self.SETTINGS_VERSION)
        data['version'] = self.SETTINGS_VERSION
        return data

    def _backup_corrupted_file(self, file_path: Path) -> None:
        """Backup a corrupted settings file."""
        backup_path = file_path.with_suffix('.backup')
        try:
            file_path.replace(backup_path)
            logger.info("Corrupted settings backed up to %s", backup_path)
        except OSError as e:
            logger.error("Could not backup corrupted file: %s", e)

    def reset_to_defaults(self) -> None:
        """Reset every category to its defaults."""
        self.values = InspectorSettings()
        logger.info("Settings reset to defaults")


# =============================================================================
# Module-Level Convenience Functions
# =============================================================================

def get_settings() -> Settings:
    """
    Get the global settings instance.

    This is a convenience function equivalent to Settings.instance().
    """
    return Settings.instance()


__all__ = [
    # Models
    'WalkerSettings',
    'DetectionSettings',
    'LoggingSettings',
    'InspectorSettings',

    # Main class
    'Settings',

    # Convenience functions
    'get_settings',
    'get_settings_dir',
    'get_settings_file',
]
