"""
Error taxonomy for ADFS structure decoding.

Format detection treats every one of these as a soft signal that rules a
trial out; the directory walker treats missing or truncated sectors as
fatal to the directory being read and nothing more.
"""

from typing import Optional


class AdfsError(Exception):
    """Base exception for ADFS decoding errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        return self.message


class MissingSectorError(AdfsError):
    """Raised when a requested cylinder/head/sector is not in the image."""

    def __init__(self, cylinder: int, head: int, sector: int,
                 message: str = "Sector not present"):
        self.cylinder = cylinder
        self.head = head
        self.sector = sector
        super().__init__(message)

    def _format_message(self) -> str:
        return f"{self.message} [C:{self.cylinder} H:{self.head} S:{self.sector}]"


class TruncatedSectorError(AdfsError):
    """Raised when a sector has no data or less data than required."""

    def __init__(self, message: str = "Sector data truncated",
                 expected_size: Optional[int] = None,
                 actual_size: Optional[int] = None):
        self.expected_size = expected_size
        self.actual_size = actual_size
        super().__init__(message)

    def _format_message(self) -> str:
        if self.expected_size is not None and self.actual_size is not None:
            return f"{self.message} [Expected: {self.expected_size}, Actual: {self.actual_size}]"
        return self.message


class ChecksumMismatchError(AdfsError):
    """Raised when a stored checksum does not match the recomputed one."""

    def __init__(self, what: str, expected: int, actual: int):
        self.what = what
        self.expected = expected
        self.actual = actual
        super().__init__(f"Checksum mismatch in {what}")

    def _format_message(self) -> str:
        return f"{self.message} [Stored: 0x{self.actual:02X}, Computed: 0x{self.expected:02X}]"


class StructuralInvariantError(AdfsError):
    """Raised when a decoded record breaks a structural rule of the format."""
    pass


class UnrecognizedFormatError(AdfsError):
    """Raised when every detection trial has been exhausted."""

    def __init__(self, message: str = "Unrecognised ADFS format"):
        super().__init__(message)
