"""
RISC OS filetype names.

Covers the common 12-bit filetypes seen on ADFS floppies. Codes outside
the table have no name; that is not an error.
"""

from typing import Dict


FILETYPE_NAMES: Dict[int, str] = {
    0x695: "GIF",
    0xA91: "Zip",
    0xB60: "PNG",
    0xC85: "JPEG",
    0xDDC: "Archive",
    0xDEC: "DiscRec",
    0xF89: "GZip",
    0xFAE: "Resource",
    0xFAF: "HTML",
    0xFB0: "Allocate",
    0xFCA: "Squash",
    0xFCD: "HardDisc",
    0xFCE: "FloppyDisc",
    0xFD1: "BASICTxt",
    0xFD6: "TaskExec",
    0xFD7: "TaskObey",
    0xFDB: "TextCRLF",
    0xFEA: "Desktop",
    0xFEB: "Obey",
    0xFEC: "Template",
    0xFED: "Palette",
    0xFF6: "Font",
    0xFF8: "Absolute",
    0xFF9: "Sprite",
    0xFFA: "Module",
    0xFFB: "Basic",
    0xFFC: "Utility",
    0xFFD: "Data",
    0xFFE: "Command",
    0xFFF: "Text",
}


def filetype_name(code: int) -> str:
    """
    Name of a filetype code.

    Example:
        >>> filetype_name(0xFFF)
        'Text'
        >>> filetype_name(0x123)
        ''
    """
    return FILETYPE_NAMES.get(code, "")
