"""
Reporting for decoded ADFS discs.

This module renders old maps, disc records, directory trees and
whole-disc summaries as plain text.
"""

from adfs_inspector.analysis.reporter import (
    old_map_report,
    disc_record_report,
    attribute_string,
    format_entry_line,
    directory_listing,
    describe_disc,
)

__all__ = [
    'old_map_report',
    'disc_record_report',
    'attribute_string',
    'format_entry_line',
    'directory_listing',
    'describe_disc',
]
