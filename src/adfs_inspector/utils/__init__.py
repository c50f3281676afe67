"""
Utility functions for ADFS Inspector.

This module provides logging configuration and error classification
for the command line front end.
"""

from adfs_inspector.utils.error_handler import (
    describe_error,
    is_fatal_error,
)

from adfs_inspector.utils.logging import (
    setup_logging,
    reset_logging,
    log_system_info,
    log_operation,
    log_detection,
    log_image_info,
)

__all__ = [
    # Error handling
    'describe_error',
    'is_fatal_error',

    # Logging
    'setup_logging',
    'reset_logging',
    'log_system_info',
    'log_operation',
    'log_detection',
    'log_image_info',
]
