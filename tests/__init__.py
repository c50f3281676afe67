"""
Test suite for ADFS Inspector.

This package contains:
- Unit tests for the checksum, map, directory and image components
- Integration tests for whole-disc inspection and the command line
- Fixtures that build synthetic ADFS images in memory
"""
