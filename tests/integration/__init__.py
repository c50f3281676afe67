"""Integration tests for ADFS Inspector."""
