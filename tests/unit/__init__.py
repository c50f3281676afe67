"""Unit tests for ADFS Inspector."""
