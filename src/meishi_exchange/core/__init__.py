"""Core enums, errors and result types."""
