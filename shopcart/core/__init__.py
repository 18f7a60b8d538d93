"""Core configuration, errors and pure helpers."""
