"""Merge forum threads into one consistently numbered thread."""

__version__ = "1.0.0"
