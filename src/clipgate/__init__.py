"""Clipgate: abuse-prevention gate for video uploads and comments."""

__version__ = "0.1.0"
