"""Tagbot - renders stored tags back into Discord conversations."""

__version__ = "0.1.0"
