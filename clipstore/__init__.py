"""Clipstore: video and thumbnail upload service."""

__version__ = "0.1.0"
