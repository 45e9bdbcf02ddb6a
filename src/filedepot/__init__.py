"""Shared file store: upload, list, export and delete files in one flat directory."""

__version__ = "0.1.0"
