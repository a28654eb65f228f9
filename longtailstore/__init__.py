"""Blob stores (memory, filesystem, S3), URI helpers and regex path filters."""

__version__ = "0.2.0"