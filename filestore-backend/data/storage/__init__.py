"""
Storage Layer - Local file storage

Provides status-returning filesystem operations:
- Save in-memory bytes or a binary stream into a directory
- Delete by exact name or by name prefix
- Filename extension helpers

No operation raises; each returns a StorageStatus.
"""

from .local import (
    save_bytes,
    save_stream,
    delete_file,
    extract_extension,
    strip_extension,
)
from .status import StorageStatus

__all__ = [
    "StorageStatus",
    "save_bytes",
    "save_stream",
    "delete_file",
    "extract_extension",
    "strip_extension",
]
