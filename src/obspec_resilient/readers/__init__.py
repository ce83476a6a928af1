"""File-like readers for object stores.

This module provides readers that wrap object stores with a file-like interface,
enabling use with libraries that expect file handles.
"""

from obspec_resilient.readers._resilient import (
    ReadResult,
    ReadStatus,
    ResilientStoreReader,
)

__all__ = [
    "ReadResult",
    "ReadStatus",
    "ResilientStoreReader",
]
