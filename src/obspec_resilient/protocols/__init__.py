"""Protocols for object store interfaces.

This module defines the core protocols used throughout obspec-resilient.
"""

from obspec_resilient.protocols._protocols import ReadableStream, StreamableStore

__all__ = ["ReadableStream", "StreamableStore"]
