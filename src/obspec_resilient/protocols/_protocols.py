"""Core protocol definitions for object store interfaces."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from obspec import Get, Head


@runtime_checkable
class StreamableStore(Get, Head, Protocol):
    """
    Read interface needed to stream objects through a resilient reader.

    - [Get][obspec.Get]: Open a streaming download, optionally ranged via `GetOptions`
    - [Head][obspec.Head]: Get file metadata (size, etag, etc.)

    Any obstore store (S3Store, HTTPStore, MemoryStore, ...) satisfies this
    protocol, as does any custom class with compatible `get` and `head` methods.

    !!! Warning
        It's recommended to define your own protocols. This protocol may change without warning.
    """

    pass


@runtime_checkable
class ReadableStream(Protocol):
    """
    Protocol for forward-only, closeable byte streams.

    [`ResilientStoreReader`][obspec_resilient.readers.ResilientStoreReader]
    implements this protocol, so it can be handed to code that consumes
    sequential file-like objects (`shutil.copyfileobj`, `tarfile` in stream
    mode, hashing loops, ...).

    Examples
    --------

    ```python
    import hashlib
    from obspec_resilient.protocols import ReadableStream

    def sha256(stream: ReadableStream) -> str:
        digest = hashlib.sha256()
        buffer = bytearray(1024 * 1024)
        while n := stream.readinto(buffer):
            digest.update(buffer[:n])
        stream.close()
        return digest.hexdigest()
    ```
    """

    def read(self, size: int = -1, /) -> bytes:
        """
        Read up to `size` bytes from the stream.

        Parameters
        ----------
        size
            Number of bytes to read. If -1, read until end of stream.

        Returns
        -------
        bytes
            The data read. Empty only at end of stream.
        """
        ...

    def readinto(self, buffer, /) -> int:
        """
        Read bytes into a pre-allocated writable buffer.

        Returns
        -------
        int
            Number of bytes written. Zero only at end of stream.
        """
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...


__all__ = ["ReadableStream", "StreamableStore"]
