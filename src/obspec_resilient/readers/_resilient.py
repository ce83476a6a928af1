"""Forward-only store reader that reconnects after transient failures."""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any, NamedTuple, Protocol

from obspec import Get

from obspec_resilient.exceptions import ClosedStreamError
from obspec_resilient.options import UNBOUNDED, derive_get_options, split_get_options
from obspec_resilient.retry import RetryPolicy, RetryState

if TYPE_CHECKING:
    from collections.abc import Buffer

logger = logging.getLogger(__name__)

_EMPTY = memoryview(b"")


class ReadStatus(enum.Enum):
    """Outcome of a single read call, before it is collapsed to a byte count."""

    DELIVERED = "delivered"
    """Bytes were read cleanly."""

    RECOVERED = "recovered"
    """Bytes were read, then the stream failed and was discarded."""

    END_OF_STREAM = "end_of_stream"
    """The store reported end of data, or the read window is exhausted."""


class ReadResult(NamedTuple):
    status: ReadStatus
    nbytes: int
    discarded: int = 0
    """Number of live streams discarded during the call."""


class ResilientStoreReader:
    """
    A forward-only reader that hides dropped connections from its caller.

    The reader streams an object with [`get()`][obspec.Get], starting at
    `offset` and stopping at `limit`. When opening the stream or pulling the
    next chunk fails, the stream is discarded and reopened at the first byte
    not yet handed to the caller, so successive reads always concatenate to
    the object's content for the requested window.

    Transient failures are never raised from `read`. The only observable
    terminal conditions are end of stream (an empty read) and reading after
    [`close()`][obspec_resilient.readers.ResilientStoreReader.close]. A read
    call that keeps failing without progress raises
    [`RetryExhaustedError`][obspec_resilient.exceptions.RetryExhaustedError]
    once the [`RetryPolicy`][obspec_resilient.retry.RetryPolicy] runs out.

    When to Use
    -----------
    Use ResilientStoreReader when:

    - **Long sequential transfers**: Copying or hashing large objects over
      connections that drop now and then.
    - **Streaming consumers**: Feeding `tarfile`, `shutil.copyfileobj` or a
      decompressor that cannot restart on its own.

    Consider alternatives when:

    - You need to seek backwards. This reader only moves forward.

    Notes
    -----
    The reader is not thread-safe; issue reads from one caller at a time.
    Creating a reader performs no I/O. The first request happens on the
    first read.
    """

    class Store(Get, Protocol):
        """
        Store protocol required by ResilientStoreReader.

        Only [Get][obspec.Get] from obspec.
        """

        pass

    def __init__(
        self,
        store: ResilientStoreReader.Store,
        path: str,
        *,
        offset: int = 0,
        limit: int = UNBOUNDED,
        options: Mapping[str, Any] | None = None,
        retry: RetryPolicy | None = None,
        release_discarded: bool = True,
        buffer_size: int = 1024 * 1024,
    ) -> None:
        """
        Create a resilient reader for one object.

        Parameters
        ----------
        store
            Any object implementing [Get][obspec.Get].
        path
            The path to the file within the store.
        offset
            First byte to deliver.
        limit
            Exclusive upper bound on the offset, or -1 to read to the end.
        options
            Passthrough `GetOptions` sent with every request (``if_match``,
            ``version``, ...). A ``range`` entry is ignored; use `offset` and
            `limit` instead.
        retry
            Retry policy for transient failures. Defaults to `RetryPolicy()`.
        release_discarded
            Close streams that are discarded after a failure. When False the
            failed stream is only dereferenced.
        buffer_size
            Size of the buffer used by `readall()` and `read(-1)`.
        """
        if offset < 0:
            raise ValueError(f"offset must be non-negative, got {offset}")
        if limit < UNBOUNDED:
            raise ValueError(f"limit must be -1 or non-negative, got {limit}")
        self._store: ResilientStoreReader.Store | None = store
        self._path = path
        _, self._options = split_get_options(options)
        self._offset = offset
        self._limit = limit
        self._retry = retry if retry is not None else RetryPolicy()
        self._release_discarded = release_discarded
        self._buffer_size = buffer_size
        # Live stream: chunk iterator plus the unread tail of its current chunk
        self._chunks: Iterator[Buffer] | None = None
        self._pending = _EMPTY
        self._eof = False
        self._closed = False
        self._reopens = 0

    @property
    def path(self) -> str:
        return self._path

    @property
    def offset(self) -> int:
        """Absolute position of the next byte to be delivered."""
        return self._offset

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def eof(self) -> bool:
        return self._eof

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def reopens(self) -> int:
        """Number of live streams discarded after a failure so far."""
        return self._reopens

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def tell(self) -> int:
        """Return the current stream position."""
        if self._closed:
            raise ClosedStreamError()
        return self._offset

    def _open(self) -> None:
        options = derive_get_options(self._options, self._offset, self._limit)
        logger.debug("Opening %s with options %r", self._path, options)
        result = self._store.get(self._path, options=options)
        self._chunks = iter(result)
        self._pending = _EMPTY

    def _discard(self, error: BaseException) -> None:
        chunks, self._chunks = self._chunks, None
        self._pending = _EMPTY
        self._reopens += 1
        logger.warning(
            "Discarding stream for %s at offset %d: %r", self._path, self._offset, error
        )
        if self._release_discarded and chunks is not None:
            try:
                _release(chunks)
            except Exception as release_error:
                # The stream already failed; keep the first error.
                logger.debug(
                    "Ignoring error releasing discarded stream for %s: %r",
                    self._path,
                    release_error,
                )

    def read_result(self, buffer: Buffer) -> ReadResult:
        """
        Fill `buffer` and report how the read went.

        This is the tagged form of
        [`readinto()`][obspec_resilient.readers.ResilientStoreReader.readinto].
        It distinguishes a clean read from one that delivered bytes and then
        swallowed a failure, which `readinto` deliberately hides.

        Raises
        ------
        ClosedStreamError
            If the reader has been closed.
        RetryExhaustedError
            If the retry policy gave up before any byte could be read.
        """
        if self._closed:
            raise ClosedStreamError()
        if self._eof:
            return ReadResult(ReadStatus.END_OF_STREAM, 0)
        if self._limit != UNBOUNDED and self._limit <= self._offset:
            self._eof = True
            return ReadResult(ReadStatus.END_OF_STREAM, 0)

        with memoryview(buffer) as raw, raw.cast("B") as view:
            if view.readonly:
                raise TypeError("readinto() requires a writable buffer")
            if not len(view):
                return ReadResult(ReadStatus.DELIVERED, 0)
            result = self._read_into(view)
        logger.debug(
            "Read %s: offset=%d limit=%d n=%d status=%s",
            self._path,
            self._offset,
            self._limit,
            result.nbytes,
            result.status.value,
        )
        return result

    def _read_into(self, view: memoryview) -> ReadResult:
        attempts = RetryState(self._retry, self._path)
        discarded = 0
        filled = 0
        while True:
            if self._chunks is None:
                try:
                    self._open()
                except Exception as error:
                    if not self._retry.is_transient(error):
                        raise
                    logger.warning(
                        "Failed to open %s at offset %d: %r",
                        self._path,
                        self._offset,
                        error,
                    )
                    attempts.failed(error, self._offset)
                    continue

            try:
                while filled < len(view):
                    if not self._pending:
                        self._pending = memoryview(next(self._chunks)).cast("B")
                        continue
                    n = min(len(self._pending), len(view) - filled)
                    view[filled : filled + n] = self._pending[:n]
                    self._pending = self._pending[n:]
                    filled += n
            except StopIteration:
                self._eof = True
                self._offset += filled
                return ReadResult(ReadStatus.END_OF_STREAM, filled, discarded)
            except Exception as error:
                self._discard(error)
                discarded += 1
                if not self._retry.is_transient(error):
                    # Offset is unchanged, so a later read delivers these bytes again.
                    raise
                if filled:
                    self._offset += filled
                    return ReadResult(ReadStatus.RECOVERED, filled, discarded)
                attempts.failed(error, self._offset)
                continue
            except BaseException as error:
                # Interrupted mid-fill: the stream is ahead of the offset.
                self._discard(error)
                raise

            self._offset += filled
            return ReadResult(ReadStatus.DELIVERED, filled, discarded)

    def readinto(self, buffer: Buffer, /) -> int:
        """
        Read bytes into a pre-allocated writable buffer.

        Returns
        -------
        int
            Number of bytes written. Zero only at end of stream, or when
            `buffer` is empty. A read that recovers from a failure part way
            through returns the bytes it got before the failure, so the count
            can be short while the stream continues.
        """
        return self.read_result(buffer).nbytes

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
            The data read. Shorter than `size` only at end of stream, and
            empty once the stream is exhausted.
        """
        if size is None or size < 0:
            return self.readall()
        buffer = bytearray(size)
        with memoryview(buffer) as view:
            n = filled = self.readinto(view)
            while n and filled < size:
                n = self.readinto(view[filled:])
                filled += n
        return bytes(buffer[:filled])

    def readall(self) -> bytes:
        """Read and return all remaining bytes until end of stream."""
        parts = []
        buffer = bytearray(self._buffer_size)
        while n := self.readinto(buffer):
            parts.append(bytes(buffer[:n]))
        return b"".join(parts)

    def close(self) -> None:
        """
        Close the reader and release the live stream, if any.

        The reader is closed even if releasing the stream fails; that error
        is raised after the state change.

        Raises
        ------
        ClosedStreamError
            If the reader was already closed.
        """
        if self._closed:
            raise ClosedStreamError()
        chunks = self._chunks
        self._chunks = None
        self._pending = _EMPTY
        self._store = None
        self._closed = True
        if chunks is not None:
            _release(chunks)

    def __enter__(self) -> "ResilientStoreReader":
        """Enter the context manager."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit the context manager and close the reader."""
        if not self._closed:
            self.close()

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(path={self._path!r}, offset={self._offset}, "
            f"limit={self._limit}, closed={self._closed})"
        )


def _release(chunks: Iterator[Buffer]) -> None:
    close = getattr(chunks, "close", None)
    if close is not None:
        close()


__all__ = ["ReadResult", "ReadStatus", "ResilientStoreReader"]
