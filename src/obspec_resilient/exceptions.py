"""Exceptions raised by resilient readers."""

from __future__ import annotations


class ResilientReadError(Exception):
    """Base class for errors surfaced by obspec-resilient."""


class ClosedStreamError(ResilientReadError, ValueError):
    """An operation was attempted on a reader that has already been closed.

    Subclasses `ValueError` so callers that handle closed Python file objects
    keep working unchanged.
    """

    def __init__(self, message: str = "I/O operation on closed file") -> None:
        super().__init__(message)


class RetryExhaustedError(ResilientReadError, OSError):
    """A read call gave up after the retry policy ran out of attempts or time.

    The last transient failure is chained as ``__cause__`` and also kept on
    ``last_error``.
    """

    def __init__(
        self,
        path: str,
        offset: int,
        attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        self.path = path
        self.offset = offset
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Gave up reading {path!r} at offset {offset} after {attempts} "
            f"failed attempt(s): {last_error!r}"
        )

    def __reduce__(self):
        return (
            type(self),
            (self.path, self.offset, self.attempts, self.last_error),
        )


__all__ = ["ClosedStreamError", "ResilientReadError", "RetryExhaustedError"]
