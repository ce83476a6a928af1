"""Retry policy for reopening streams after transient failures."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from obspec_resilient.exceptions import RetryExhaustedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """
    How hard a reader tries before giving up on a single read call.

    Attempts are counted per read call and reset as soon as bytes are
    delivered, so a long transfer survives any number of dropped connections
    as long as each reconnect makes progress.

    Parameters
    ----------
    max_attempts
        Consecutive failed attempts (open failures and read failures that
        delivered nothing) tolerated within one read call. None means no limit.
    max_duration
        Seconds one read call may spend retrying. None means no limit.
    backoff
        Sleep before the first retry, in seconds. Zero retries immediately.
    backoff_factor
        Multiplier applied to the sleep after each further failure.
    max_backoff
        Upper bound on a single sleep.
    retry_on
        Exception types treated as transient. Anything else propagates.

    Examples
    --------
    ```python
    from obspec_resilient import ResilientStoreReader, RetryPolicy

    policy = RetryPolicy(max_attempts=5, backoff=0.5)
    reader = ResilientStoreReader(store, "data/file.bin", retry=policy)
    ```
    """

    max_attempts: int | None = 10
    max_duration: float | None = None
    backoff: float = 0.1
    backoff_factor: float = 2.0
    max_backoff: float = 10.0
    retry_on: tuple[type[BaseException], ...] = field(default=(Exception,))

    def __post_init__(self) -> None:
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")
        if self.max_duration is not None and self.max_duration < 0:
            raise ValueError(f"max_duration must be non-negative, got {self.max_duration}")
        if self.backoff < 0 or self.max_backoff < 0:
            raise ValueError("backoff values must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError(f"backoff_factor must be >= 1, got {self.backoff_factor}")

    @classmethod
    def unbounded(cls) -> RetryPolicy:
        """Retry forever without sleeping between attempts."""
        return cls(max_attempts=None, max_duration=None, backoff=0.0)

    def is_transient(self, error: BaseException) -> bool:
        return isinstance(error, self.retry_on)

    def delay(self, attempt: int) -> float:
        """Seconds to sleep before retry number ``attempt`` (zero-based)."""
        if self.backoff == 0:
            return 0.0
        try:
            delay = self.backoff * self.backoff_factor**attempt
        except OverflowError:
            return self.max_backoff
        return min(delay, self.max_backoff)


class RetryState:
    """Failure bookkeeping for one read call."""

    def __init__(
        self,
        policy: RetryPolicy,
        path: str,
        sleep: Callable[[float], None] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._policy = policy
        self._path = path
        self._sleep = sleep or time.sleep
        self._clock = clock
        self._started = clock()
        self.failures = 0

    def failed(self, error: BaseException, offset: int) -> None:
        """
        Record a transient failure and wait before the next attempt.

        Raises
        ------
        RetryExhaustedError
            If the policy allows no further attempts.
        """
        self.failures += 1
        policy = self._policy
        exhausted = policy.max_attempts is not None and self.failures >= policy.max_attempts
        delay = policy.delay(self.failures - 1)
        if not exhausted and policy.max_duration is not None:
            elapsed = self._clock() - self._started
            exhausted = elapsed + delay > policy.max_duration
        if exhausted:
            logger.error(
                "Giving up on %s at offset %d after %d attempt(s): %r",
                self._path,
                offset,
                self.failures,
                error,
            )
            raise RetryExhaustedError(self._path, offset, self.failures, error) from error
        if delay:
            self._sleep(delay)


__all__ = ["RetryPolicy", "RetryState"]
