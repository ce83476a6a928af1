"""Request tracing utilities for obspec-resilient.

This module provides a wrapper that traces the requests a store receives,
useful for seeing where readers reconnect and how often they have to.
"""

from __future__ import annotations

import time
from collections.abc import Generator
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Literal, TypedDict

if TYPE_CHECKING:
    from obspec import GetOptions, GetResult, ObjectMeta

    from obspec_resilient.protocols import StreamableStore

RangeStyle = Literal["full", "offset", "bounded", "suffix"]


class _TraceInfo(TypedDict, total=False):
    """Info collected during a traced operation."""

    start: int | None
    end: int | None
    range_style: RangeStyle | None


@dataclass
class RequestRecord:
    """Record of a single request.

    Note
    ----
    The ``duration`` field measures the time spent in the store method call.
    For ``get`` this usually covers opening the stream only; the body is
    transferred later as the result is iterated.
    """

    path: str
    start: int | None
    end: int | None  # exclusive, None when open-ended
    timestamp: float
    duration: float | None = None
    method: Literal["get", "head"] = "get"
    range_style: RangeStyle | None = None
    error: str | None = None


@dataclass
class RequestTrace:
    """Collection of request records with analysis methods."""

    requests: list[RequestRecord] = field(default_factory=list)

    def add(
        self,
        path: str,
        start: int | None,
        end: int | None,
        timestamp: float,
        duration: float | None = None,
        method: Literal["get", "head"] = "get",
        range_style: RangeStyle | None = None,
        error: str | None = None,
    ) -> None:
        """Add a request record."""
        self.requests.append(
            RequestRecord(
                path=path,
                start=start,
                end=end,
                timestamp=timestamp,
                duration=duration,
                method=method,
                range_style=range_style,
                error=error,
            )
        )

    def clear(self) -> None:
        """Clear all recorded requests."""
        self.requests.clear()

    @property
    def total_requests(self) -> int:
        """Total number of requests."""
        return len(self.requests)

    @property
    def failed_requests(self) -> int:
        """Number of requests that raised."""
        return sum(1 for r in self.requests if r.error is not None)

    def starts(self, method: Literal["get", "head"] = "get") -> list[int | None]:
        """Start offsets of the recorded requests, in order."""
        return [r.start for r in self.requests if r.method == method]

    def summary(self) -> dict[str, Any]:
        """Get summary statistics."""
        if not self.requests:
            return {
                "total_requests": 0,
                "failed_requests": 0,
                "unique_files": 0,
            }

        paths = set(r.path for r in self.requests)
        durations = [r.duration for r in self.requests if r.duration is not None]

        return {
            "total_requests": len(self.requests),
            "failed_requests": self.failed_requests,
            "unique_files": len(paths),
            "get_requests": sum(1 for r in self.requests if r.method == "get"),
            "head_requests": sum(1 for r in self.requests if r.method == "head"),
            "total_duration": sum(durations),
        }


def _describe_range(options: GetOptions | None) -> _TraceInfo:
    range_ = (options or {}).get("range")
    if range_ is None:
        return {"start": 0, "end": None, "range_style": "full"}
    if isinstance(range_, dict):
        if "offset" in range_:
            return {"start": range_["offset"], "end": None, "range_style": "offset"}
        return {"start": None, "end": None, "range_style": "suffix"}
    start, end = range_
    return {"start": start, "end": end, "range_style": "bounded"}


class TracingStore:
    """
    A wrapper that traces all requests made to an underlying store.

    This wrapper records every get/head call, including the ones that fail,
    for later analysis.

    Examples
    --------
    ```python
    from obspec_resilient import ResilientStoreReader
    from obspec_resilient.wrappers import TracingStore, RequestTrace

    trace = RequestTrace()
    traced_store = TracingStore(store, trace)

    reader = ResilientStoreReader(traced_store, "file.bin")
    reader.readall()

    # One request per (re)connect
    print(trace.starts())
    print(trace.summary())
    ```
    """

    def __init__(
        self,
        store: StreamableStore,
        trace: RequestTrace,
        *,
        on_request: Callable[[RequestRecord], None] | None = None,
    ) -> None:
        """
        Create a tracing wrapper around a store.

        Parameters
        ----------
        store
            Any object implementing [Get][obspec.Get] and [Head][obspec.Head].
        trace
            RequestTrace instance to record requests to.
        on_request
            Optional callback called for each request (e.g., for logging).
        """
        self._store = store
        self._trace = trace
        self._on_request = on_request

    def __getattr__(self, name: str) -> Any:
        """Forward unknown attributes to the underlying store."""
        if name.startswith("_"):
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )
        return getattr(self._store, name)

    @contextmanager
    def _record(
        self,
        path: str,
        method: Literal["get", "head"],
        info: _TraceInfo,
    ) -> Generator[None, None, None]:
        """Context manager to record a request with automatic timing.

        Records are saved even if the operation raises an exception.
        """
        error = None
        start_time = time.time()
        try:
            yield
        except Exception as e:
            error = repr(e)
            raise
        finally:
            duration = time.time() - start_time
            self._trace.add(
                path=path,
                start=info.get("start"),
                end=info.get("end"),
                timestamp=start_time,
                duration=duration,
                method=method,
                range_style=info.get("range_style"),
                error=error,
            )
            if self._on_request:
                self._on_request(self._trace.requests[-1])

    def get(self, path: str, *, options: GetOptions | None = None) -> GetResult:
        """Get a file or range (delegates to underlying store)."""
        with self._record(path, "get", _describe_range(options)):
            return self._store.get(path, options=options)

    def head(self, path: str) -> ObjectMeta:
        """Get file metadata (delegates to underlying store)."""
        with self._record(path, "head", {"start": 0, "end": 0}):
            return self._store.head(path)


__all__ = [
    "RequestRecord",
    "RequestTrace",
    "TracingStore",
]
