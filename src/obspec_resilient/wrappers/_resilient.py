"""Store wrapper that hands out resilient readers."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from obspec_resilient.objects import ResilientObject

if TYPE_CHECKING:
    from obspec import ObjectMeta

    from obspec_resilient.protocols import StreamableStore
    from obspec_resilient.readers import ResilientStoreReader
    from obspec_resilient.retry import RetryPolicy


class ResilientStore:
    """
    A wrapper that opens objects of an underlying store through resilient readers.

    Only reads are changed. Every other attribute (`put`, `list`, `delete`,
    `copy`, ...) is forwarded unchanged to the underlying store.

    Examples
    --------
    ```python
    import shutil
    from obstore.store import HTTPStore
    from obspec_resilient import ResilientStore, RetryPolicy

    store = ResilientStore(
        HTTPStore.from_url("https://example.com/data"),
        retry=RetryPolicy(max_attempts=20, backoff=1.0),
    )

    with store.open("big.tar") as reader, open("big.tar", "wb") as f:
        shutil.copyfileobj(reader, f)
    ```
    """

    def __init__(self, store: StreamableStore, *, retry: RetryPolicy | None = None) -> None:
        """
        Parameters
        ----------
        store
            Any object implementing [Get][obspec.Get] and [Head][obspec.Head].
        retry
            Retry policy for every reader opened through this wrapper.
        """
        self._store = store
        self._retry = retry

    def __getattr__(self, name: str) -> Any:
        """Forward unknown attributes to the underlying store.

        Note: Private attributes (starting with '_') are not forwarded.
        """
        if name.startswith("_"):
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )
        if "_store" not in self.__dict__:
            raise AttributeError(
                f"'{type(self).__name__}' object has no attribute '{name}'"
            )
        return getattr(self._store, name)

    def __reduce__(self):
        """Support pickling by recreating the wrapper around the same store."""
        return (_rebuild, (self._store, self._retry))

    @property
    def store(self) -> StreamableStore:
        """The wrapped store."""
        return self._store

    def object(self, path: str, *, meta: ObjectMeta | None = None) -> ResilientObject:
        """Return a handle on the object at `path`. Makes no request."""
        return ResilientObject(self._store, path, retry=self._retry, meta=meta)

    def open(
        self, path: str, options: Mapping[str, Any] | None = None
    ) -> ResilientStoreReader:
        """Open a resilient reader for `path`. See [`ResilientObject.open`][obspec_resilient.objects.ResilientObject.open]."""
        return self.object(path).open(options)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._store!r})"


def _rebuild(store: StreamableStore, retry: RetryPolicy | None) -> ResilientStore:
    return ResilientStore(store, retry=retry)


__all__ = ["ResilientStore"]
