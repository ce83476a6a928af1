"""Per-object handle that opens resilient readers."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

from obspec_resilient.options import UNBOUNDED, decode_range, split_get_options
from obspec_resilient.readers import ResilientStoreReader

if TYPE_CHECKING:
    from obspec import Attributes, ObjectMeta

    from obspec_resilient.protocols import StreamableStore
    from obspec_resilient.retry import RetryPolicy

logger = logging.getLogger(__name__)


class ResilientObject:
    """
    A single object in a store, opened through resilient readers.

    [`open()`][obspec_resilient.objects.ResilientObject.open] turns the caller's
    `GetOptions` into a [`ResilientStoreReader`][obspec_resilient.readers.ResilientStoreReader]
    positioned at the requested range. Metadata and deletion go straight to
    the wrapped store.

    Examples
    --------
    ```python
    from obstore.store import S3Store
    from obspec_resilient import ResilientObject

    obj = ResilientObject(S3Store(bucket="my-bucket"), "archive/part-0001.tar")
    with obj.open({"range": {"offset": 512}}) as reader:
        header = reader.read(512)
    ```
    """

    def __init__(
        self,
        store: StreamableStore,
        path: str,
        *,
        retry: RetryPolicy | None = None,
        meta: ObjectMeta | None = None,
    ) -> None:
        """
        Parameters
        ----------
        store
            Any object implementing [Get][obspec.Get] and [Head][obspec.Head].
        path
            The path to the object within the store.
        retry
            Retry policy handed to every reader opened from this object.
        meta
            Metadata already known for the object (e.g. from a listing).
            Saves a `head()` request when it is needed.
        """
        self._store = store
        self._path = path
        self._retry = retry
        self._meta = meta

    @property
    def path(self) -> str:
        return self._path

    @property
    def store(self) -> StreamableStore:
        return self._store

    def open(self, options: Mapping[str, Any] | None = None) -> ResilientStoreReader:
        """
        Open a reader for this object.

        No request is made here unless a suffix range has to be resolved
        against an unknown object size. Data is fetched on the first read.

        Parameters
        ----------
        options
            `GetOptions` for the read. Its ``range`` entry, if any, positions
            the reader: ``{"offset": n}`` seeks, ``(start, end)`` bounds the
            read to bytes ``[start, end)``, and ``{"suffix": n}`` reads the
            last ``n`` bytes. Every other entry is sent unchanged with each
            request.
        """
        range_, passthrough = split_get_options(options)
        if range_ is None:
            offset, limit = 0, UNBOUNDED
        else:
            size = None
            if isinstance(range_, Mapping) and "suffix" in range_:
                size = self.size()
            offset, limit = decode_range(range_, size)
        logger.debug(
            "Opening reader for %s: offset=%d limit=%d", self._path, offset, limit
        )
        return ResilientStoreReader(
            self._store,
            self._path,
            offset=offset,
            limit=limit,
            options=passthrough,
            retry=self._retry,
        )

    def head(self) -> ObjectMeta:
        """Return the object's metadata, fetching it on first use."""
        if self._meta is None:
            self._meta = self._store.head(self._path)
        return self._meta

    def refresh(self) -> None:
        """Forget cached metadata so the next lookup asks the store again."""
        self._meta = None

    def size(self) -> int:
        return self.head()["size"]

    def e_tag(self) -> str | None:
        return self.head().get("e_tag")

    def version(self) -> str | None:
        return self.head().get("version")

    def last_modified(self) -> datetime | None:
        return self.head().get("last_modified")

    def metadata(self) -> Attributes:
        """
        Return the object's attributes (content type, user metadata, ...).

        Uses a `get()` with ``head=True``, which transfers no body. Returns an
        empty dict when the store's results carry no attributes.
        """
        result = self._store.get(self._path, options={"head": True})
        return dict(getattr(result, "attributes", None) or {})

    def delete(self) -> None:
        """
        Delete the object from the store.

        Raises
        ------
        NotImplementedError
            If the store does not implement [Delete][obspec.Delete].
        """
        delete = getattr(self._store, "delete", None)
        if delete is None:
            raise NotImplementedError(
                f"{type(self._store).__name__} does not support delete"
            )
        delete(self._path)
        self._meta = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(path={self._path!r})"


__all__ = ["ResilientObject"]
