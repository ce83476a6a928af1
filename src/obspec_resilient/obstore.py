"""Open resilient readers straight from URLs using obstore."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

try:
    from obstore.store import from_url
except ImportError as e:
    raise ImportError(
        "obstore is required for obspec_resilient.obstore. Install it with: pip install obstore"
    ) from e

from obspec_resilient.wrappers import ResilientStore

if TYPE_CHECKING:
    from obspec_resilient.readers import ResilientStoreReader
    from obspec_resilient.retry import RetryPolicy


def split_url(url: str) -> tuple[str, str]:
    """
    Split an object URL into the store root and the path within it.

    Parameters
    ----------
    url
        Object URL such as ``s3://bucket/dir/file.bin`` or
        ``https://example.com/data/file.bin``.

    Returns
    -------
    tuple[str, str]
        ``("s3://bucket", "dir/file.bin")``.

    Raises
    ------
    ValueError
        If the URL has no scheme or no object path.
    """
    parsed = urlparse(url)
    if not parsed.scheme:
        raise ValueError(
            f"Urls are expected to contain a scheme (e.g., `file://` or `s3://`), received {url}"
        )
    path = parsed.path.lstrip("/")
    if not path:
        raise ValueError(f"Url {url} does not point at an object")
    return f"{parsed.scheme}://{parsed.netloc}", path


def store_from_url(
    url: str, *, retry: RetryPolicy | None = None, **kwargs: Any
) -> ResilientStore:
    """
    Build an obstore store for the root of `url` and wrap it.

    Extra keyword arguments (``region``, ``config``, ``client_options``,
    ``credential_provider``, ...) are passed to
    [obstore.store.from_url][] unchanged.
    """
    root, _ = split_url(url)
    return ResilientStore(from_url(root, **kwargs), retry=retry)


def open_url(
    url: str,
    options: Mapping[str, Any] | None = None,
    *,
    retry: RetryPolicy | None = None,
    **kwargs: Any,
) -> ResilientStoreReader:
    """
    Open a resilient reader for the object at `url`.

    Examples
    --------
    ```python
    import shutil
    from obspec_resilient.obstore import open_url

    with open_url("s3://bucket/big.tar", region="us-east-1", skip_signature=True) as src:
        with open("big.tar", "wb") as dst:
            shutil.copyfileobj(src, dst)
    ```
    """
    _, path = split_url(url)
    return store_from_url(url, retry=retry, **kwargs).open(path, options)


__all__ = ["open_url", "split_url", "store_from_url"]
