"""Translate a logical read window into obspec `GetOptions`.

A resilient reader tracks its position as an ``(offset, limit)`` pair, where
``limit`` is an exclusive upper bound on the offset or [`UNBOUNDED`][obspec_resilient.options.UNBOUNDED].
Each time the underlying stream has to be (re)opened, the pair is turned back
into the `range` entry of the obspec `GetOptions` passed to
[`get()`][obspec.Get], alongside whatever passthrough options the caller
supplied (``if_match``, ``version``, ...).
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from obspec import GetOptions

UNBOUNDED = -1
"""Sentinel ``limit`` meaning "read until the end of the object"."""


def split_get_options(
    options: Mapping[str, Any] | None,
) -> tuple[Any | None, GetOptions]:
    """
    Separate the positioning directive from the passthrough options.

    Parameters
    ----------
    options
        Caller-supplied `GetOptions`, or None.

    Returns
    -------
    tuple
        The value of the ``range`` key (None if absent) and a new dict with
        every other option, in the caller's order.
    """
    if not options:
        return None, {}
    passthrough: dict[str, Any] = {}
    range_ = None
    for key, value in options.items():
        if key == "range":
            range_ = value
        else:
            passthrough[key] = value
    return range_, passthrough  # type: ignore[return-value]


def decode_range(range_: Any, size: int | None = None) -> tuple[int, int]:
    """
    Decode an obspec range directive into an ``(offset, limit)`` window.

    Parameters
    ----------
    range_
        One of ``(start, end)`` (end exclusive), ``{"offset": n}`` or
        ``{"suffix": n}``.
    size
        Total size of the object. Only needed for suffix ranges.

    Returns
    -------
    tuple[int, int]
        The first byte to deliver and the exclusive end, or
        [`UNBOUNDED`][obspec_resilient.options.UNBOUNDED] for open-ended ranges.
    """
    if isinstance(range_, Mapping):
        if "offset" in range_:
            offset = int(range_["offset"])
            if offset < 0:
                raise ValueError(f"Range offset must be non-negative, got {offset}")
            return offset, UNBOUNDED
        if "suffix" in range_:
            suffix = int(range_["suffix"])
            if suffix < 0:
                raise ValueError(f"Range suffix must be non-negative, got {suffix}")
            if size is None:
                raise ValueError("Object size is required to decode a suffix range")
            return max(size - suffix, 0), size
        raise TypeError(f"Unsupported range directive: {range_!r}")

    if isinstance(range_, (tuple, list)) and len(range_) == 2:
        start, end = int(range_[0]), int(range_[1])
        if start < 0 or end < start:
            raise ValueError(f"Invalid byte range [{start}, {end})")
        return start, end

    raise TypeError(f"Unsupported range directive: {range_!r}")


def derive_get_options(
    options: Mapping[str, Any] | None,
    offset: int,
    limit: int = UNBOUNDED,
) -> GetOptions:
    """
    Build the `GetOptions` for opening a stream at ``offset``.

    The passthrough options are copied, never mutated. A positioning
    directive is appended only when the read does not start at byte zero:

    - ``offset == 0`` and unbounded: passthrough options only.
    - ``offset > 0`` and unbounded: ``range={"offset": offset}``.
    - ``offset > 0`` and bounded: ``range=(offset, limit)``.
    - ``offset == 0`` and bounded: passthrough options only. The store
      returns the whole object in this case, and readers do not trim it.

    Any ``range`` already present in ``options`` is dropped.
    """
    _, derived = split_get_options(options)
    if offset > 0:
        if limit == UNBOUNDED:
            derived["range"] = {"offset": offset}
        else:
            derived["range"] = (offset, limit)
    return derived


__all__ = ["UNBOUNDED", "decode_range", "derive_get_options", "split_get_options"]
