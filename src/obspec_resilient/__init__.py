from ._version import __version__
from .exceptions import ClosedStreamError, ResilientReadError, RetryExhaustedError
from .objects import ResilientObject
from .options import UNBOUNDED, decode_range, derive_get_options
from .readers import ReadResult, ReadStatus, ResilientStoreReader
from .retry import RetryPolicy
from .wrappers import ResilientStore

__all__ = [
    "__version__",
    "UNBOUNDED",
    "ClosedStreamError",
    "ReadResult",
    "ReadStatus",
    "ResilientObject",
    "ResilientReadError",
    "ResilientStore",
    "ResilientStoreReader",
    "RetryExhaustedError",
    "RetryPolicy",
    "decode_range",
    "derive_get_options",
]
