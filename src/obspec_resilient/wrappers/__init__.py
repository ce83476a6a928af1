"""Store wrappers that add functionality to underlying stores.

This module provides wrapper classes that open resilient readers on any
store and trace the requests a store receives.
"""

from obspec_resilient.wrappers._resilient import ResilientStore
from obspec_resilient.wrappers._tracing import (
    RequestRecord,
    RequestTrace,
    TracingStore,
)

__all__ = [
    "ResilientStore",
    "TracingStore",
    "RequestTrace",
    "RequestRecord",
]
