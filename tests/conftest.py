import pytest
from obstore.store import MemoryStore

from obspec_resilient import RetryPolicy


@pytest.fixture
def fast_retry() -> RetryPolicy:
    """Bounded policy that never sleeps."""
    return RetryPolicy(max_attempts=5, backoff=0.0)


@pytest.fixture
def memstore() -> MemoryStore:
    store = MemoryStore()
    store.put("digits.txt", b"0123456789")
    store.put("empty.txt", b"")
    return store


@pytest.fixture
def sleeps(monkeypatch) -> list[float]:
    """Record backoff sleeps instead of sleeping."""
    recorded: list[float] = []
    monkeypatch.setattr("obspec_resilient.retry.time.sleep", recorded.append)
    return recorded
