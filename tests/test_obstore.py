"""Tests for the obstore URL helpers."""

import pytest
from obstore.store import MemoryStore

from obspec_resilient import ResilientStore, RetryPolicy
from obspec_resilient.obstore import open_url, split_url, store_from_url


@pytest.fixture
def from_url_calls(monkeypatch):
    """Replace obstore's from_url with one returning a MemoryStore."""
    calls = []
    store = MemoryStore()
    store.put("dir/file.bin", b"0123456789")

    def fake_from_url(url, **kwargs):
        calls.append((url, kwargs))
        return store

    monkeypatch.setattr("obspec_resilient.obstore.from_url", fake_from_url)
    return calls


@pytest.mark.parametrize(
    "url,expected",
    [
        ("s3://bucket/dir/file.bin", ("s3://bucket", "dir/file.bin")),
        ("https://example.com/data/a.nc", ("https://example.com", "data/a.nc")),
        ("file:///tmp/a.nc", ("file://", "tmp/a.nc")),
    ],
)
def test_split_url(url, expected):
    assert split_url(url) == expected


@pytest.mark.parametrize("url", ["bucket/file.bin", "s3://bucket", "s3://bucket/"])
def test_split_url_invalid(url):
    with pytest.raises(ValueError):
        split_url(url)


def test_store_from_url(from_url_calls):
    policy = RetryPolicy(max_attempts=2)

    wrapper = store_from_url(
        "s3://bucket/dir/file.bin", retry=policy, region="us-west-2"
    )

    assert isinstance(wrapper, ResilientStore)
    assert from_url_calls == [("s3://bucket", {"region": "us-west-2"})]
    assert wrapper.object("dir/file.bin").open()._retry is policy


def test_open_url(from_url_calls):
    reader = open_url("s3://bucket/dir/file.bin", {"range": (2, 6)})

    assert reader.path == "dir/file.bin"
    assert reader.read() == b"2345"
