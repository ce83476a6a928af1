"""Tests for ResilientObject."""

import pytest

from obspec_resilient import (
    ResilientObject,
    ResilientStoreReader,
    RetryExhaustedError,
    RetryPolicy,
)

from .mocks import DeletableStore, ScriptedStore


DIGITS = b"0123456789"


def make_object(path="digits.txt", data=DIGITS, **kwargs):
    store = DeletableStore()
    store.put(path, data)
    return store, ResilientObject(store, path, **kwargs)


class TestOpen:
    def test_open_full(self):
        store, obj = make_object()

        reader = obj.open()

        assert isinstance(reader, ResilientStoreReader)
        assert (reader.offset, reader.limit) == (0, -1)
        assert reader.readall() == DIGITS

    def test_open_with_seek(self):
        _, obj = make_object()

        reader = obj.open({"range": {"offset": 6}})

        assert (reader.offset, reader.limit) == (6, -1)
        assert reader.readall() == b"6789"

    def test_open_with_range(self):
        _, obj = make_object()

        reader = obj.open({"range": (2, 5)})

        assert (reader.offset, reader.limit) == (2, 5)
        assert reader.readall() == b"234"

    def test_open_with_suffix(self):
        store, obj = make_object()

        reader = obj.open({"range": {"suffix": 4}})

        assert (reader.offset, reader.limit) == (6, 10)
        assert reader.readall() == b"6789"
        assert store.head_calls == 1

    def test_suffix_uses_known_metadata(self):
        store = DeletableStore({"digits.txt": DIGITS})
        obj = ResilientObject(
            store, "digits.txt", meta={"path": "digits.txt", "size": 10}
        )

        reader = obj.open({"range": {"suffix": 2}})

        assert reader.offset == 8
        assert store.head_calls == 0

    def test_empty_suffix_makes_no_request(self, fast_retry):
        store = ScriptedStore(DIGITS, [])
        obj = ResilientObject(
            store,
            "digits.txt",
            retry=fast_retry,
            meta={"path": "digits.txt", "size": 10},
        )

        reader = obj.open({"range": {"suffix": 0}})

        assert (reader.offset, reader.limit) == (10, 10)
        assert reader.read() == b""
        assert store.calls == []

    def test_open_makes_no_request(self):
        store = ScriptedStore(DIGITS, [])
        obj = ResilientObject(store, "digits.txt")

        obj.open({"range": (1, 4), "if_match": "etag"})

        assert store.calls == []

    def test_passthrough_options_forwarded(self, fast_retry):
        store = ScriptedStore(DIGITS, [[b"1234"]])
        obj = ResilientObject(store, "digits.txt", retry=fast_retry)

        reader = obj.open({"if_match": "etag", "range": (1, 5)})
        reader.readall()

        assert store.calls == [{"if_match": "etag", "range": (1, 5)}]

    def test_retry_policy_handed_to_reader(self):
        policy = RetryPolicy(max_attempts=2, backoff=0)
        store = ScriptedStore(DIGITS, [ConnectionError(), ConnectionError()])
        obj = ResilientObject(store, "digits.txt", retry=policy)

        with pytest.raises(RetryExhaustedError):
            obj.open().read(1)

        assert len(store.calls) == 2

    def test_invalid_range(self):
        _, obj = make_object()

        with pytest.raises(TypeError):
            obj.open({"range": "bytes=0-4"})


class TestMetadata:
    def test_head_cached(self):
        store, obj = make_object()

        assert obj.size() == 10
        assert obj.e_tag() == "etag-digits.txt"
        assert obj.version() == "v1"
        assert obj.last_modified().year == 2024
        assert store.head_calls == 1

    def test_refresh(self):
        store, obj = make_object()
        obj.size()
        store.put("digits.txt", b"0123")

        obj.refresh()

        assert obj.size() == 4
        assert store.head_calls == 2

    def test_metadata_attributes(self):
        _, obj = make_object()

        assert obj.metadata() == {"Content-Type": "text/plain"}

    def test_memory_store(self, memstore):
        obj = ResilientObject(memstore, "digits.txt")

        assert obj.size() == 10
        assert obj.open({"range": (7, 10)}).readall() == b"789"


class TestDelete:
    def test_delete(self):
        store, obj = make_object()

        obj.delete()

        with pytest.raises(KeyError):
            store.head("digits.txt")

    def test_delete_unsupported(self):
        obj = ResilientObject(ScriptedStore(DIGITS, []), "digits.txt")

        with pytest.raises(NotImplementedError):
            obj.delete()


def test_repr():
    _, obj = make_object()

    assert repr(obj) == "ResilientObject(path='digits.txt')"
