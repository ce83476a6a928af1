"""Tests for GetOptions derivation and range decoding."""

import pytest

from obspec_resilient.options import (
    UNBOUNDED,
    decode_range,
    derive_get_options,
    split_get_options,
)


class TestDeriveGetOptions:
    def test_full_read_is_passthrough_only(self):
        options = {"if_match": "abc", "version": "v2"}

        derived = derive_get_options(options, 0, UNBOUNDED)

        assert derived == {"if_match": "abc", "version": "v2"}
        assert derived is not options

    def test_offset_adds_seek(self):
        derived = derive_get_options({"if_match": "abc"}, 100, UNBOUNDED)

        assert derived == {"if_match": "abc", "range": {"offset": 100}}

    def test_offset_and_limit_add_range(self):
        derived = derive_get_options({"if_match": "abc"}, 100, 500)

        assert derived == {"if_match": "abc", "range": (100, 500)}

    def test_zero_offset_with_limit_adds_nothing(self):
        derived = derive_get_options({"if_match": "abc"}, 0, 500)

        assert derived == {"if_match": "abc"}
        assert "range" not in derived

    def test_no_options(self):
        assert derive_get_options(None, 0) == {}
        assert derive_get_options(None, 7) == {"range": {"offset": 7}}

    def test_existing_range_is_replaced(self):
        derived = derive_get_options({"range": (0, 10), "head": False}, 4, 10)

        assert derived == {"head": False, "range": (4, 10)}

    def test_input_not_mutated(self):
        options = {"range": {"offset": 3}, "if_none_match": "x"}

        derive_get_options(options, 50, 60)

        assert options == {"range": {"offset": 3}, "if_none_match": "x"}

    def test_passthrough_order_kept(self):
        options = {"version": "v1", "if_match": "e", "head": False}

        derived = derive_get_options(options, 1)

        assert list(derived) == ["version", "if_match", "head", "range"]


class TestSplitGetOptions:
    def test_split(self):
        range_, passthrough = split_get_options({"range": (1, 2), "version": "v"})

        assert range_ == (1, 2)
        assert passthrough == {"version": "v"}

    @pytest.mark.parametrize("options", [None, {}])
    def test_empty(self, options):
        assert split_get_options(options) == (None, {})


class TestDecodeRange:
    def test_bounded(self):
        assert decode_range((10, 20)) == (10, 20)
        assert decode_range([0, 5]) == (0, 5)

    def test_offset(self):
        assert decode_range({"offset": 42}) == (42, UNBOUNDED)

    def test_suffix(self):
        assert decode_range({"suffix": 3}, size=10) == (7, 10)

    def test_suffix_longer_than_object(self):
        assert decode_range({"suffix": 30}, size=10) == (0, 10)

    def test_suffix_needs_size(self):
        with pytest.raises(ValueError, match="size"):
            decode_range({"suffix": 3})

    @pytest.mark.parametrize(
        "range_", [(5, 4), (-1, 4), {"offset": -2}, {"suffix": -1}]
    )
    def test_invalid_bounds(self, range_):
        with pytest.raises(ValueError):
            decode_range(range_, size=10)

    @pytest.mark.parametrize("range_", ["0-10", (1, 2, 3), {"start": 1}, 5])
    def test_unsupported(self, range_):
        with pytest.raises(TypeError):
            decode_range(range_, size=10)
