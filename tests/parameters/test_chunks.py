"""
Chunk Assembly Tests

Covers:
- Single bare parameter vs. indexed fragments
- Ordering by numeric index, not key string order
- Rejection of malformed, mixed, duplicate and gapped key sets
- Split/assemble agreement for documents of arbitrary size
"""

from __future__ import annotations

import random

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ItzoLauncher.core.errors import InvalidChunkKey, NoFragments
from ItzoLauncher.Parameters.chunks import assemble_chunks, chunk_key, split_document


class TestAssembleChunks:
    def test_single_bare_parameter(self):
        assert assemble_chunks({"config": "a: 1\n"}) == b"a: 1\n"

    def test_indexed_fragments_are_joined(self):
        assert assemble_chunks({"config-0": "a: ", "config-1": "1\n"}) == b"a: 1\n"

    def test_numeric_not_lexicographic_order(self):
        fragments = {chunk_key("config", i): str(i) for i in range(12)}

        assert assemble_chunks(fragments) == "".join(str(i) for i in range(12)).encode()

    def test_single_indexed_fragment(self):
        assert assemble_chunks({"config-0": "whole"}) == b"whole"

    def test_bytes_values_pass_through(self):
        assert assemble_chunks({"config-1": b"\x8b", "config-0": b"\x1f"}) == b"\x1f\x8b"

    def test_custom_base(self):
        assert assemble_chunks({"cell-0": "x", "cell-1": "y"}, base="cell") == b"xy"

    def test_empty_set(self):
        with pytest.raises(NoFragments):
            assemble_chunks({})

    def test_bare_key_mixed_with_indexed(self):
        with pytest.raises(InvalidChunkKey) as excinfo:
            assemble_chunks({"config": "a", "config-0": "b"})

        assert excinfo.value.key == "config"

    @pytest.mark.parametrize(
        "key",
        ["config-", "config-x", "config--1", "configs-1", "other-1", "config-1a"],
    )
    def test_malformed_key(self, key):
        with pytest.raises(InvalidChunkKey) as excinfo:
            assemble_chunks({"config-0": "a", key: "b"})

        assert excinfo.value.key == key

    def test_index_gap(self):
        with pytest.raises(InvalidChunkKey, match="out of range"):
            assemble_chunks({"config-0": "a", "config-2": "c"})

    def test_duplicate_index(self):
        with pytest.raises(InvalidChunkKey, match="duplicate"):
            assemble_chunks({"config-1": "a", "config-01": "b"})


class TestSplitDocument:
    def test_small_document_uses_bare_key(self):
        assert split_document("a: 1\n") == {"config": "a: 1\n"}

    def test_large_document_is_split_by_size(self):
        fragments = split_document("x" * 10, max_size=4)

        assert fragments == {"config-0": "xxxx", "config-1": "xxxx", "config-2": "xx"}

    def test_multibyte_characters_are_not_split(self):
        fragments = split_document("é" * 5, max_size=4)

        assert all(len(v.encode("utf-8")) <= 4 for v in fragments.values())
        assert "".join(fragments.values()) == "é" * 5

    def test_rejects_tiny_limit(self):
        with pytest.raises(ValueError):
            split_document("abc", max_size=3)

    def test_chunk_key_rejects_negative_index(self):
        with pytest.raises(ValueError):
            chunk_key("config", -1)


@settings(max_examples=75, deadline=None)
@given(
    document=st.text(max_size=400),
    max_size=st.integers(min_value=4, max_value=64),
    seed=st.integers(min_value=0, max_value=2**16),
)
def test_split_fragments_reassemble_in_any_order(document, max_size, seed):
    fragments = list(split_document(document, max_size=max_size).items())
    random.Random(seed).shuffle(fragments)

    assert assemble_chunks(dict(fragments)) == document.encode("utf-8")
