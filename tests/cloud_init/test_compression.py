from __future__ import annotations

import gzip

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ItzoLauncher.CloudInit.compression import GZIP_MAGIC, decompress_if_gzip, is_gzip
from ItzoLauncher.core.errors import DecompressionError


def test_plain_payload_is_returned_unchanged() -> None:
    payload = b"#cloud-config\nwrite_files: []\n"

    assert decompress_if_gzip(payload) is payload


def test_gzip_payload_is_decompressed() -> None:
    payload = b"#cloud-config\nwrite_files: []\n"

    assert decompress_if_gzip(gzip.compress(payload)) == payload


@pytest.mark.parametrize("data", [b"", b"\x1f", b"\x8b\x1f", b"plain"])
def test_short_or_plain_inputs_are_not_gzip(data: bytes) -> None:
    assert not is_gzip(data)
    assert decompress_if_gzip(data) == data


def test_truncated_stream_raises() -> None:
    truncated = gzip.compress(b"x" * 1024)[:12]

    with pytest.raises(DecompressionError):
        decompress_if_gzip(truncated)


def test_magic_followed_by_garbage_raises() -> None:
    with pytest.raises(DecompressionError) as excinfo:
        decompress_if_gzip(GZIP_MAGIC + b"not a gzip stream")

    assert excinfo.value.__cause__ is not None


@given(st.binary().filter(lambda data: not data.startswith(GZIP_MAGIC)))
def test_non_gzip_input_is_a_fixed_point(data: bytes) -> None:
    assert decompress_if_gzip(data) == data
