"""Tests for artifact compression."""

from __future__ import annotations

import os

import pytest
import zstandard

from crateship.compression import compress, decompress


@pytest.mark.parametrize("payload", [b"", b"a" * 100_000, os.urandom(4096)])
def test_round_trip(payload: bytes) -> None:
    assert decompress(compress(payload)) == payload


def test_repetitive_data_shrinks() -> None:
    payload = b"\x7fELF" + b"\0" * 200_000
    assert len(compress(payload)) < len(payload) // 10


def test_frames_without_content_size_decode() -> None:
    payload = b"streamed " * 1000
    frame = zstandard.ZstdCompressor(write_content_size=False).compress(payload)
    assert decompress(frame) == payload


def test_garbage_raises_zstd_error() -> None:
    with pytest.raises(zstandard.ZstdError):
        decompress(b"definitely not zstd")
