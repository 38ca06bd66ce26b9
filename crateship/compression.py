"""zstd compression of artifacts before signing and transfer."""

from __future__ import annotations

import zstandard

COMPRESSED_SUFFIX = ".zst"
SIGNATURE_SUFFIX = ".sig"

# Artifacts are large binaries uploaded once and downloaded many times.
COMPRESSION_LEVEL = 19


def compress(data: bytes, *, level: int = COMPRESSION_LEVEL) -> bytes:
    return zstandard.ZstdCompressor(level=level).compress(data)


def decompress(data: bytes) -> bytes:
    """
    Decompress a zstd frame.

    Uses the streaming reader so frames written without a content size
    (e.g. by the zstd command-line tool reading stdin) still decode.

    Raises:
        zstandard.ZstdError: If `data` is not a valid zstd frame
    """
    dctx = zstandard.ZstdDecompressor()
    with dctx.stream_reader(data) as reader:
        return reader.read()
