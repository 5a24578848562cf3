"""
zlib compression for persisted objects.

The container is standard zlib: a 2-byte header, a deflate stream and an
Adler-32 trailer. Compression is only applied at the storage boundary;
digests are always computed over uncompressed canonical bytes.

Anything decompressed from an untrusted or unbounded source must go
through decompress_with_limit() so a small payload cannot expand into an
arbitrarily large buffer.
"""

import zlib

from .errors import CorruptDataError, SizeLimitExceededError

LEVEL_NONE = 0
LEVEL_FAST = 1
LEVEL_DEFAULT = 6
LEVEL_BEST = 9


def compress(data: bytes, level: int = LEVEL_DEFAULT) -> bytes:
    """
    Compress data into a zlib container.

    level trades speed for ratio: 0 stores without compression, 1 is
    fastest, 9 is smallest. Output is a pure function of data and level.

    Raises ValueError for levels outside 0-9.
    """
    if not isinstance(level, int) or not LEVEL_NONE <= level <= LEVEL_BEST:
        raise ValueError(f"Compression level must be 0-9, got {level!r}")
    return zlib.compress(data, level)


def decompress(data: bytes) -> bytes:
    """
    Decompress a zlib container.

    Raises CorruptDataError if the header is malformed, the checksum does
    not match, the stream is truncated or trailing bytes follow it.
    """
    return _inflate(data, None)


def decompress_with_limit(data: bytes, max_size: int) -> bytes:
    """
    Decompress a zlib container, producing at most max_size bytes.

    At most max_size + 1 bytes of output are ever materialized.

    Raises SizeLimitExceededError if the real decompressed size is larger
    than max_size, CorruptDataError for malformed input.
    """
    if max_size < 0:
        raise ValueError(f"max_size must be non-negative, got {max_size}")
    return _inflate(data, max_size)


def _inflate(data: bytes, max_size) -> bytes:
    decoder = zlib.decompressobj()
    try:
        if max_size is None:
            output = decoder.decompress(data)
        else:
            output = decoder.decompress(data, max_size + 1)
    except zlib.error as e:
        raise CorruptDataError(str(e))

    if max_size is not None and len(output) > max_size:
        raise SizeLimitExceededError(max_size)

    # Output stayed under the cap, so all input was consumed
    if not decoder.eof:
        raise CorruptDataError("truncated stream")
    if decoder.unused_data:
        raise CorruptDataError(f"{len(decoder.unused_data)} trailing bytes after stream")

    return output


def compression_ratio(original_size: int, compressed_size: int) -> float:
    """
    Fraction of space saved: 1 - compressed/original.

    Returns 0.0 for empty input, and 0.0 when compression made the data
    larger.
    """
    if original_size == 0:
        return 0.0
    return max(0.0, 1.0 - compressed_size / original_size)


def is_compression_effective(original_size: int, compressed_size: int) -> bool:
    """True if compression made the data strictly smaller."""
    return compressed_size < original_size
