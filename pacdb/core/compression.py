"""
Compression utilities for pacdb

Auto-detects the compression of a sync database from its magic bytes:
- gzip (repo-add default)
- zstd (repo-add --zst / newer mirrors)
- xz/lzma
- bzip2
- plain (uncompressed tar)
"""

import bz2
import gzip
import logging
import lzma
import zlib
from pathlib import Path
from typing import BinaryIO, Tuple, Type, Union

logger = logging.getLogger(__name__)

# Magic bytes for format detection
MAGIC_ZSTD = b'\x28\xb5\x2f\xfd'
MAGIC_GZIP = b'\x1f\x8b'
MAGIC_XZ = b'\xfd7zXZ\x00'
MAGIC_BZ2 = b'BZh'


def _zstandard():
    try:
        import zstandard
    except ImportError:
        raise ImportError(
            "Module 'zstandard' required for zstd decompression. "
            "Install with: pip install zstandard"
        )
    return zstandard


def detect_format(data: bytes) -> str:
    """Detect compression format from magic bytes.

    Args:
        data: First 8+ bytes of the file

    Returns:
        Format name: 'zstd', 'gzip', 'xz', 'bzip2', or 'plain'
    """
    if data[:4] == MAGIC_ZSTD:
        return 'zstd'
    elif data[:2] == MAGIC_GZIP:
        return 'gzip'
    elif data[:6] == MAGIC_XZ:
        return 'xz'
    elif data[:3] == MAGIC_BZ2:
        return 'bzip2'
    else:
        return 'plain'


def decompression_errors() -> Tuple[Type[BaseException], ...]:
    """Exceptions a decompressing stream may raise on corrupt or truncated input."""
    errors = (OSError, EOFError, zlib.error, lzma.LZMAError)
    try:
        return errors + (_zstandard().ZstdError,)
    except ImportError:
        return errors


def open_stream(filename: Union[str, Path]) -> BinaryIO:
    """Open a possibly compressed file and return a binary stream.

    Only the magic bytes are read up front; the rest is decompressed
    as the caller reads.

    Args:
        filename: Path to compressed file

    Returns:
        File-like object for reading decompressed data

    Raises:
        OSError: If the file cannot be opened
    """
    path = Path(filename)

    with open(path, 'rb') as f:
        magic = f.read(8)

    fmt = detect_format(magic)
    logger.debug(f"Opening {path} as {fmt}")

    if fmt == 'zstd':
        zstd = _zstandard()
        f = open(path, 'rb')
        try:
            dctx = zstd.ZstdDecompressor()
            return dctx.stream_reader(f, closefd=True)
        except Exception:
            f.close()
            raise

    elif fmt == 'gzip':
        return gzip.open(path, 'rb')

    elif fmt == 'xz':
        return lzma.open(path, 'rb')

    elif fmt == 'bzip2':
        return bz2.open(path, 'rb')

    else:
        return open(path, 'rb')
