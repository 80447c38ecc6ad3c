"""Opening sources and sinks, with the gzip layer NBT files are wrapped in."""

from __future__ import annotations

import gzip
import io
import logging
from pathlib import Path
from typing import BinaryIO, Optional, Union

from .errors import UnexpectedEof

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

Source = Union[str, Path, bytes, bytearray, memoryview, BinaryIO]
Dest = Union[str, Path, BinaryIO]


def peek(file: BinaryIO, size: int) -> Optional[bytes]:
    """Leading bytes of ``file`` without consuming them, None if it cannot seek."""
    seekable = getattr(file, "seekable", None)
    if seekable is None or not seekable():
        return None
    pos = file.tell()
    data = file.read(size)
    file.seek(pos)
    return data


def starts_gzip(magic: bytes) -> bool:
    # A lone 0x1f is a gzip header cut short, not a raw tag byte
    return bool(magic) and GZIP_MAGIC.startswith(magic)


def is_gzip(file: BinaryIO) -> bool:
    """Check for the gzip magic without consuming input.

    Streams that cannot seek are assumed to be gzip.
    """
    magic = peek(file, len(GZIP_MAGIC))
    return magic is None or starts_gzip(magic)


def open_source(
    source: Source, compressed: Optional[bool] = None
) -> tuple[BinaryIO, BinaryIO, bool]:
    """Open ``source`` for reading.

    Args:
        source: Path, raw bytes, or a binary file object
        compressed: True/False to force gzip on or off, None to detect it

    Returns:
        (stream to read tokens from, underlying file, whether we own the file)
    """
    if isinstance(source, (str, Path)):
        file = open(source, "rb")
        owns_file = True
    elif isinstance(source, (bytes, bytearray, memoryview)):
        file = io.BytesIO(bytes(source))
        owns_file = True
    else:
        file = source
        owns_file = False

    if compressed is None:
        compressed = is_gzip(file)
        logger.debug("Detected %s input", "gzip" if compressed else "uncompressed")

    if compressed:
        magic = peek(file, len(GZIP_MAGIC))
        if magic is not None and len(magic) < len(GZIP_MAGIC) and starts_gzip(magic):
            if owns_file:
                file.close()
            raise UnexpectedEof("Unexpected end of data inside the gzip header")
        return gzip.GzipFile(fileobj=file, mode="rb"), file, owns_file
    return file, file, owns_file


def open_dest(
    dest: Dest, compressed: bool = True, compresslevel: int = 9
) -> tuple[BinaryIO, BinaryIO, bool]:
    """Open ``dest`` for writing; same return shape as open_source."""
    if isinstance(dest, (str, Path)):
        file = open(dest, "wb")
        owns_file = True
    else:
        file = dest
        owns_file = False

    if compressed:
        stream = gzip.GzipFile(fileobj=file, mode="wb", compresslevel=compresslevel)
        return stream, file, owns_file
    return file, file, owns_file


def close_stream(stream: BinaryIO, file: BinaryIO, owns_file: bool):
    """Close the gzip layer (if any) and the file if we opened it."""
    if stream is not file:
        stream.close()
    else:
        flush = getattr(file, "flush", None)
        if flush is not None and not getattr(file, "closed", False):
            flush()
    if owns_file:
        file.close()
    logger.debug("Closed stream (owned file: %s)", owns_file)
