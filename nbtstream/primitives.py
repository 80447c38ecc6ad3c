"""
primitives.py - Big-endian primitive encoding used by the NBT wire format

Integers:   1/2/4/8 bytes, big-endian two's complement
Floats:     4/8 bytes, IEEE-754 big-endian
Strings:    int16 length prefix + UTF-8 bytes
Byte array: int32 length prefix + raw bytes
List header: element kind byte + int32 count

All functions operate on a binary stream (anything with ``read``/``write``).
"""

from __future__ import annotations

import gzip
import operator
import struct
import zlib
from typing import BinaryIO, Union

from .errors import (
    CorruptData,
    InvalidLength,
    InvalidTag,
    UnexpectedEof,
    ValueOutOfRange,
)
from .tags import TagKind

MAX_STRING_LENGTH = 0x7FFF

BytesLike = Union[bytes, bytearray, memoryview]


def sign_bit(width: int) -> int:
    return 1 << ((width << 3) - 1)


# =============================================================================
# Reading
# =============================================================================


def read_raw(stream: BinaryIO, n_bytes: int) -> bytes:
    """Read exactly ``n_bytes`` or raise UnexpectedEof."""
    chunks = []
    remaining = n_bytes
    try:
        while remaining > 0:
            chunk = stream.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
    except EOFError as exc:
        # gzip raises EOFError for a member cut short
        raise UnexpectedEof(f"Unexpected end of data reading {n_bytes} bytes") from exc
    except (gzip.BadGzipFile, zlib.error) as exc:
        raise CorruptData(f"Invalid gzip data: {exc}") from exc
    if remaining > 0:
        raise UnexpectedEof(
            f"Unexpected end of data: wanted {n_bytes} bytes, got {n_bytes - remaining}"
        )
    return b"".join(chunks)


def read_integer(stream: BinaryIO, width: int) -> int:
    value = int.from_bytes(read_raw(stream, width), "big")
    value -= (value & sign_bit(width)) << 1
    return value


def read_byte(stream: BinaryIO) -> int:
    return read_integer(stream, 1)


def read_short(stream: BinaryIO) -> int:
    return read_integer(stream, 2)


def read_int(stream: BinaryIO) -> int:
    return read_integer(stream, 4)


def read_long(stream: BinaryIO) -> int:
    return read_integer(stream, 8)


def read_float(stream: BinaryIO) -> float:
    return struct.unpack(">f", read_raw(stream, 4))[0]


def read_double(stream: BinaryIO) -> float:
    return struct.unpack(">d", read_raw(stream, 8))[0]


def read_string(stream: BinaryIO) -> str:
    """Read an int16 length-prefixed string.

    Bytes that are not valid UTF-8 (Java's modified UTF-8 writes NUL as
    ``c0 80``) come back as surrogate escapes, which write_string restores.
    """
    length = read_short(stream)
    if length < 0:
        raise InvalidLength(f"Negative string length {length}")
    return read_raw(stream, length).decode("utf-8", "surrogateescape")


def read_byte_array(stream: BinaryIO) -> bytes:
    length = read_int(stream)
    if length < 0:
        raise InvalidLength(f"Negative byte array length {length}")
    return read_raw(stream, length)


def read_kind(stream: BinaryIO) -> TagKind:
    index = read_byte(stream) & 0xFF
    try:
        return TagKind(index)
    except ValueError:
        raise InvalidTag(f"Unknown tag kind {index}") from None


def read_list_header(stream: BinaryIO) -> tuple[TagKind, int]:
    kind = read_kind(stream)
    length = read_int(stream)
    if length < 0:
        raise InvalidLength(f"Negative list length {length}")
    return kind, length


# =============================================================================
# Writing
# =============================================================================


def write_integer(stream: BinaryIO, width: int, value: int):
    value = operator.index(value)
    bit = sign_bit(width)
    if not -bit <= value < bit:
        raise ValueOutOfRange(f"{value} does not fit in {width} signed byte(s)")
    value -= (value & bit) << 1
    stream.write(bytes((value >> ((width - n) << 3)) & 0xFF for n in range(1, width + 1)))


def write_byte(stream: BinaryIO, value: int):
    write_integer(stream, 1, value)


def write_short(stream: BinaryIO, value: int):
    write_integer(stream, 2, value)


def write_int(stream: BinaryIO, value: int):
    write_integer(stream, 4, value)


def write_long(stream: BinaryIO, value: int):
    write_integer(stream, 8, value)


def write_float(stream: BinaryIO, value: float):
    try:
        stream.write(struct.pack(">f", value))
    except OverflowError:
        raise ValueOutOfRange(f"{value!r} does not fit in a 4-byte float") from None


def write_double(stream: BinaryIO, value: float):
    stream.write(struct.pack(">d", value))


def write_string(stream: BinaryIO, value: Union[str, BytesLike]):
    if isinstance(value, str):
        data = value.encode("utf-8", "surrogateescape")
    else:
        data = bytes(value)
    if len(data) > MAX_STRING_LENGTH:
        raise InvalidLength(
            f"String of {len(data)} bytes exceeds the {MAX_STRING_LENGTH} byte limit"
        )
    write_short(stream, len(data))
    stream.write(data)


def write_byte_array(stream: BinaryIO, value: BytesLike):
    data = bytes(value)
    write_int(stream, len(data))
    stream.write(data)


def write_kind(stream: BinaryIO, kind: TagKind):
    write_byte(stream, int(kind))


def write_list_header(stream: BinaryIO, kind: TagKind, count: int):
    write_kind(stream, kind)
    write_int(stream, count)
