"""
tree.py - Load NBT documents into nested dicts/lists and dump them back

Loaded trees use numpy scalars for numeric tags so the wire width survives
a round trip:

    BYTE -> np.int8      SHORT -> np.int16    INT -> np.int32
    LONG -> np.int64     FLOAT -> np.float32  DOUBLE -> np.float64
    BYTE_ARRAY -> bytes  STRING -> str
    LIST -> list         COMPOUND -> dict

When dumping, plain Python values are mapped as well: int -> INT (LONG if
it does not fit in 32 bits), float -> DOUBLE, bool -> BYTE.

Usage:
    import nbtstream

    level = nbtstream.load("level.dat")
    level["Data"]["Time"] = np.int64(0)
    nbtstream.dump(level, "level.dat", name="")

    data = nbtstream.dumps({"x": np.int16(-1), "y": [np.int8(3), np.int8(5)]})
    tree = nbtstream.loads(data)
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any, BinaryIO, Optional, Union

import numpy as np

from .reader import tokenize
from .streams import Source
from .tags import TagKind
from .writer import Writer

# Numpy scalar type for each numeric tag kind
NUMPY_TYPES = {
    TagKind.BYTE: np.int8,
    TagKind.SHORT: np.int16,
    TagKind.INT: np.int32,
    TagKind.LONG: np.int64,
    TagKind.FLOAT: np.float32,
    TagKind.DOUBLE: np.float64,
}

_KINDS_BY_DTYPE = {np.dtype(t): kind for kind, t in NUMPY_TYPES.items()}


def load(source: Source, compressed: Optional[bool] = None) -> dict:
    """Load an NBT document into a nested dictionary.

    The root compound's name is discarded.

    Args:
        source: File path, bytes, or binary file object
        compressed: True/False to force gzip on or off, None to detect it

    Returns:
        Nested dictionary with the root compound's entries

    Example:
        level = nbtstream.load("level.dat")
        with open("level.dat", "rb") as f:
            level = nbtstream.load(f)
    """
    root: dict = {}
    stack: list = []

    for kind, name, value in tokenize(source, compressed):
        if kind == TagKind.END:
            stack.pop()
            continue

        if kind == TagKind.COMPOUND:
            value = {} if stack else root
        elif kind == TagKind.LIST:
            value = []
        elif kind in NUMPY_TYPES:
            value = NUMPY_TYPES[kind](value)

        if stack:
            container = stack[-1]
            if isinstance(container, list):
                container.append(value)
            else:
                container[name] = value

        if kind.is_container:
            stack.append(value)

    return root


def loads(data: bytes, compressed: Optional[bool] = None) -> dict:
    """Load an NBT document from bytes.

    Example:
        tree = nbtstream.loads(gzip_bytes)
    """
    return load(bytes(data), compressed)


def kind_of(value: Any) -> TagKind:
    """Tag kind used to write ``value``."""
    if isinstance(value, dict):
        return TagKind.COMPOUND
    if isinstance(value, (list, tuple)):
        return TagKind.LIST
    if isinstance(value, str):
        return TagKind.STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return TagKind.BYTE_ARRAY
    if isinstance(value, np.ndarray):
        if value.ndim == 1 and value.dtype in (np.int8, np.uint8):
            return TagKind.BYTE_ARRAY
        raise TypeError(f"Unsupported array dtype/shape: {value.dtype} {value.shape}")
    if isinstance(value, (bool, np.bool_)):
        return TagKind.BYTE
    # Check numpy before float: np.float64 is a float subclass
    if isinstance(value, np.generic):
        kind = _KINDS_BY_DTYPE.get(value.dtype)
        if kind is None:
            raise TypeError(f"Unsupported numpy type: {value.dtype}")
        return kind
    if isinstance(value, int):
        return TagKind.INT if -2**31 <= value < 2**31 else TagKind.LONG
    if isinstance(value, float):
        return TagKind.DOUBLE
    raise TypeError(f"Unsupported type: {type(value)}")


def _payload(kind: TagKind, value: Any) -> Any:
    if kind == TagKind.BYTE_ARRAY and isinstance(value, np.ndarray):
        return value.tobytes()
    if kind in (TagKind.FLOAT, TagKind.DOUBLE):
        return float(value)
    if kind in NUMPY_TYPES:
        return int(value)
    return value


def _write_value(writer: Writer, name: Union[str, int], value: Any):
    kind = kind_of(value)
    if kind == TagKind.COMPOUND:
        with writer.emit_compound(name):
            for key, item in value.items():
                _write_value(writer, key, item)
    elif kind == TagKind.LIST:
        element_kind = kind_of(value[0]) if len(value) else TagKind.END
        with writer.emit_list(element_kind, name):
            for item in value:
                _write_list_item(writer, item)
    else:
        writer.emit_token(kind, name, _payload(kind, value))


def _write_list_item(writer: Writer, value: Any):
    # Names are ignored inside a list; the writer checks the element kind
    kind = kind_of(value)
    if kind.is_container:
        _write_value(writer, "", value)
    else:
        writer.emit_token(kind, None, _payload(kind, value))


def dump(
    tree: dict,
    dest: Union[str, Path, BinaryIO],
    name: str = "",
    compressed: bool = True,
    compresslevel: int = 9,
):
    """Write a nested dictionary as an NBT document.

    Args:
        tree: Root compound entries
        dest: File path or binary file object
        name: Name of the root compound (default: "")
        compressed: Wrap the output in gzip (default: True)
        compresslevel: gzip compression level (default: 9)

    Example:
        nbtstream.dump({"Time": np.int64(0)}, "level.dat")
    """
    if not isinstance(tree, dict):
        raise TypeError(f"Root must be a dict, got {type(tree).__name__}")
    with Writer(dest, compressed, compresslevel) as writer:
        _write_value(writer, name, tree)


def dumps(
    tree: dict, name: str = "", compressed: bool = True, compresslevel: int = 9
) -> bytes:
    """Serialize a nested dictionary to NBT bytes.

    Example:
        data = nbtstream.dumps({"x": np.int16(-1)}, compressed=False)
    """
    buf = io.BytesIO()
    dump(tree, buf, name, compressed, compresslevel)
    return buf.getvalue()
