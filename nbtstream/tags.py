"""
tags.py - NBT tag kinds and the token triple shared by reader and writer

Tag kinds (the index is the wire byte and must never change):
    0 END, 1 BYTE, 2 SHORT, 3 INT, 4 LONG, 5 FLOAT, 6 DOUBLE,
    7 BYTE_ARRAY, 8 STRING, 9 LIST, 10 COMPOUND
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, NamedTuple, Union


class TagKind(IntEnum):
    END = 0
    BYTE = 1
    SHORT = 2
    INT = 3
    LONG = 4
    FLOAT = 5
    DOUBLE = 6
    BYTE_ARRAY = 7
    STRING = 8
    LIST = 9
    COMPOUND = 10

    @property
    def is_container(self) -> bool:
        return self in (TagKind.LIST, TagKind.COMPOUND)


# Byte width of the fixed-size integer kinds
INTEGER_WIDTHS = {
    TagKind.BYTE: 1,
    TagKind.SHORT: 2,
    TagKind.INT: 4,
    TagKind.LONG: 8,
}


class Token(NamedTuple):
    """One unit of the token stream.

    ``name`` is a string inside a compound and the element index inside a
    list. ``value`` is None for END and COMPOUND, the element kind for LIST,
    and the decoded scalar otherwise.
    """

    kind: TagKind
    name: Union[str, int]
    value: Any = None
