"""
nbtstream - streaming reader and writer for NBT (Named Binary Tag) documents

Usage:
    import nbtstream
    from nbtstream import TagKind

    # Token stream
    for kind, name, value in nbtstream.tokenize("level.dat"):
        ...

    # Nested dict/list trees
    level = nbtstream.load("level.dat")
    nbtstream.dump(level, "copy.dat")

    # Token-driven writing
    with nbtstream.Writer("out.dat") as writer:
        with writer.emit_compound(""):
            writer.emit_token(TagKind.INT, "answer", 42)
"""

from .errors import (
    CorruptData,
    ExpectedCompound,
    InvalidContext,
    InvalidLength,
    InvalidState,
    InvalidTag,
    NBTError,
    TypeMismatch,
    UnexpectedEof,
    ValueOutOfRange,
)
from .reader import Reader, tokenize
from .tags import TagKind, Token
from .tree import dump, dumps, kind_of, load, loads
from .writer import Writer

__all__ = [
    "TagKind",
    "Token",
    "Reader",
    "Writer",
    "tokenize",
    "load",
    "loads",
    "dump",
    "dumps",
    "kind_of",
    "NBTError",
    "UnexpectedEof",
    "CorruptData",
    "InvalidTag",
    "ExpectedCompound",
    "TypeMismatch",
    "InvalidContext",
    "InvalidState",
    "InvalidLength",
    "ValueOutOfRange",
]
