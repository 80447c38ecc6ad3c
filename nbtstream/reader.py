"""
reader.py - Pull-based NBT tokenizer

The reader is a chain of small state objects. Each call to ``next_token``
asks the current state for one token and the state it hands control to:

    Top -> Compound(cont=End) -> ... -> End

Container states keep a reference to their continuation; a list state yields
a synthetic END once its element count is exhausted, without reading a byte.

Usage:
    from nbtstream import Reader, tokenize

    with Reader("level.dat") as reader:
        for kind, name, value in reader:
            ...

    for token in tokenize(data):
        ...
"""

from __future__ import annotations

from typing import BinaryIO, Callable, Iterator, Optional, Union

from .errors import ExpectedCompound, InvalidLength, InvalidState, InvalidTag, NBTError
from .primitives import (
    read_byte_array,
    read_double,
    read_float,
    read_integer,
    read_kind,
    read_list_header,
    read_string,
)
from .states import ContainerState, State
from .streams import Source, close_stream, open_source
from .tags import INTEGER_WIDTHS, TagKind, Token

ReadResult = tuple[State, Optional[Token]]


def _read_value(
    stream: BinaryIO, kind: TagKind, name: Union[str, int], state: State, cont: State
) -> ReadResult:
    """Read the payload for ``kind`` and pick the next state.

    Scalars stay in ``state``, containers open a new state continued by
    ``state``, and END resumes ``cont``.
    """
    next_state = state
    value = None

    if kind == TagKind.END:
        next_state = cont
        name = ""
    elif kind in INTEGER_WIDTHS:
        value = read_integer(stream, INTEGER_WIDTHS[kind])
    elif kind == TagKind.FLOAT:
        value = read_float(stream)
    elif kind == TagKind.DOUBLE:
        value = read_double(stream)
    elif kind == TagKind.BYTE_ARRAY:
        value = read_byte_array(stream)
    elif kind == TagKind.STRING:
        value = read_string(stream)
    elif kind == TagKind.LIST:
        element_kind, length = read_list_header(stream)
        if element_kind == TagKind.END and length > 0:
            raise InvalidLength(f"List of END elements with length {length}")
        next_state = _ListState(state, name, element_kind, length)
        value = element_kind
    elif kind == TagKind.COMPOUND:
        next_state = _CompoundState(state, name)
    else:
        raise InvalidTag(f"Unknown tag kind {kind}")

    return next_state, Token(kind, name, value)


class _TopState(State):
    def get_token(self, stream: BinaryIO) -> ReadResult:
        kind = read_kind(stream)
        if kind != TagKind.COMPOUND:
            raise ExpectedCompound(f"Expected root COMPOUND, got {kind.name}")
        name = read_string(stream)
        return _CompoundState(_EndState(), name), Token(kind, name)


class _CompoundState(ContainerState):
    def get_token(self, stream: BinaryIO) -> ReadResult:
        kind = read_kind(stream)
        name = read_string(stream) if kind != TagKind.END else ""
        return _read_value(stream, kind, name, self, self.cont)


class _ListState(ContainerState):
    def __init__(self, cont: State, name: Union[str, int], kind: TagKind, length: int):
        super().__init__(cont, name)
        self.kind = kind
        self.length = length
        self.offset = 0

    def get_token(self, stream: BinaryIO) -> ReadResult:
        kind = self.kind if self.offset < self.length else TagKind.END
        index = self.offset
        self.offset += 1
        return _read_value(stream, kind, index, self, self.cont)


class _EndState(State):
    def get_token(self, stream: BinaryIO) -> ReadResult:
        return self, None


class Reader:
    """Pull tokens one at a time from an NBT stream.

    Args:
        source: Path, bytes, or binary file object
        compressed: True/False to force gzip on or off, None to detect it
    """

    def __init__(self, source: Source, compressed: Optional[bool] = None):
        self._stream, self._file, self._owns_file = open_source(source, compressed)
        self._state: State = _TopState()
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        token = self.next_token()
        if token is None:
            raise StopIteration
        return token

    def close(self):
        if not self._closed:
            self._closed = True
            close_stream(self._stream, self._file, self._owns_file)

    @property
    def path(self) -> Optional[str]:
        """Container path of the current position, None outside the root."""
        return self._state.path

    @property
    def finished(self) -> bool:
        return isinstance(self._state, _EndState)

    def next_token(self) -> Optional[Token]:
        """Return the next token, or None once the root compound has closed."""
        if self._closed:
            raise InvalidState("Reader is closed")
        state = self._state
        try:
            self._state, token = state.get_token(self._stream)
        except NBTError as exc:
            if exc.context is None:
                exc.context = state.path
            raise
        return token

    def for_each_token(self, fn: Callable[[Token], object]):
        for token in self:
            fn(token)


def tokenize(source: Source, compressed: Optional[bool] = None) -> Iterator[Token]:
    """Yield every token of an NBT document.

    Example:
        for kind, name, value in tokenize("level.dat"):
            print(kind.name, name, value)
    """
    with Reader(source, compressed) as reader:
        yield from reader
