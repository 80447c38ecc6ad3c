"""
writer.py - Push-based NBT writer

The writer mirrors the reader's state chain. A list's header must carry its
element count before any element bytes, so each list state captures its
children into a private buffer and only writes ``header + buffer`` to its own
sink when it receives END. A list nested in another list therefore lands in
the outer list's buffer, and each level computes its own count.

Usage:
    from nbtstream import TagKind, Writer

    with Writer("level.dat") as writer:
        with writer.emit_compound(""):
            writer.emit_token(TagKind.SHORT, "x", -1)
            with writer.emit_list(TagKind.BYTE, "y"):
                writer.emit_item(3)
                writer.emit_item(5)
"""

from __future__ import annotations

import io
import logging
from contextlib import contextmanager, suppress
from typing import Any, BinaryIO, Callable, Iterator, Optional, Union

from .errors import (
    ExpectedCompound,
    InvalidContext,
    InvalidState,
    InvalidTag,
    NBTError,
    TypeMismatch,
)
from .primitives import (
    write_byte_array,
    write_double,
    write_float,
    write_integer,
    write_kind,
    write_list_header,
    write_string,
)
from .states import ContainerState, State
from .streams import Dest, close_stream, open_dest
from .tags import INTEGER_WIDTHS, TagKind

logger = logging.getLogger(__name__)


def as_kind(kind: Union[TagKind, int]) -> TagKind:
    try:
        return TagKind(kind)
    except (TypeError, ValueError):
        raise InvalidTag(f"Unknown tag kind {kind!r}") from None


def _check_name(name: Any) -> str:
    if not isinstance(name, str):
        raise TypeError(f"Compound entry names must be str, got {type(name).__name__}")
    return name


def _emit_value(
    out: BinaryIO, kind: TagKind, name: Union[str, int], value: Any, state: State
) -> State:
    """Write the payload for ``kind`` to ``out`` and pick the next state.

    A container opened here writes its own contents through ``out``.
    """
    if kind in INTEGER_WIDTHS:
        write_integer(out, INTEGER_WIDTHS[kind], value)
    elif kind == TagKind.FLOAT:
        write_float(out, value)
    elif kind == TagKind.DOUBLE:
        write_double(out, value)
    elif kind == TagKind.BYTE_ARRAY:
        write_byte_array(out, value)
    elif kind == TagKind.STRING:
        write_string(out, value)
    elif kind == TagKind.LIST:
        return _ListState(state, name, as_kind(value), out)
    elif kind == TagKind.COMPOUND:
        return _CompoundState(state, name, out)
    else:
        raise InvalidTag(f"Cannot emit a value of kind {kind.name}")
    return state


class _TopState(State):
    def __init__(self, out: BinaryIO):
        self.out = out

    def emit_token(self, kind: TagKind, name: Any, value: Any) -> State:
        if kind != TagKind.COMPOUND:
            raise ExpectedCompound(f"Document must start with COMPOUND, got {kind.name}")
        name = _check_name(name)
        write_kind(self.out, kind)
        write_string(self.out, name)
        return _CompoundState(_EndState(), name, self.out)

    def emit_item(self, value: Any) -> State:
        raise InvalidContext("emit_item outside of a list")


class _CompoundState(ContainerState):
    def __init__(self, cont: State, name: Union[str, int], out: BinaryIO):
        super().__init__(cont, name)
        self.out = out

    def emit_token(self, kind: TagKind, name: Any, value: Any) -> State:
        if kind == TagKind.END:
            write_kind(self.out, kind)
            return self.cont
        name = _check_name(name)
        write_kind(self.out, kind)
        write_string(self.out, name)
        return _emit_value(self.out, kind, name, value, self)

    def emit_item(self, value: Any) -> State:
        raise InvalidContext("emit_item outside of a list")


class _ListState(ContainerState):
    """Open list; elements are captured in ``buffer`` until END."""

    def __init__(self, cont: State, name: Union[str, int], kind: TagKind, out: BinaryIO):
        super().__init__(cont, name)
        self.kind = kind
        self.out = out
        self.count = 0
        self.buffer = io.BytesIO()

    def emit_token(self, kind: TagKind, name: Any, value: Any) -> State:
        if kind == TagKind.END:
            write_list_header(self.out, self.kind, self.count)
            self.out.write(self.buffer.getvalue())
            return self.cont
        if kind != self.kind:
            raise TypeMismatch(f"Got {kind.name} in a list of {self.kind.name}")
        return self._emit_item(value)

    def emit_item(self, value: Any) -> State:
        if self.kind == TagKind.END:
            raise TypeMismatch("A list of END cannot hold items")
        return self._emit_item(value)

    def _emit_item(self, value: Any) -> State:
        next_state = _emit_value(self.buffer, self.kind, self.count, value, self)
        self.count += 1
        return next_state


class _EndState(State):
    def emit_token(self, kind: TagKind, name: Any, value: Any) -> State:
        raise InvalidState(f"Unexpected {kind.name} after the root compound was closed")

    def emit_item(self, value: Any) -> State:
        raise InvalidState("Unexpected item after the root compound was closed")


class Writer:
    """Push tokens into an NBT stream.

    Args:
        dest: Path or binary file object
        compressed: Wrap the output in gzip (default: True)
        compresslevel: gzip compression level (default: 9)
    """

    def __init__(self, dest: Dest, compressed: bool = True, compresslevel: int = 9):
        self._stream, self._file, self._owns_file = open_dest(dest, compressed, compresslevel)
        self._state: State = _TopState(self._stream)
        self._closed = False

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.finish()

    @property
    def path(self) -> Optional[str]:
        """Container path of the current position, None outside the root."""
        return self._state.path

    @property
    def finished(self) -> bool:
        return isinstance(self._state, _EndState)

    def _advance(self, emit: Callable[[], State]):
        if self._closed:
            raise InvalidState("Writer has already been finished")
        state = self._state
        try:
            self._state = emit()
        except NBTError as exc:
            if exc.context is None:
                exc.context = state.path
            raise

    def emit_token(self, kind: Union[TagKind, int], name: Any = None, value: Any = None):
        """Emit one token.

        Args:
            kind: Tag kind of the token
            name: Entry name inside a compound; ignored inside a list
            value: Scalar payload, or the element kind when ``kind`` is LIST
        """
        kind = as_kind(kind)
        self._advance(lambda: self._state.emit_token(kind, name, value))

    def emit_item(self, value: Any = None):
        """Emit the next element of the innermost list using its element kind."""
        self._advance(lambda: self._state.emit_item(value))

    @contextmanager
    def emit_compound(self, name: str = "") -> Iterator["Writer"]:
        """Open a compound and close it with END when the block exits.

        Inside a list the name is ignored.
        """
        self.emit_token(TagKind.COMPOUND, name)
        yield from self._closing()

    @contextmanager
    def emit_list(self, kind: Union[TagKind, int], name: str = "") -> Iterator["Writer"]:
        """Open a list of ``kind`` elements and close it when the block exits."""
        self.emit_token(TagKind.LIST, name, kind)
        yield from self._closing()

    def _closing(self) -> Iterator["Writer"]:
        try:
            yield self
        except BaseException:
            # The body's error wins over one raised while closing
            with suppress(NBTError):
                self.emit_token(TagKind.END)
            raise
        self.emit_token(TagKind.END)

    def finish(self):
        """Flush the gzip layer and release the destination."""
        if self._closed:
            return
        if not self.finished:
            logger.debug("Finishing writer with containers still open at %s", self.path)
        self._closed = True
        close_stream(self._stream, self._file, self._owns_file)

    close = finish
