"""Exceptions raised by the NBT reader and writer."""

from __future__ import annotations

from typing import Optional


class NBTError(Exception):
    """Base class for codec errors.

    ``context`` is the container path (e.g. ``root/Level/Entities/3``) that
    was active when the error was detected, if known.
    """

    def __init__(self, message: str, context: Optional[str] = None):
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} (in {self.context})"
        return self.message


class UnexpectedEof(NBTError, EOFError):
    """Stream ended before the requested bytes were available."""


class InvalidTag(NBTError):
    """Tag byte outside the known kinds."""


class ExpectedCompound(NBTError):
    """The root entity is not a compound."""


class TypeMismatch(NBTError):
    """List element does not match the list's element kind."""


class InvalidContext(NBTError):
    """List item emitted while the innermost container is not a list."""


class InvalidState(NBTError):
    """Operation after the root compound has closed, or on a closed stream."""


class InvalidLength(NBTError):
    """Length prefix that is negative or too large for its field."""


class ValueOutOfRange(NBTError):
    """Numeric value does not fit the wire width of its kind."""


class CorruptData(NBTError):
    """The gzip layer rejected the input (bad magic, bad deflate data)."""
