"""Shared pieces of the reader and writer state chains."""

from __future__ import annotations

from typing import Optional, Union


class State:
    """A position in the token stream outside any container."""

    path: Optional[str] = None


class ContainerState(State):
    """A state for an open compound or list.

    ``cont`` is the state to resume once this container's END is processed,
    so the chain of ``cont`` references is the nesting stack.
    """

    def __init__(self, cont: State, name: Union[str, int]):
        self.cont = cont
        self.name = name

    @property
    def path(self) -> str:
        names = []
        state: State = self
        while isinstance(state, ContainerState):
            names.append(state.name)
            state = state.cont
        names[-1] = names[-1] or "root"
        return "/".join(str(name) for name in reversed(names))
