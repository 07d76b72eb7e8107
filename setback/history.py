# setback/history.py
from __future__ import annotations

from typing import Callable, Generic, List, TypeVar

S = TypeVar("S")
A = TypeVar("A")


class History(Generic[S, A]):
    """
    Linear undo/redo history around a pure `(state, action) -> state` reducer.

    - past: older states, newest last.
    - present: the current state.
    - future: undone states, the next one to redo first.

    A dispatch that returns the very same state object is a no-op and leaves
    the history alone. Any real change clears the redo stack.
    """

    def __init__(self, reducer: Callable[[S, A], S], initial: S) -> None:
        self._reducer = reducer
        self.past: List[S] = []
        self.present: S = initial
        self.future: List[S] = []

    @property
    def can_undo(self) -> bool:
        return bool(self.past)

    @property
    def can_redo(self) -> bool:
        return bool(self.future)

    def dispatch(self, action: A) -> S:
        new_present = self._reducer(self.present, action)
        if new_present is self.present:
            return self.present
        self.past.append(self.present)
        self.present = new_present
        self.future.clear()
        return self.present

    def undo(self) -> S:
        if not self.past:
            return self.present
        self.future.insert(0, self.present)
        self.present = self.past.pop()
        return self.present

    def redo(self) -> S:
        if not self.future:
            return self.present
        self.past.append(self.present)
        self.present = self.future.pop(0)
        return self.present

    def reset(self, state: S) -> None:
        """Replace the present and forget all history."""
        self.past.clear()
        self.future.clear()
        self.present = state
