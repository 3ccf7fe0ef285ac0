# src/stochvol/core/handle.py
from __future__ import annotations

from typing import Generic, Optional, TypeVar

from stochvol.core.errors import EmptyHandleError
from stochvol.core.observer import Observable, Observer

T = TypeVar("T", bound=Observable)


class Handle(Observable, Observer, Generic[T]):
    """
    Indirection cell pointing at a shared observable object.

    Holders of the handle always see the current target. The handle observes
    its target and re-broadcasts the target's notifications, so observers of
    the handle also hear about changes of the linked object.
    """

    def __init__(self, link: Optional[T] = None) -> None:
        super().__init__()
        self._link: Optional[T] = None
        self._set_link(link)

    def current_link(self) -> T:
        if self._link is None:
            raise EmptyHandleError("empty handle cannot be dereferenced")
        return self._link

    def empty(self) -> bool:
        return self._link is None

    def update(self) -> None:
        self.notify_observers()

    def _set_link(self, link: Optional[T]) -> None:
        if link is self._link:
            return
        if self._link is not None:
            self.unregister_with(self._link)
        self._link = link
        if link is not None:
            self.register_with(link)
        self.notify_observers()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._link!r})"


class RelinkableHandle(Handle[T]):
    """Handle whose target can be swapped after construction."""

    def link_to(self, link: Optional[T]) -> None:
        """Point the handle at `link` (None empties it) and notify observers."""
        self._set_link(link)


__all__ = ["Handle", "RelinkableHandle"]
