# src/stochvol/core/observer.py
"""
Observer graph used to propagate "input changed" notifications.

Observables keep weak references to their observers; observers keep strong
references to whatever they observe. A dependent therefore never keeps an
observable alive through the subscription, and dropping the last reference
to an observer silently removes it from every subscriber list.

Objects that are both `Observer` and `Observable` (handles, curves,
processes) forward `update()` to their own observers, which gives
transitive notification: whoever listens to a process hears about a change
in any quote or curve the process depends on.

Nothing here is thread-safe. Concurrent registration or notification must
be synchronized by the caller.
"""
from __future__ import annotations

import weakref
from typing import List


class Observable:
    def __init__(self) -> None:
        super().__init__()
        self._observers: List[weakref.ref] = []

    def register_observer(self, observer: "Observer") -> None:
        for ref in self._observers:
            if ref() is observer:
                return
        self._observers.append(weakref.ref(observer))

    def unregister_observer(self, observer: "Observer") -> None:
        self._observers = [
            ref for ref in self._observers if ref() is not None and ref() is not observer
        ]

    def observer_count(self) -> int:
        self._prune()
        return len(self._observers)

    def notify_observers(self) -> None:
        """Call `update()` on every live observer, in registration order."""
        self._prune()
        # snapshot: observers may (un)register while being notified
        for ref in list(self._observers):
            observer = ref()
            if observer is not None:
                observer.update()

    def _prune(self) -> None:
        self._observers = [ref for ref in self._observers if ref() is not None]


class Observer:
    def __init__(self) -> None:
        super().__init__()
        self._observables: List[Observable] = []

    def register_with(self, observable: Observable | None) -> None:
        if observable is None:
            return
        observable.register_observer(self)
        if not any(o is observable for o in self._observables):
            self._observables.append(observable)

    def unregister_with(self, observable: Observable | None) -> None:
        if observable is None:
            return
        observable.unregister_observer(self)
        self._observables = [o for o in self._observables if o is not observable]

    def unregister_with_all(self) -> None:
        for observable in self._observables:
            observable.unregister_observer(self)
        self._observables = []

    def observables(self) -> List[Observable]:
        return list(self._observables)

    def update(self) -> None:
        raise NotImplementedError


__all__ = ["Observable", "Observer"]
