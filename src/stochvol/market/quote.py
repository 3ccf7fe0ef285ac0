# src/stochvol/market/quote.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from stochvol.core.errors import UninitializedValueError
from stochvol.core.observer import Observable


class Quote(Observable, ABC):
    """Observable scalar market value (spot, rate, model parameter...)."""

    @abstractmethod
    def value(self) -> float:
        ...

    @abstractmethod
    def is_valid(self) -> bool:
        ...


class SimpleQuote(Quote):
    """
    Quote holding a value set by the user.

    Observers are notified only when the stored value actually changes.
    """

    def __init__(self, value: Optional[float] = None) -> None:
        super().__init__()
        self._value: Optional[float] = None if value is None else float(value)

    def value(self) -> float:
        if self._value is None:
            raise UninitializedValueError("invalid SimpleQuote: no value set")
        return self._value

    def is_valid(self) -> bool:
        return self._value is not None

    def set_value(self, value: Optional[float]) -> float:
        """
        Store a new value and notify observers if it differs.

        Returns the change (0.0 when the quote was previously unset or is
        being unset).
        """
        new = None if value is None else float(value)
        old = self._value
        if new == old:
            return 0.0
        self._value = new
        self.notify_observers()
        if old is None or new is None:
            return 0.0
        return new - old

    def reset(self) -> None:
        self.set_value(None)

    def __repr__(self) -> str:
        return f"SimpleQuote({self._value!r})"


__all__ = ["Quote", "SimpleQuote"]
