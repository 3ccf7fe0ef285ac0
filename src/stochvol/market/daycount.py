# src/stochvol/market/daycount.py
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, Type


class DayCounter(ABC):
    """Converts a calendar interval into a year fraction."""

    @abstractmethod
    def name(self) -> str:
        ...

    def day_count(self, start: date, end: date) -> int:
        return (end - start).days

    @abstractmethod
    def year_fraction(self, start: date, end: date) -> float:
        ...

    def __eq__(self, other: object) -> bool:
        return isinstance(other, DayCounter) and other.name() == self.name()

    def __hash__(self) -> int:
        return hash(self.name())

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Actual365Fixed(DayCounter):
    """ACT/365 (Fixed): actual days over 365, leap years included."""

    def name(self) -> str:
        return "Actual/365 (Fixed)"

    def year_fraction(self, start: date, end: date) -> float:
        return self.day_count(start, end) / 365.0


class Actual360(DayCounter):
    def name(self) -> str:
        return "Actual/360"

    def year_fraction(self, start: date, end: date) -> float:
        return self.day_count(start, end) / 360.0


class Thirty360(DayCounter):
    """
    30/360 US (bond basis).

    Day 31 is rolled to 30; the end day is only rolled when the start day
    is already 30 or 31.
    """

    def name(self) -> str:
        return "30/360 (Bond Basis)"

    def day_count(self, start: date, end: date) -> int:
        dd1, dd2 = start.day, end.day
        if dd1 == 31:
            dd1 = 30
        if dd2 == 31 and dd1 == 30:
            dd2 = 30
        return (
            360 * (end.year - start.year)
            + 30 * (end.month - start.month)
            + (dd2 - dd1)
        )

    def year_fraction(self, start: date, end: date) -> float:
        return self.day_count(start, end) / 360.0


_DAY_COUNTERS: Dict[str, Type[DayCounter]] = {
    "Actual/365 (Fixed)": Actual365Fixed,
    "ACT/365": Actual365Fixed,
    "Actual/360": Actual360,
    "ACT/360": Actual360,
    "30/360 (Bond Basis)": Thirty360,
    "30/360": Thirty360,
}


def day_counter_from_name(name: str) -> DayCounter:
    """Look up a day counter by its conventional name (case-insensitive)."""
    for key, cls in _DAY_COUNTERS.items():
        if key.lower() == name.strip().lower():
            return cls()
    raise ValueError(
        f"Unknown day counter '{name}'. Available: {sorted(_DAY_COUNTERS)}"
    )


__all__ = [
    "DayCounter",
    "Actual365Fixed",
    "Actual360",
    "Thirty360",
    "day_counter_from_name",
]
