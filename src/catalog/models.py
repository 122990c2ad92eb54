"""Data models for runtime releases and language dialect versions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple


@dataclass(frozen=True)
class RuntimeRelease:
    """One release line from the runtime release schedule."""
    version: str
    start: date
    end: date
    maintenance: Optional[date] = None
    lts: Optional[date] = None
    codename: Optional[str] = None


LEGACY = "ES3"
ES5 = "ES5"
NEXT = "ESNext"


@dataclass(frozen=True, order=True)
class DialectVersion:
    """A language specification level, e.g. ES3, ES5, ES2015 or ESNext.

    Ordering follows specification history: ES3 < ES5 < ES2015 < ... < ESNext.
    """
    rank: Tuple[int, int] = field(repr=False)
    name: str = field(compare=False)

    @classmethod
    def legacy(cls) -> "DialectVersion":
        return cls((0, 3), LEGACY)

    @classmethod
    def es5(cls) -> "DialectVersion":
        return cls((0, 5), ES5)

    @classmethod
    def yearly(cls, year: int) -> "DialectVersion":
        return cls((1, year), f"ES{year}")

    @classmethod
    def next(cls) -> "DialectVersion":
        return cls((2, 0), NEXT)

    @classmethod
    def parse(cls, value: str) -> "DialectVersion":
        """Parse a dialect token case-insensitively ("es2020", "ESNext", "es5")."""
        token = value.strip().upper()
        if token == NEXT.upper():
            return cls.next()
        if token == LEGACY:
            return cls.legacy()
        if token in (ES5, "ES2009"):
            return cls.es5()
        if token == "ES6":
            return cls.yearly(2015)
        if token.startswith("ES") and token[2:].isdigit() and len(token) == 6:
            return cls.yearly(int(token[2:]))
        raise ValueError(f"Unknown dialect version: {value}")

    @property
    def is_legacy(self) -> bool:
        return self.name == LEGACY

    @property
    def is_next(self) -> bool:
        return self.name == NEXT

    @property
    def slug(self) -> str:
        """Lowercase token used in directory names and tags."""
        return self.name.lower()

    def __str__(self) -> str:
        return self.name
