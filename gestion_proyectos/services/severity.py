"""Severity classification shared by evidence, links and reports."""

from __future__ import annotations

from enum import Enum


class Severity(str, Enum):
    """Ordered severity: OK < LEVE < CRITICO."""

    OK = "OK"
    LEVE = "LEVE"
    CRITICO = "CRITICO"

    @property
    def rank(self) -> int:
        return _RANK[self]

    @classmethod
    def parse(cls, value: str | None, default: "Severity | None" = None) -> "Severity | None":
        """Return the matching member for ``value`` (case-insensitive) or ``default``."""
        if value is None:
            return default
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return default


_RANK = {Severity.OK: 0, Severity.LEVE: 1, Severity.CRITICO: 2}

DEFAULT_LINK_SEVERITY = Severity.LEVE


def max_severity(current: Severity | None, candidate: Severity | None) -> Severity | None:
    """Return the higher-ranked of two severities. Ties keep ``current``."""
    if current is None:
        return candidate
    if candidate is None:
        return current
    return candidate if candidate.rank > current.rank else current
