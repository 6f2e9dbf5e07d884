"""Nanosecond-resolution durations."""

from __future__ import annotations

from dataclasses import dataclass

NANOS_PER_SECOND = 1_000_000_000


@dataclass(frozen=True, order=True)
class Duration:
    """A signed span of time in integer nanoseconds."""

    nanos: int = 0

    def add(self, other: Duration) -> Duration:
        return Duration(self.nanos + other.nanos)

    def sub(self, other: Duration) -> Duration:
        return Duration(self.nanos - other.nanos)

    def cmp(self, other: Duration) -> int:
        """<0, 0, or >0 as self is shorter than, equal to, or longer than other."""
        return (self.nanos > other.nanos) - (self.nanos < other.nanos)

    def __str__(self) -> str:
        n = abs(self.nanos)
        if n < 1000:
            return f"{self.nanos}ns"
        if n < 1000 * 1000:
            return f"{self.nanos / 1000:.3f}μs"
        if n < NANOS_PER_SECOND:
            return f"{self.nanos / 1_000_000:.3f}ms"
        if n < NANOS_PER_SECOND * 60:
            return f"{self.nanos / NANOS_PER_SECOND:.3f}s"
        if n < NANOS_PER_SECOND * 60 * 60:
            return f"{self.nanos / (60 * NANOS_PER_SECOND):.3f}m"
        return f"{self.nanos / (60 * 60 * NANOS_PER_SECOND):.3f}h"
