"""High-resolution points in time, as (seconds, nanos) since the Unix epoch."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from traceviz.duration import NANOS_PER_SECOND, Duration

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True, order=True)
class Timestamp:
    """A Unix timestamp. nanos is always normalized into [0, 1e9)."""

    seconds: int = 0
    nanos: int = 0

    def __post_init__(self) -> None:
        carry, nanos = divmod(int(self.nanos), NANOS_PER_SECOND)
        object.__setattr__(self, "seconds", int(self.seconds) + carry)
        object.__setattr__(self, "nanos", nanos)

    @classmethod
    def from_datetime(cls, dt: datetime) -> Timestamp:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        delta = dt - _EPOCH
        return cls(delta.days * 86400 + delta.seconds, delta.microseconds * 1000)

    def to_datetime(self) -> datetime:
        """Converts to an aware UTC datetime. Sub-microsecond precision is lost."""
        return _EPOCH + timedelta(seconds=self.seconds, microseconds=self.nanos // 1000)

    def add(self, duration: Duration) -> Timestamp:
        return Timestamp(self.seconds, self.nanos + duration.nanos)

    def sub(self, other: Timestamp) -> Duration:
        return Duration(
            (self.seconds - other.seconds) * NANOS_PER_SECOND + self.nanos - other.nanos
        )

    def cmp(self, other: Timestamp) -> int:
        if self.seconds == other.seconds:
            return (self.nanos > other.nanos) - (self.nanos < other.nanos)
        return (self.seconds > other.seconds) - (self.seconds < other.seconds)

    def __str__(self) -> str:
        dt = self.to_datetime()
        return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
