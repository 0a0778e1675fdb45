from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Default wall-clock implementation."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def to_iso(ts: datetime) -> str:
    """Millisecond UTC form (``2024-01-01T00:00:00.000Z``), sorts lexically with remote timestamps."""
    ts = ts.astimezone(timezone.utc)
    return ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}Z"


def now_iso(clock: Clock | None = None) -> str:
    return to_iso((clock or SystemClock()).now())
