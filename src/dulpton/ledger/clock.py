"""Time source for accrual math.

Every reward is computed lazily from ``now - last_event``; nothing runs on a
schedule. Stored timestamps may come back naive from SQLite, so all reads go
through ``ensure_utc`` before any arithmetic.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def ensure_utc(dt: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class Clock:
    """Wall clock (UTC)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Manually driven clock for tests and replays."""

    def __init__(self, start: datetime) -> None:
        self._now = ensure_utc(start)

    def now(self) -> datetime:
        return self._now  # type: ignore[return-value]

    def set(self, when: datetime) -> None:
        self._now = ensure_utc(when)

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """Move forward by ``delta`` or by timedelta keyword arguments."""
        step = delta if delta is not None else timedelta(**kwargs)
        self._now = self._now + step  # type: ignore[operator]
        return self._now  # type: ignore[return-value]
