from __future__ import annotations

from datetime import UTC, datetime, timedelta


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(tz=UTC)

    def is_past(self, time: datetime) -> bool:
        return self.now() >= time

    def add_interval(self, seconds: int) -> datetime:
        return self.now() + timedelta(seconds=seconds)
