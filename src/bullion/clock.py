"""Reference clock for price dates.

Prices are filed against calendar days in a single fixed timezone (IST by
default), regardless of where the process runs. The clock is passed into the
reconciler so tests can pin "now".
"""

from collections.abc import Callable
from datetime import date, datetime, timedelta, timezone


class ReferenceClock:
    """Clock pinned to a fixed UTC offset.

    Args:
        utc_offset_minutes: Offset of the reference timezone from UTC.
        now_fn: Source of the current UTC instant. Defaults to the system clock.
    """

    def __init__(
        self,
        utc_offset_minutes: int = 330,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self._tz = timezone(timedelta(minutes=utc_offset_minutes))
        self._now_fn = now_fn or (lambda: datetime.now(timezone.utc))

    @property
    def tz(self) -> timezone:
        return self._tz

    def now(self) -> datetime:
        """Current instant, expressed in the reference timezone."""
        return self._now_fn().astimezone(self._tz)

    def today(self) -> date:
        """Current calendar day in the reference timezone."""
        return self.now().date()


class FixedClock(ReferenceClock):
    """Clock frozen at a given instant. Used by tests and replays."""

    def __init__(self, instant: datetime, utc_offset_minutes: int = 330) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone(timedelta(minutes=utc_offset_minutes)))
        self.instant = instant
        super().__init__(utc_offset_minutes, now_fn=lambda: self.instant)

    def advance(self, **kwargs: float) -> None:
        """Move the frozen instant forward by a timedelta(**kwargs)."""
        self.instant = self.instant + timedelta(**kwargs)
