from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, List, Optional

from .errors import InvalidInput


class Window(str, Enum):
    ALL = 'all'
    TODAY = 'today'
    WEEK = 'week'

    @classmethod
    def parse(cls, value) -> 'Window':
        if isinstance(value, cls):
            return value
        raw = (str(value) if value is not None else '').strip().lower().replace('_', '')
        if not raw:
            return cls.ALL
        if raw in ('week', 'thisweek'):
            return cls.WEEK
        try:
            return cls(raw)
        except ValueError:
            raise InvalidInput(f"Unknown leaderboard window: {value!r}") from None


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are UTC (what the score store hands back)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def window_start(window: Window, now: datetime) -> Optional[datetime]:
    if window == Window.TODAY:
        local_now = as_utc(now).astimezone()
        return local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    if window == Window.WEEK:
        return as_utc(now) - timedelta(days=7)
    return None


def rank_key(entry):
    return (-entry.score, -entry.time_remaining, as_utc(entry.created_at))


def rank(entries: Iterable, window=Window.ALL, now: Optional[datetime] = None) -> List:
    """Filter ``entries`` to ``window`` and order them best first.

    Order: score desc, time_remaining desc, created_at asc. Entries only
    need ``score``, ``time_remaining`` and ``created_at`` attributes.
    """
    window = Window.parse(window)
    now = now or datetime.now(timezone.utc)
    start = window_start(window, now)
    kept = [e for e in entries if start is None or as_utc(e.created_at) >= start]
    return sorted(kept, key=rank_key)
