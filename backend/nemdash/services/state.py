"""Dashboard selection state, date-range windows and response generation tokens."""
import itertools
import logging
from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)

RANGE_HOURS = {"24h": 24, "7d": 168, "30d": 720}
DATE_RANGES = tuple(RANGE_HOURS) + ("custom",)


def to_naive_utc(ts: datetime) -> datetime:
    """Settlement dates are stored without tzinfo, in UTC."""
    if ts.tzinfo is not None:
        return ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def resolve_window(date_range: str = "24h", start: Optional[datetime] = None,
                   end: Optional[datetime] = None, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    if date_range == "custom":
        if start is None or end is None:
            raise ValueError("custom range needs both start and end")
        start, end = to_naive_utc(start), to_naive_utc(end)
        if end < start:
            raise ValueError("end must not be before start")
        return start, end
    if date_range not in RANGE_HOURS:
        raise ValueError(f"Unknown date range {date_range!r}; expected one of {', '.join(DATE_RANGES)}")
    end = to_naive_utc(now) if now is not None else utc_now()
    return end - timedelta(hours=RANGE_HOURS[date_range]), end


def window_hours(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600.0


@dataclass(frozen=True)
class DashboardState:
    selected_generator: Optional[str] = None
    regions: Tuple[str, ...] = ()
    fuel_types: Tuple[str, ...] = ()
    search: str = ""
    date_range: str = "24h"
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    auto_refresh: bool = False


@dataclass(frozen=True)
class StateChange:
    field: str
    old: Any
    new: Any


class DashboardStore:
    """Single owner of dashboard state; subscribers get one StateChange per changed field."""

    def __init__(self, state: Optional[DashboardState] = None):
        self._state = state or DashboardState()
        self._subscribers: List[Callable[[StateChange, DashboardState], None]] = []

    @property
    def state(self) -> DashboardState:
        return self._state

    def subscribe(self, callback: Callable[[StateChange, DashboardState], None]) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe():
            if callback in self._subscribers:
                self._subscribers.remove(callback)
        return unsubscribe

    def update(self, **changes) -> List[StateChange]:
        known = {f.name for f in fields(DashboardState)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown state fields: {', '.join(sorted(unknown))}")
        for key in ("regions", "fuel_types"):
            if key in changes:
                changes[key] = tuple(sorted(set(changes[key] or ())))
        if changes.get("date_range") is not None and changes["date_range"] not in DATE_RANGES:
            raise ValueError(f"Unknown date range {changes['date_range']!r}")
        old = self._state
        new = replace(old, **changes)
        events = [StateChange(k, getattr(old, k), getattr(new, k))
                  for k in changes if getattr(old, k) != getattr(new, k)]
        self._state = new
        for event in events:
            for callback in list(self._subscribers):
                callback(event, new)
        return events

    def window(self, now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
        s = self._state
        return resolve_window(s.date_range, s.start, s.end, now=now)


@dataclass
class RequestSequencer:
    """Hands out increasing tokens; only the latest token's response should be applied."""
    _counter: Any = field(default_factory=lambda: itertools.count(1))
    latest: int = 0

    def issue(self) -> int:
        self.latest = next(self._counter)
        return self.latest

    def is_current(self, token: int) -> bool:
        return token == self.latest

    def accept(self, token: int, apply: Callable[[], Any]) -> bool:
        if not self.is_current(token):
            logger.debug(f"Discarding stale response {token} (latest {self.latest})")
            return False
        apply()
        return True
