from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Protocol


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO date or datetime string into naive server-local time.

    A bare date means midnight. Values with ``Z`` or an offset are converted
    to local time, matching how timestamps are stored.
    """
    value = value.strip()
    if len(value) == 10:
        return datetime.combine(parse_iso_date(value), datetime.min.time())
    if value.endswith(("Z", "z")):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


def now_local() -> datetime:
    """Current local time.

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now()


class Clock(Protocol):
    def now(self) -> datetime:
        raise NotImplementedError

    def today(self) -> date:
        raise NotImplementedError


class SystemClock:
    """Server clock. Source of "today" for the attendance day window."""

    def now(self) -> datetime:
        return now_local()

    def today(self) -> date:
        return now_local().date()


@dataclass
class FixedClock:
    """Clock pinned to a given instant (scripts and tests)."""

    instant: datetime

    def now(self) -> datetime:
        return self.instant

    def today(self) -> date:
        return self.instant.date()

