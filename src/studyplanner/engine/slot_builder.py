"""Build free-time slots from day windows minus blocked time.

Two builders share the interval algebra:
- ``build_free_slots`` (single-plan): half-open date range, trimmed before
  "now", split against preferred class-period windows;
- ``build_plan_slots`` (multi-plan): inclusive date range, untrimmed, untagged.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Iterable, Mapping

from .intervals import apply_preferred_windows, sort_intervals, subtract_all, trim_all_before
from .models import BellScheduleNode, TimeInterval


def _iter_days(start: date, end: date) -> list[date]:
    """Days in ``[start, end)``."""
    days: list[date] = []
    cursor = start
    while cursor < end:
        days.append(cursor)
        cursor += timedelta(days=1)
    return days


def _day_window(day: date, day_start: time, day_end: time) -> TimeInterval | None:
    start = datetime.combine(day, day_start)
    end = datetime.combine(day, day_end)
    if end <= start:
        return None
    return TimeInterval(start, end)


def build_preferred_windows(nodes: Mapping[int, BellScheduleNode], max_node: int = 10) -> list[tuple[time, time]]:
    """Clock windows of bell nodes ``1..max_node`` with a valid span, by node index."""
    windows: list[tuple[time, time]] = []
    for index in sorted(nodes):
        node = nodes[index]
        if index < 1 or index > max_node or not node.is_valid:
            continue
        windows.append((node.start_time, node.end_time))  # type: ignore[arg-type]
    return windows


def build_free_slots(
    *,
    start_date: date,
    end_date: date,
    blocked: Iterable[TimeInterval],
    now: datetime,
    day_start: time,
    day_end: time,
    preferred_windows: Iterable[tuple[time, time]] = (),
) -> list[TimeInterval]:
    blockers = sort_intervals(blocked)
    windows = list(preferred_windows)
    out: list[TimeInterval] = []
    for day in _iter_days(start_date, end_date):
        window = _day_window(day, day_start, day_end)
        if window is None:
            continue
        slots = subtract_all([window], blockers)
        out.extend(trim_all_before(slots, now))
    return apply_preferred_windows(out, windows) if windows else sort_intervals(out)


def build_plan_slots(
    *,
    start_date: date | None,
    end_date: date | None,
    blocked: Iterable[TimeInterval],
    day_start: time,
    day_end: time,
) -> list[TimeInterval]:
    """Free slots for ``[start_date, end_date]`` inclusive; empty when the range is missing or inverted."""
    if start_date is None or end_date is None or end_date < start_date:
        return []
    windows = [
        window
        for window in (_day_window(day, day_start, day_end) for day in _iter_days(start_date, end_date + timedelta(days=1)))
        if window is not None
    ]
    return subtract_all(windows, blocked)
