"""Interval algebra over free-slot lists.

Every function returns a new list sorted by ``(start, end)``; inputs are never
mutated. Slots in one list never overlap, and subtraction keeps it that way.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Iterable

from .models import TimeInterval


def sort_intervals(slots: Iterable[TimeInterval]) -> list[TimeInterval]:
    return sorted(slots, key=lambda slot: (slot.start, slot.end))


def subtract(slots: Iterable[TimeInterval], blocker: TimeInterval) -> list[TimeInterval]:
    """Remove ``blocker`` from every slot, keeping each remainder's preferred tag."""
    out: list[TimeInterval] = []
    for slot in slots:
        if not slot.overlaps(blocker):
            out.append(slot)
            continue
        if slot.start < blocker.start:
            out.append(replace(slot, end=blocker.start))
        if blocker.end < slot.end:
            out.append(replace(slot, start=blocker.end))
    return sort_intervals(out)


def subtract_all(slots: Iterable[TimeInterval], blockers: Iterable[TimeInterval]) -> list[TimeInterval]:
    out = sort_intervals(slots)
    for blocker in blockers:
        out = subtract(out, blocker)
    return out


def trim_all_before(slots: Iterable[TimeInterval], cutoff: datetime) -> list[TimeInterval]:
    out: list[TimeInterval] = []
    for slot in slots:
        trimmed = slot.trim_before(cutoff)
        if trimmed is not None:
            out.append(trimmed)
    return sort_intervals(out)


def _windows_on_dates(first: date, last: date, window_start: time, window_end: time) -> list[TimeInterval]:
    windows: list[TimeInterval] = []
    current = first
    while current <= last:
        start = datetime.combine(current, window_start)
        end = datetime.combine(current, window_end)
        if start < end:
            windows.append(TimeInterval(start, end))
        current += timedelta(days=1)
    return windows


def split_by_preferred_window(slot: TimeInterval, window_start: time, window_end: time) -> list[TimeInterval]:
    """Tag the part of ``slot`` inside the daily clock window as preferred.

    A slot that is already preferred comes back unchanged, so applying the same
    window twice is a no-op.
    """
    if slot.preferred:
        return [slot]

    pieces = [slot]
    for window in _windows_on_dates(slot.start.date(), slot.end.date(), window_start, window_end):
        next_pieces: list[TimeInterval] = []
        for piece in pieces:
            if piece.preferred or not piece.overlaps(window):
                next_pieces.append(piece)
                continue
            inner_start = max(piece.start, window.start)
            inner_end = min(piece.end, window.end)
            if piece.start < inner_start:
                next_pieces.append(replace(piece, end=inner_start))
            next_pieces.append(TimeInterval(inner_start, inner_end, preferred=True))
            if inner_end < piece.end:
                next_pieces.append(replace(piece, start=inner_end))
        pieces = next_pieces
    return sort_intervals(pieces)


def apply_preferred_windows(
    slots: Iterable[TimeInterval],
    windows: Iterable[tuple[time, time]],
) -> list[TimeInterval]:
    out = list(slots)
    for window_start, window_end in windows:
        next_out: list[TimeInterval] = []
        for slot in out:
            next_out.extend(split_by_preferred_window(slot, window_start, window_end))
        out = next_out
    return sort_intervals(out)


def consume(
    slots: Iterable[TimeInterval],
    slot: TimeInterval,
    allocation: TimeInterval,
    buffer_minutes: int = 0,
) -> list[TimeInterval]:
    """Replace ``slot`` by what is left around ``allocation`` plus its buffer.

    The buffer is clamped to the slot bounds so consumption never reaches into
    neighbouring slots.
    """
    pad = timedelta(minutes=max(0, buffer_minutes))
    blocked_start = max(slot.start, allocation.start - pad)
    blocked_end = min(slot.end, allocation.end + pad)

    out: list[TimeInterval] = []
    removed = False
    for candidate in slots:
        if not removed and candidate == slot:
            removed = True
            continue
        out.append(candidate)

    if slot.start < blocked_start:
        out.append(replace(slot, end=blocked_start))
    if blocked_end < slot.end:
        out.append(replace(slot, start=blocked_end))
    return sort_intervals(out)


def total_minutes(slots: Iterable[TimeInterval]) -> int:
    return sum(slot.duration_minutes() for slot in slots)
