"""Value types shared by the scheduling engine."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, time
from enum import Enum
from typing import Any

_WEEKDAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

TASK_TYPE_FOCUS = "FOCUS"
TASK_TYPE_LIGHT = "LIGHT"


@dataclass(frozen=True, slots=True)
class TimeInterval:
    """Half-open span ``[start, end)`` of naive local date-times."""

    start: datetime
    end: datetime
    preferred: bool = False

    def __post_init__(self) -> None:
        if not self.start < self.end:
            raise ValueError(f"interval start must precede end: {self.start} >= {self.end}")

    def duration_minutes(self) -> int:
        return int((self.end - self.start).total_seconds() // 60)

    def overlaps(self, other: TimeInterval) -> bool:
        return self.start < other.end and other.start < self.end

    def contains(self, other: TimeInterval) -> bool:
        return self.start <= other.start and other.end <= self.end

    def trim_before(self, cutoff: datetime) -> TimeInterval | None:
        """Drop the part before ``cutoff``; ``None`` when nothing remains."""
        if self.end <= cutoff:
            return None
        if self.start < cutoff:
            return replace(self, start=cutoff)
        return self


class Parity(int, Enum):
    """Week-parity constraint of a course rule (wire values 0/1/2)."""

    NONE = 0
    ODD = 1
    EVEN = 2

    @classmethod
    def from_raw(cls, raw: Any) -> Parity:
        if isinstance(raw, Parity):
            return raw
        try:
            return cls(int(raw))
        except (TypeError, ValueError):
            return cls.NONE


@dataclass(frozen=True, slots=True)
class BellScheduleNode:
    """One numbered class period of the day."""

    node: int
    start_time: time | None
    end_time: time | None

    @property
    def is_valid(self) -> bool:
        return self.start_time is not None and self.end_time is not None and self.start_time < self.end_time


@dataclass(frozen=True, slots=True)
class CourseRule:
    """Recurring weekly class meeting."""

    course_ref: str
    day_of_week: int
    start_week: int
    end_week: int
    parity: Parity
    start_node: int
    step: int = 1
    room: str = ""
    teacher: str = ""

    @property
    def end_node(self) -> int:
        return self.start_node + self.step - 1


@dataclass(frozen=True, slots=True)
class CourseOccurrence:
    """A concrete dated class meeting."""

    title: str
    details: str
    interval: TimeInterval


@dataclass(frozen=True, slots=True)
class Task:
    """A unit of work to place (or already placed when ``fixed_at`` is set)."""

    id: str
    title: str
    estimated_minutes: int
    due_at: datetime | None = None
    priority: str | None = None
    type: str | None = None
    course_ref: str | None = None
    fixed_at: datetime | None = None
    importance: int | None = None

    @property
    def is_focus(self) -> bool:
        return (self.type or TASK_TYPE_FOCUS).strip().upper() == TASK_TYPE_FOCUS


class ItemKind(str, Enum):
    COURSE = "COURSE"
    TASK = "TASK"


@dataclass(frozen=True, slots=True)
class ScheduledItem:
    """An entry of the output calendar."""

    id: str
    kind: ItemKind
    title: str
    interval: TimeInterval
    details: str = ""
    due_at: datetime | None = None
    priority: str | None = None
    estimated_minutes: int = 0
    task_id: str | None = None

    @property
    def start(self) -> datetime:
        return self.interval.start

    @property
    def end(self) -> datetime:
        return self.interval.end

    @property
    def minutes(self) -> int:
        return self.interval.duration_minutes()

    def to_dict(self) -> dict[str, Any]:
        start = self.interval.start
        end = self.interval.end
        return {
            "id": self.id,
            "kind": self.kind.value,
            "task_id": self.task_id or "",
            "title": self.title,
            "details": self.details,
            "day": _WEEKDAY_NAMES[start.weekday()],
            "date": start.date().isoformat(),
            "start_time": start.strftime("%H:%M"),
            "end_time": end.strftime("%H:%M"),
            "start_date_time": start.isoformat(timespec="minutes"),
            "end_date_time": end.isoformat(timespec="minutes"),
            "due_date_time": self.due_at.isoformat(timespec="minutes") if self.due_at else "",
            "priority": self.priority or "",
            "estimated_minutes": self.estimated_minutes,
            "minutes": self.minutes,
        }
