"""Daily task-load accounting and per-date capacity limits."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, Mapping

from .models import TimeInterval
from .settings import SchedulerSettings


def summarize_minutes_by_date(intervals: Iterable[TimeInterval]) -> dict[date, int]:
    """Total minutes per start date."""
    totals: dict[date, int] = defaultdict(int)
    for interval in intervals:
        totals[interval.start.date()] += interval.duration_minutes()
    return dict(totals)


@dataclass(frozen=True, slots=True)
class DailyLimits:
    """Task-minute cap per date, shrinking as class time grows.

    ``limit = base - course minutes``; weekends get ``weekend_bonus``, weekdays
    with at most ``light_day_course_threshold`` class minutes get
    ``light_day_bonus``; never below ``min_daily_task_limit``.
    """

    course_minutes_by_date: Mapping[date, int]
    settings: SchedulerSettings = field(default_factory=SchedulerSettings)

    def limit_for(self, day: date) -> int:
        # Fixed-task minutes are seeded into DailyLoad, so they are not subtracted here too.
        course_minutes = int(self.course_minutes_by_date.get(day, 0))
        limit = self.settings.daily_task_limit_minutes - course_minutes
        if day.isoweekday() >= 6:
            limit += self.settings.weekend_bonus_minutes
        elif course_minutes <= self.settings.light_day_course_threshold_minutes:
            limit += self.settings.light_day_bonus_minutes
        return max(self.settings.min_daily_task_limit_minutes, limit)


@dataclass(slots=True)
class DailyLoad:
    """Committed task minutes per date; mutable, one instance per allocation run."""

    minutes_by_date: dict[date, int] = field(default_factory=dict)

    @classmethod
    def seeded(cls, intervals: Iterable[TimeInterval]) -> DailyLoad:
        return cls(summarize_minutes_by_date(intervals))

    def used(self, day: date) -> int:
        return self.minutes_by_date.get(day, 0)

    def add(self, day: date, minutes: int) -> None:
        self.minutes_by_date[day] = self.minutes_by_date.get(day, 0) + minutes

    def remaining(self, day: date, limits: DailyLimits) -> int:
        return max(0, limits.limit_for(day) - self.used(day))

    def copy(self) -> DailyLoad:
        return DailyLoad(dict(self.minutes_by_date))

    def as_dict(self) -> dict[str, int]:
        return {day.isoformat(): minutes for day, minutes in sorted(self.minutes_by_date.items())}
