"""Slot scoring strategies.

Two strategies share one interface so the allocator does not care which one it
runs with:

- ``BonusSlotScorer`` adds integer bonuses (preferred window, finishing well
  before the deadline, closeness to the cutoff, spare daily capacity, daytime)
  and is used by the single-plan scheduler;
- ``WeightedSlotScorer`` mixes three normalized features with per-plan weights
  and is used by the multi-plan builder.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, time, timedelta
from typing import Protocol

from .models import Task, TimeInterval
from .settings import SchedulerSettings

EVENING_START = time(18, 0)

DEFAULT_PLAN_WEIGHTS: dict[str, float] = {
    "w_type": 0.4,
    "w_deadline": 0.4,
    "w_balance": 0.2,
}

PLAN_WEIGHT_PRESETS: dict[str, dict[str, float]] = {
    "URGENT": {"w_type": 0.2, "w_deadline": 0.6, "w_balance": 0.2},
    "RELAXED": {"w_type": 0.5, "w_deadline": 0.2, "w_balance": 0.3},
    "BALANCED": dict(DEFAULT_PLAN_WEIGHTS),
}


@dataclass(frozen=True, slots=True)
class ScoringContext:
    """Everything a scorer may look at for one candidate placement."""

    task: Task
    slot: TimeInterval
    start: datetime
    end: datetime
    cutoff: datetime | None
    preferred_due: datetime | None
    day_load_minutes: int
    remaining_capacity: int


class SlotScorer(Protocol):
    name: str
    tie_tolerance: float

    def score(self, ctx: ScoringContext) -> float:
        ...


def preferred_due_for(due: datetime, offset_hours: int) -> datetime:
    """Soft target ahead of the hard deadline, never later than it."""
    preferred = due - timedelta(hours=offset_hours)
    return due if preferred > due else preferred


@dataclass(frozen=True, slots=True)
class BonusSlotScorer:
    settings: SchedulerSettings = field(default_factory=SchedulerSettings)
    name: str = "bonus"
    tie_tolerance: float = 0.0

    def score(self, ctx: ScoringContext) -> float:
        s = self.settings
        score = 0
        if ctx.slot.preferred:
            score += s.preferred_slot_bonus
        if ctx.preferred_due is not None and ctx.end <= ctx.preferred_due:
            score += s.preferred_due_bonus
        if ctx.cutoff is not None and ctx.end <= ctx.cutoff:
            minutes_to_cutoff = int((ctx.cutoff - ctx.end).total_seconds() // 60)
            score += max(0, s.cutoff_closeness_bonus - minutes_to_cutoff)
        score += ctx.remaining_capacity // max(1, s.capacity_score_divisor)
        start_clock = ctx.slot.start.time()
        if (
            ctx.remaining_capacity >= s.daytime_capacity_threshold_minutes
            and s.daytime_start <= start_clock < s.daytime_end
        ):
            score += s.daytime_bonus
        return float(score)


def type_match_score(task: Task, start: datetime) -> float:
    daytime = start.time() < EVENING_START
    if task.is_focus:
        return 1.0 if daytime else 0.5
    return 0.7 if daytime else 1.0


def deadline_urgency_score(task: Task, start: datetime) -> float:
    if task.due_at is None:
        return 0.2
    days = max(0, (task.due_at.date() - start.date()).days)
    return 1.0 / (1 + days)


def balance_score(day_load_minutes: int) -> float:
    return 1.0 / (1.0 + day_load_minutes / 60.0)


@dataclass(frozen=True, slots=True)
class WeightedSlotScorer:
    weights: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_PLAN_WEIGHTS))
    name: str = "weighted"
    tie_tolerance: float = 1e-3

    def features(self, ctx: ScoringContext) -> dict[str, float]:
        return {
            "type_match": type_match_score(ctx.task, ctx.start),
            "deadline_urgency": deadline_urgency_score(ctx.task, ctx.start),
            "balance": balance_score(ctx.day_load_minutes),
        }

    def score(self, ctx: ScoringContext) -> float:
        f = self.features(ctx)
        w = self.weights
        return (
            float(w.get("w_type", 0.0)) * f["type_match"]
            + float(w.get("w_deadline", 0.0)) * f["deadline_urgency"]
            + float(w.get("w_balance", 0.0)) * f["balance"]
        )


def is_better(score: float, start: datetime, best_score: float | None, best_start: datetime | None, tolerance: float) -> bool:
    """Higher score wins; scores within ``tolerance`` go to the earlier start."""
    if best_score is None or best_start is None:
        return True
    if abs(score - best_score) <= tolerance:
        return start < best_start
    return score > best_score
