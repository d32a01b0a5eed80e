"""Deterministic slot allocation.

Per task, in the order given:
1) whole fit: the best-scoring free slot that holds the full duration before
   the cutoff (and within the day's remaining capacity unless relaxed);
2) split fallback (when enabled): spread the duration over up to
   ``max_split_segments`` slots taken in score order;
3) otherwise the task stays pending.

Committing a placement shrinks the slot list (buffer padding included) and
adds the minutes to the daily load. Split is all-or-nothing: either the
segments cover the whole duration or nothing is committed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Collection, Iterable

from studyplanner.reporting.decision_trace import DecisionTraceCollector

from .intervals import consume, sort_intervals
from .models import ItemKind, ScheduledItem, Task, TimeInterval
from .scoring import ScoringContext, SlotScorer, is_better, preferred_due_for
from .workload import DailyLimits, DailyLoad

logger = logging.getLogger(__name__)

RULE_WHOLE_FIT = "RULE_WHOLE_FIT"
RULE_SPLIT = "RULE_SPLIT"
RULE_RELAXED_DAILY_LIMIT = "RULE_RELAXED_DAILY_LIMIT"
RULE_UNPLACED = "RULE_UNPLACED"


@dataclass(frozen=True, slots=True)
class AllocationPolicy:
    """How one allocation run places tasks.

    ``limits`` feeds the remaining-capacity figure the scorer sees;
    ``enforce_daily_limit`` decides whether it also rejects slots. ``trace_rule`` is
    appended to the applied rules of every trace record.
    """

    scorer: SlotScorer
    limits: DailyLimits | None = None
    enforce_daily_limit: bool = False
    allow_split: bool = False
    buffer_minutes: int = 0
    min_split_minutes: int = 45
    fallback_deadline: datetime | None = None
    preferred_due_offset_hours: int | None = None
    trace_rule: str | None = None


@dataclass(frozen=True, slots=True)
class SlotCandidate:
    slot: TimeInterval
    start: datetime
    minutes: int
    score: float

    @property
    def end(self) -> datetime:
        return self.start + timedelta(minutes=self.minutes)


@dataclass(slots=True)
class Placement:
    task: Task
    segments: list[TimeInterval]
    rule: str
    relaxed: bool = False


@dataclass(slots=True)
class AllocationRun:
    items: list[ScheduledItem]
    placed: list[Task]
    pending: list[Task]
    slots: list[TimeInterval]
    daily_load: DailyLoad
    placements: list[Placement] = field(default_factory=list)


def max_split_segments(minutes: int) -> int:
    if minutes <= 180:
        return 2
    if minutes <= 300:
        return 3
    return 4


def task_cutoff(task: Task, policy: AllocationPolicy) -> datetime | None:
    return task.due_at if task.due_at is not None else policy.fallback_deadline


def format_task_details(task: Task) -> str:
    parts: list[str] = []
    if task.priority and task.priority.strip():
        parts.append(f"Priority:{task.priority.strip()}")
    if task.course_ref and task.course_ref.strip():
        parts.append(f"Course:{task.course_ref.strip()}")
    if task.type and task.type.strip():
        parts.append(f"Type:{task.type.strip()}")
    return " · ".join(parts)


def task_item(task: Task, interval: TimeInterval, *, item_id: str | None = None, suffix: str = "") -> ScheduledItem:
    return ScheduledItem(
        id=item_id or task.id,
        kind=ItemKind.TASK,
        title=f"{task.title}{suffix}",
        interval=TimeInterval(interval.start, interval.end),
        details=format_task_details(task),
        due_at=task.due_at,
        priority=task.priority,
        estimated_minutes=task.estimated_minutes,
        task_id=task.id,
    )


def segment_items(task: Task, segments: list[TimeInterval]) -> list[ScheduledItem]:
    """Items for a split placement; ids and titles are numbered only when there are several."""
    if len(segments) == 1:
        return [task_item(task, segments[0])]
    count = len(segments)
    return [
        task_item(task, segment, item_id=f"{task.id}#{index}", suffix=f" ({index}/{count})")
        for index, segment in enumerate(segments, start=1)
    ]


def _slot_label(slot: TimeInterval) -> str:
    return f"{slot.start.isoformat(timespec='minutes')}/{slot.end.isoformat(timespec='minutes')}"


def _remaining_capacity(day_load: DailyLoad, policy: AllocationPolicy, slot: TimeInterval) -> int:
    if policy.limits is None:
        return 0
    return day_load.remaining(slot.start.date(), policy.limits)


def _capacity_cap(day_load: DailyLoad, policy: AllocationPolicy, slot: TimeInterval, relaxed: bool) -> int | None:
    """Minutes still allowed on the slot's date, ``None`` when unlimited."""
    if relaxed or not policy.enforce_daily_limit or policy.limits is None:
        return None
    return day_load.remaining(slot.start.date(), policy.limits)


def _score(
    task: Task,
    slot: TimeInterval,
    minutes: int,
    cutoff: datetime | None,
    day_load: DailyLoad,
    policy: AllocationPolicy,
) -> float:
    start = slot.start
    end = start + timedelta(minutes=minutes)
    preferred_due = None
    if cutoff is not None and policy.preferred_due_offset_hours is not None:
        preferred_due = preferred_due_for(cutoff, policy.preferred_due_offset_hours)
    ctx = ScoringContext(
        task=task,
        slot=slot,
        start=start,
        end=end,
        cutoff=cutoff,
        preferred_due=preferred_due,
        day_load_minutes=day_load.used(start.date()),
        remaining_capacity=_remaining_capacity(day_load, policy, slot),
    )
    return policy.scorer.score(ctx)


def whole_fit_candidates(
    task: Task,
    slots: Iterable[TimeInterval],
    day_load: DailyLoad,
    policy: AllocationPolicy,
    *,
    relaxed: bool = False,
) -> list[SlotCandidate]:
    """Score every slot that can hold the whole task, in ascending slot order."""
    minutes = task.estimated_minutes
    cutoff = task_cutoff(task, policy)
    out: list[SlotCandidate] = []
    for slot in slots:
        if slot.duration_minutes() < minutes:
            continue
        end = slot.start + timedelta(minutes=minutes)
        if cutoff is not None and end > cutoff:
            continue
        cap = _capacity_cap(day_load, policy, slot, relaxed)
        if cap is not None and cap < minutes:
            continue
        score = _score(task, slot, minutes, cutoff, day_load, policy)
        out.append(SlotCandidate(slot=slot, start=slot.start, minutes=minutes, score=score))
    return out


def select_best(candidates: Iterable[SlotCandidate], tolerance: float) -> SlotCandidate | None:
    best: SlotCandidate | None = None
    for candidate in candidates:
        if best is None or is_better(candidate.score, candidate.start, best.score, best.start, tolerance):
            best = candidate
    return best


def find_whole_slot(
    task: Task,
    slots: Iterable[TimeInterval],
    day_load: DailyLoad,
    policy: AllocationPolicy,
    *,
    relaxed: bool = False,
) -> SlotCandidate | None:
    candidates = whole_fit_candidates(task, slots, day_load, policy, relaxed=relaxed)
    return select_best(candidates, policy.scorer.tie_tolerance)


def _usable_minutes(slot: TimeInterval, cutoff: datetime | None) -> int:
    usable_end = slot.end if cutoff is None else min(slot.end, cutoff)
    if usable_end <= slot.start:
        return 0
    return int((usable_end - slot.start).total_seconds() // 60)


def segment_minutes(remaining: int, usable: int, cap: int | None, min_split: int) -> int:
    """Size of the next split segment for a slot, 0 when the slot is unusable.

    A cut that would leave an under-minimum tail is trimmed so the tail keeps
    ``min_split``; when that trim would in turn strand an under-minimum sliver
    in the slot, the cut is widened back and the short tail is accepted as the
    last piece.
    """
    alloc = min(remaining, usable)
    if cap is not None:
        alloc = min(alloc, cap)
    untrimmed = alloc
    if alloc < remaining and remaining - alloc < min_split and remaining >= 2 * min_split:
        alloc = remaining - min_split
        if 0 < usable - alloc < min_split:
            alloc = untrimmed
    if alloc < min_split and remaining > min_split:
        return 0
    return max(0, alloc)


@dataclass(slots=True)
class SplitResult:
    segments: list[TimeInterval]
    slots: list[TimeInterval]
    daily_load: DailyLoad
    candidates: list[SlotCandidate]


def allocate_split(
    task: Task,
    slots: list[TimeInterval],
    day_load: DailyLoad,
    policy: AllocationPolicy,
    *,
    relaxed: bool = False,
) -> SplitResult | None:
    """Spread ``task`` over several slots, or return ``None`` without side effects."""
    cutoff = task_cutoff(task, policy)
    min_split = policy.min_split_minutes
    remaining = task.estimated_minutes
    temp_slots = list(slots)
    temp_load = day_load.copy()

    candidates: list[SlotCandidate] = []
    for slot in temp_slots:
        usable = _usable_minutes(slot, cutoff)
        cap = _capacity_cap(temp_load, policy, slot, relaxed)
        minutes = segment_minutes(remaining, usable, cap, min_split)
        if minutes <= 0:
            continue
        score = _score(task, slot, minutes, cutoff, temp_load, policy)
        candidates.append(SlotCandidate(slot=slot, start=slot.start, minutes=minutes, score=score))

    candidates.sort(key=lambda c: (-c.score, c.start))
    max_segments = max_split_segments(task.estimated_minutes)
    segments: list[TimeInterval] = []
    for candidate in candidates:
        if remaining <= 0 or len(segments) >= max_segments:
            break
        slot = candidate.slot
        if slot not in temp_slots:
            continue
        cap = _capacity_cap(temp_load, policy, slot, relaxed)
        minutes = segment_minutes(remaining, _usable_minutes(slot, cutoff), cap, min_split)
        if minutes <= 0:
            continue
        if len(segments) == max_segments - 1 and minutes < remaining:
            continue
        allocation = TimeInterval(slot.start, slot.start + timedelta(minutes=minutes))
        segments.append(allocation)
        temp_slots = consume(temp_slots, slot, allocation, policy.buffer_minutes)
        temp_load.add(allocation.start.date(), minutes)
        remaining -= minutes

    if remaining > 0 or not segments:
        return None
    return SplitResult(
        segments=sort_intervals(segments),
        slots=temp_slots,
        daily_load=temp_load,
        candidates=candidates,
    )


def allocate_tasks(
    tasks: Iterable[Task],
    slots: Iterable[TimeInterval],
    policy: AllocationPolicy,
    *,
    relaxed_ids: Collection[str] = (),
    fixed_items: Iterable[ScheduledItem] = (),
    decision_trace: DecisionTraceCollector | None = None,
) -> AllocationRun:
    """Place ``tasks`` in order into a private copy of ``slots``.

    The daily load starts from the fixed items; tasks whose id is in
    ``relaxed_ids`` ignore daily capacity but never their cutoff.
    """
    fixed = list(fixed_items)
    work_slots = sort_intervals(slots)
    day_load = DailyLoad.seeded(item.interval for item in fixed)
    run = AllocationRun(items=list(fixed), placed=[], pending=[], slots=work_slots, daily_load=day_load)
    relaxed_set = set(relaxed_ids)

    for task in tasks:
        relaxed = task.id in relaxed_set
        rules = [RULE_RELAXED_DAILY_LIMIT] if relaxed else []
        if policy.trace_rule:
            rules.append(policy.trace_rule)

        whole = whole_fit_candidates(task, run.slots, run.daily_load, policy, relaxed=relaxed)
        best = select_best(whole, policy.scorer.tie_tolerance)
        if best is not None:
            allocation = TimeInterval(best.start, best.end)
            run.slots = consume(run.slots, best.slot, allocation, policy.buffer_minutes)
            run.daily_load.add(allocation.start.date(), best.minutes)
            run.items.append(task_item(task, allocation))
            run.placed.append(task)
            run.placements.append(Placement(task=task, segments=[allocation], rule=RULE_WHOLE_FIT, relaxed=relaxed))
            logger.debug("Placed %s whole at %s (score %.3f)", task.id, allocation.start, best.score)
            _record(decision_trace, task, whole, [allocation], [RULE_WHOLE_FIT, *rules], "whole slot")
            continue

        split = allocate_split(task, run.slots, run.daily_load, policy, relaxed=relaxed) if policy.allow_split else None
        if split is not None:
            run.slots = split.slots
            run.daily_load = split.daily_load
            count = len(split.segments)
            run.items.extend(segment_items(task, split.segments))
            run.placed.append(task)
            run.placements.append(Placement(task=task, segments=split.segments, rule=RULE_SPLIT, relaxed=relaxed))
            logger.debug("Placed %s in %d segments", task.id, count)
            _record(decision_trace, task, split.candidates, split.segments, [RULE_SPLIT, *rules], f"split into {count}")
            continue

        run.pending.append(task)
        logger.debug("No placement for %s (%d min, cutoff %s)", task.id, task.estimated_minutes, task_cutoff(task, policy))
        _record(decision_trace, task, whole, [], [RULE_UNPLACED, *rules], "no slot before cutoff")

    return run


def _record(
    decision_trace: DecisionTraceCollector | None,
    task: Task,
    candidates: list[SlotCandidate],
    selected: list[TimeInterval],
    applied_rules: list[str],
    note: str,
) -> None:
    if decision_trace is None:
        return
    scores = {_slot_label(c.slot): c.score for c in candidates}
    decision_trace.record(
        task_id=task.id,
        candidate_slots=list(scores),
        scores_by_slot=scores,
        selected_slots=[_slot_label(segment) for segment in selected],
        applied_rules=applied_rules,
        tradeoff_note=note,
    )
