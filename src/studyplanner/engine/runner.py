"""Scheduling entry points: single-plan scheduler and multi-plan builder."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import Any

from studyplanner.reporting.decision_trace import DecisionTraceCollector
from studyplanner.reporting.warnings import build_plan_warnings, build_schedule_warnings

from .allocator import AllocationPolicy, RULE_SPLIT, task_item
from .models import BellScheduleNode, CourseRule, ItemKind, ScheduledItem, Task, TimeInterval
from .ordering import TaskOrder, order_tasks
from .plans import SchedulingPreference, build_plans
from .recurrence import expand_course_rules
from .relaxation import schedule_with_relaxation
from .scoring import BonusSlotScorer
from .settings import SchedulerSettings
from .slot_builder import build_free_slots, build_plan_slots, build_preferred_windows
from .workload import DailyLimits, summarize_minutes_by_date

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ScheduleRequest:
    now: datetime
    tasks: list[Task] = field(default_factory=list)
    rules: list[CourseRule] = field(default_factory=list)
    nodes: dict[int, BellScheduleNode] = field(default_factory=dict)
    course_names: dict[str, str] = field(default_factory=dict)
    semester_start: date | None = None
    start_date: date | None = None
    end_date: date | None = None


@dataclass(slots=True)
class PlanRequest:
    tasks: list[Task] = field(default_factory=list)
    blocked: list[TimeInterval] = field(default_factory=list)
    start_date: date | None = None
    end_date: date | None = None
    preference: SchedulingPreference = field(default_factory=SchedulingPreference)


@dataclass(slots=True)
class ScheduleContext:
    now: datetime
    start_date: date
    end_date: date
    courses: list[ScheduledItem]
    fixed_items: list[ScheduledItem]
    pending: list[Task]
    limits: DailyLimits
    free_slots: list[TimeInterval]
    fallback_deadline: datetime


def compute_horizon(request: ScheduleRequest, settings: SchedulerSettings) -> tuple[date, date]:
    """``[start, end)`` of days to schedule.

    An explicit range wins. With no tasks it covers the default horizon;
    otherwise it runs through the later of the default horizon and the
    latest deadline, inclusive.
    """
    if request.start_date is not None and request.end_date is not None:
        return request.start_date, request.end_date
    start = request.now.date()
    last = start + timedelta(days=max(1, settings.horizon_days))
    if not request.tasks:
        return start, last
    for task in request.tasks:
        if task.due_at is not None:
            last = max(last, task.due_at.date())
    return start, last + timedelta(days=1)


def course_item(title: str, details: str, interval: TimeInterval) -> ScheduledItem:
    return ScheduledItem(
        id=f"COURSE-{interval.start.date().isoformat()}-{title}",
        kind=ItemKind.COURSE,
        title=title,
        interval=TimeInterval(interval.start, interval.end),
        details=details,
        estimated_minutes=interval.duration_minutes(),
    )


def build_schedule_context(request: ScheduleRequest, settings: SchedulerSettings) -> ScheduleContext:
    start_date, end_date = compute_horizon(request, settings)

    occurrences = expand_course_rules(
        rules=request.rules,
        nodes=request.nodes,
        course_names=request.course_names,
        start_date=start_date,
        end_date=end_date,
        semester_start=request.semester_start,
    )
    courses = [course_item(occ.title, occ.details, occ.interval) for occ in occurrences]

    fixed_items: list[ScheduledItem] = []
    pending: list[Task] = []
    for task in request.tasks:
        if task.fixed_at is not None:
            interval = TimeInterval(task.fixed_at, task.fixed_at + timedelta(minutes=task.estimated_minutes))
            fixed_items.append(task_item(task, interval))
        else:
            pending.append(task)

    limits = DailyLimits(summarize_minutes_by_date(item.interval for item in courses), settings)
    free_slots = build_free_slots(
        start_date=start_date,
        end_date=end_date,
        blocked=[item.interval for item in courses] + [item.interval for item in fixed_items],
        now=request.now,
        day_start=settings.day_start,
        day_end=settings.day_end,
        preferred_windows=build_preferred_windows(request.nodes, settings.preferred_window_max_node),
    )
    fallback_deadline = datetime.combine(end_date - timedelta(days=1), settings.day_end)

    return ScheduleContext(
        now=request.now,
        start_date=start_date,
        end_date=end_date,
        courses=courses,
        fixed_items=fixed_items,
        pending=pending,
        limits=limits,
        free_slots=free_slots,
        fallback_deadline=fallback_deadline,
    )


def build_policy(context: ScheduleContext, settings: SchedulerSettings) -> AllocationPolicy:
    return AllocationPolicy(
        scorer=BonusSlotScorer(settings),
        limits=context.limits,
        enforce_daily_limit=True,
        allow_split=settings.split_enabled,
        buffer_minutes=settings.task_buffer_minutes,
        min_split_minutes=settings.min_split_minutes,
        fallback_deadline=context.fallback_deadline,
        preferred_due_offset_hours=settings.preferred_due_offset_hours,
    )


def _slot_payload(slot: TimeInterval) -> dict[str, Any]:
    return {
        "start": slot.start.isoformat(timespec="minutes"),
        "end": slot.end.isoformat(timespec="minutes"),
        "minutes": slot.duration_minutes(),
        "preferred": slot.preferred,
    }


def _task_payload(task: Task) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "estimated_minutes": task.estimated_minutes,
        "due_date_time": task.due_at.isoformat(timespec="minutes") if task.due_at else "",
        "priority": task.priority or "",
    }


def run_scheduler(
    request: ScheduleRequest,
    settings: SchedulerSettings | None = None,
    *,
    decision_trace: DecisionTraceCollector | None = None,
) -> dict[str, Any]:
    """Place the request's pending tasks around its classes and fixed tasks."""
    cfg = settings or SchedulerSettings()
    trace = decision_trace or DecisionTraceCollector(start_timestamp=request.now)
    context = build_schedule_context(request, cfg)
    policy = build_policy(context, cfg)

    ordered = order_tasks(context.pending, TaskOrder.LONGEST_FIRST)
    outcome = schedule_with_relaxation(
        ordered,
        context.free_slots,
        policy,
        fixed_items=context.fixed_items,
        max_backtrack=cfg.max_backtrack,
        decision_trace=trace,
    )
    run = outcome.run

    schedule = sorted(context.courses + run.items, key=lambda item: (item.start, item.title))
    limits_by_day: dict[str, int] = {}
    cursor = context.start_date
    while cursor < context.end_date:
        limits_by_day[cursor.isoformat()] = context.limits.limit_for(cursor)
        cursor += timedelta(days=1)

    logger.info(
        "Scheduled %d/%d tasks over %s..%s (%d unplaced, relaxation=%s)",
        len(run.placed),
        len(context.pending),
        context.start_date,
        context.end_date,
        len(run.pending),
        outcome.relaxation_applied,
    )
    for task in run.pending:
        logger.warning("Task %s could not be placed before %s", task.id, task.due_at or context.fallback_deadline)

    result: dict[str, Any] = {
        "status": "ok",
        "now": context.now.isoformat(timespec="minutes"),
        "horizon": {"start": context.start_date.isoformat(), "end": context.end_date.isoformat()},
        "schedule": [item.to_dict() for item in schedule],
        "pending_task_count": len(context.pending),
        "placed_tasks": [task.id for task in run.placed],
        "unplaced_tasks": [_task_payload(task) for task in run.pending],
        "split_tasks": [p.task.id for p in run.placements if p.rule == RULE_SPLIT],
        "relaxation_applied": outcome.relaxation_applied,
        "relaxed_tasks": list(outcome.relaxed_ids),
        "free_slots": [_slot_payload(slot) for slot in context.free_slots],
        "daily_load": run.daily_load.as_dict(),
        "daily_limits": limits_by_day,
        "effective_config": cfg.as_dict(),
        "decision_trace": trace.as_list(),
    }
    result["warnings"] = build_schedule_warnings(result)
    return result


def run_plan_builder(
    request: PlanRequest,
    settings: SchedulerSettings | None = None,
    *,
    decision_trace: DecisionTraceCollector | None = None,
) -> dict[str, Any]:
    """Build the three preset plans for an explicit date range."""
    cfg = settings or SchedulerSettings()
    pref = request.preference
    free_slots = build_plan_slots(
        start_date=request.start_date,
        end_date=request.end_date,
        blocked=request.blocked,
        day_start=pref.day_start,
        day_end=pref.day_end,
    )
    reference = datetime.combine(request.start_date or date.today(), pref.day_start)
    trace = decision_trace or DecisionTraceCollector(start_timestamp=reference)
    built = build_plans(request.tasks, free_slots, decision_trace=trace)

    logger.info(
        "Built %d plans for %d tasks (%d overloaded)",
        len(built.plans),
        len(request.tasks),
        len(built.overload_tasks),
    )
    result: dict[str, Any] = {
        "status": "ok",
        "range": {
            "start": request.start_date.isoformat() if request.start_date else "",
            "end": request.end_date.isoformat() if request.end_date else "",
        },
        "preference": {
            "mode": pref.mode.value,
            "day_start": pref.day_start.strftime("%H:%M"),
            "day_end": pref.day_end.strftime("%H:%M"),
        },
        "task_ids": [task.id for task in request.tasks],
        **built.to_dict(),
        "free_slots": [_slot_payload(slot) for slot in free_slots],
        "effective_config": cfg.as_dict(),
        "decision_trace": trace.as_list(),
    }
    result["warnings"] = build_plan_warnings(result)
    return result
