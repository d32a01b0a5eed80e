"""Multi-plan builder: one greedy pass per weight preset over the same slot pool."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import time
from enum import Enum
from typing import Any, Iterable

from studyplanner.reporting.decision_trace import DecisionTraceCollector

from .allocator import AllocationPolicy, allocate_tasks
from .models import Task, TimeInterval
from .ordering import TaskOrder, order_tasks
from .scoring import PLAN_WEIGHT_PRESETS, WeightedSlotScorer

logger = logging.getLogger(__name__)


class SchedulingMode(str, Enum):
    URGENT = "URGENT"
    BALANCED = "BALANCED"
    RELAXED = "RELAXED"

    @classmethod
    def parse(cls, raw: Any, default: SchedulingMode | None = None) -> SchedulingMode:
        fallback = default or cls.BALANCED
        if not isinstance(raw, str):
            return fallback
        try:
            return cls(raw.strip().upper())
        except ValueError:
            return fallback


PLAN_LABELS: dict[SchedulingMode, str] = {
    SchedulingMode.BALANCED: "Balanced",
    SchedulingMode.URGENT: "Urgent",
    SchedulingMode.RELAXED: "Relaxed",
}

CANONICAL_PLAN_ORDER = (SchedulingMode.BALANCED, SchedulingMode.URGENT, SchedulingMode.RELAXED)


@dataclass(frozen=True, slots=True)
class SchedulingPreference:
    mode: SchedulingMode = SchedulingMode.BALANCED
    day_start: time = time(8, 0)
    day_end: time = time(23, 30)


@dataclass(frozen=True, slots=True)
class PlanItem:
    task_id: str
    interval: TimeInterval

    def to_dict(self) -> dict[str, Any]:
        return {
            "task_id": self.task_id,
            "start": self.interval.start.isoformat(timespec="minutes"),
            "end": self.interval.end.isoformat(timespec="minutes"),
        }


@dataclass(slots=True)
class Plan:
    plan_id: str
    label: str
    mode: SchedulingMode
    items: list[PlanItem] = field(default_factory=list)

    @property
    def task_ids(self) -> set[str]:
        return {item.task_id for item in self.items}

    def to_dict(self) -> dict[str, Any]:
        return {
            "plan_id": self.plan_id,
            "label": self.label,
            "mode": self.mode.value,
            "items": [item.to_dict() for item in self.items],
        }


@dataclass(slots=True)
class PlanBuildResult:
    plans: list[Plan]
    overload_tasks: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "plans": [plan.to_dict() for plan in self.plans],
            "overload_tasks": list(self.overload_tasks),
        }


def build_plan(
    plan_id: str,
    mode: SchedulingMode,
    tasks: list[Task],
    free_slots: list[TimeInterval],
    decision_trace: DecisionTraceCollector | None = None,
) -> Plan:
    policy = AllocationPolicy(
        scorer=WeightedSlotScorer(weights=dict(PLAN_WEIGHT_PRESETS[mode.value])),
        trace_rule=f"RULE_PLAN_PRESET_{mode.value}",
    )
    run = allocate_tasks(tasks, free_slots, policy, decision_trace=decision_trace)
    items = sorted(
        (PlanItem(task_id=item.task_id or item.id, interval=item.interval) for item in run.items),
        key=lambda item: (item.interval.start, item.task_id),
    )
    logger.debug("Plan %s (%s): %d placed, %d dropped", plan_id, mode.value, len(run.placed), len(run.pending))
    return Plan(plan_id=plan_id, label=PLAN_LABELS[mode], mode=mode, items=items)


def build_plans(
    tasks: Iterable[Task],
    free_slots: Iterable[TimeInterval],
    decision_trace: DecisionTraceCollector | None = None,
) -> PlanBuildResult:
    """Build one plan per preset, always Balanced, Urgent, Relaxed.

    Each run works on its own copy of the slot pool with no splitting, no
    buffer and no daily limit. ``overload_tasks`` lists the tasks the
    Balanced plan could not place, in input order.
    The requested mode never reorders the plans.
    """
    task_list = list(tasks)
    ordered = order_tasks(task_list, TaskOrder.SHORTEST_FIRST)
    pool = list(free_slots)

    plans = [
        build_plan(f"p{index}", mode, ordered, list(pool), decision_trace)
        for index, mode in enumerate(CANONICAL_PLAN_ORDER, start=1)
    ]

    balanced_ids = plans[0].task_ids
    overload = [task.id for task in task_list if task.id not in balanced_ids]
    if overload:
        logger.info("%d tasks do not fit the balanced plan", len(overload))
    return PlanBuildResult(plans=plans, overload_tasks=overload)
