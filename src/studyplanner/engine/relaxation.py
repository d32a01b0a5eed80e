"""Second-chance pass for tasks the first allocation could not place."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from studyplanner.reporting.decision_trace import DecisionTraceCollector

from .allocator import AllocationPolicy, AllocationRun, allocate_tasks
from .models import ScheduledItem, Task, TimeInterval

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RelaxationOutcome:
    run: AllocationRun
    relaxation_applied: bool = False
    relaxed_ids: list[str] = field(default_factory=list)


def schedule_with_relaxation(
    tasks: list[Task],
    slots: list[TimeInterval],
    policy: AllocationPolicy,
    *,
    fixed_items: Iterable[ScheduledItem] = (),
    max_backtrack: int = 2,
    decision_trace: DecisionTraceCollector | None = None,
) -> RelaxationOutcome:
    """Run the allocator, and rerun it once with daily limits lifted if anything is left.

    The relaxed set is every pending task plus the last ``max_backtrack`` tasks
    the first pass placed. Relaxed tasks move to the back of the queue (keeping
    their relative order) and get rerun from the original slots without daily
    capacity checks. The rerun replaces the first pass whatever it yields;
    deadlines still hold.
    """
    fixed = list(fixed_items)
    first = allocate_tasks(tasks, slots, policy, fixed_items=fixed, decision_trace=decision_trace)
    if not first.pending:
        return RelaxationOutcome(run=first)

    deferred = first.placed[-max_backtrack:] if max_backtrack > 0 else []
    relaxed_ids = {task.id for task in first.pending} | {task.id for task in deferred}
    reordered = [task for task in tasks if task.id not in relaxed_ids] + [
        task for task in tasks if task.id in relaxed_ids
    ]

    logger.info(
        "Relaxing daily limits for %d tasks (%d pending, %d backtracked)",
        len(relaxed_ids),
        len(first.pending),
        len(deferred),
    )
    retry = allocate_tasks(
        reordered,
        slots,
        policy,
        relaxed_ids=relaxed_ids,
        fixed_items=fixed,
        decision_trace=decision_trace,
    )
    ordered_relaxed = [task.id for task in reordered if task.id in relaxed_ids]
    return RelaxationOutcome(run=retry, relaxation_applied=True, relaxed_ids=ordered_relaxed)
