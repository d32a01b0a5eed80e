from __future__ import annotations

from datetime import date, datetime

from studyplanner.engine.allocator import RULE_RELAXED_DAILY_LIMIT, AllocationPolicy
from studyplanner.engine.models import Task, TimeInterval
from studyplanner.engine.relaxation import schedule_with_relaxation
from studyplanner.engine.scoring import BonusSlotScorer
from studyplanner.engine.settings import SchedulerSettings
from studyplanner.engine.workload import DailyLimits
from studyplanner.reporting.decision_trace import DecisionTraceCollector

TUESDAY = date(2026, 3, 3)
DUE = datetime(2026, 3, 3, 18, 0)
SLOTS = [TimeInterval(datetime(2026, 3, 3, 8, 0), DUE)]


def _policy() -> AllocationPolicy:
    # 200 class minutes on Tuesday: the task limit sits at the 120-minute floor.
    return AllocationPolicy(
        scorer=BonusSlotScorer(),
        limits=DailyLimits({TUESDAY: 200}, SchedulerSettings()),
        enforce_daily_limit=True,
    )


def _task(task_id: str, minutes: int, priority: str = "Medium") -> Task:
    return Task(id=task_id, title=task_id, estimated_minutes=minutes, due_at=DUE, priority=priority)


def test_no_relaxation_when_everything_fits() -> None:
    outcome = schedule_with_relaxation([_task("a", 60), _task("b", 60)], SLOTS, _policy())

    assert outcome.relaxation_applied is False
    assert outcome.relaxed_ids == []
    assert [t.id for t in outcome.run.placed] == ["a", "b"]


def test_relaxation_places_pending_and_backtracked_tasks() -> None:
    tasks = [_task("a", 90, "High"), _task("b", 90)]

    outcome = schedule_with_relaxation(tasks, SLOTS, _policy(), max_backtrack=2)

    assert outcome.relaxation_applied is True
    assert outcome.relaxed_ids == ["a", "b"]
    assert [t.id for t in outcome.run.placed] == ["a", "b"]
    assert outcome.run.pending == []
    assert outcome.run.daily_load.used(TUESDAY) == 180
    assert all(item.end <= DUE for item in outcome.run.items)


def test_relaxation_without_backtrack_only_lifts_pending() -> None:
    tasks = [_task("a", 90, "High"), _task("b", 90)]

    outcome = schedule_with_relaxation(tasks, SLOTS, _policy(), max_backtrack=0)

    assert outcome.relaxed_ids == ["b"]
    assert [p.relaxed for p in outcome.run.placements] == [False, True]


def test_relaxed_tasks_move_to_the_back_and_both_passes_are_traced() -> None:
    trace = DecisionTraceCollector(start_timestamp=datetime(2026, 3, 3, 7, 0))
    tasks = [_task("x", 150), _task("y", 60), _task("z", 60)]

    outcome = schedule_with_relaxation(tasks, SLOTS, _policy(), max_backtrack=1, decision_trace=trace)
    records = trace.as_list()

    assert outcome.relaxed_ids == ["x", "z"]
    assert [t.id for t in outcome.run.placed] == ["y", "x", "z"]
    assert [r["task_id"] for r in records] == ["x", "y", "z", "y", "x", "z"]
    assert RULE_RELAXED_DAILY_LIMIT not in records[3]["applied_rules"]
    assert RULE_RELAXED_DAILY_LIMIT in records[4]["applied_rules"]


def test_relaxation_never_breaks_deadlines() -> None:
    tasks = [_task("a", 90), _task("too-long", 700)]

    outcome = schedule_with_relaxation(tasks, SLOTS, _policy())

    assert outcome.relaxation_applied is True
    assert [t.id for t in outcome.run.pending] == ["too-long"]
    assert all(item.end <= DUE for item in outcome.run.items)
