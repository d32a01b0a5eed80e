from __future__ import annotations

from datetime import date, datetime, time

from studyplanner.engine.models import BellScheduleNode, CourseRule, Parity, Task
from studyplanner.engine.runner import ScheduleRequest, compute_horizon, run_scheduler
from studyplanner.engine.settings import SchedulerSettings

MONDAY = date(2026, 3, 2)

NODES = {
    1: BellScheduleNode(1, time(8, 30), time(9, 15)),
    2: BellScheduleNode(2, time(9, 25), time(10, 10)),
}

CALCULUS = CourseRule(
    course_ref="c1",
    day_of_week=1,
    start_week=1,
    end_week=16,
    parity=Parity.NONE,
    start_node=1,
    step=2,
    room="A101",
)


def _request(tasks: list[Task], now: datetime, **kwargs: object) -> ScheduleRequest:
    values: dict[str, object] = {
        "now": now,
        "tasks": tasks,
        "rules": [CALCULUS],
        "nodes": NODES,
        "course_names": {"c1": "Calculus"},
        "semester_start": MONDAY,
    }
    values.update(kwargs)
    return ScheduleRequest(**values)  # type: ignore[arg-type]


def test_horizon_extends_to_latest_deadline() -> None:
    settings = SchedulerSettings()
    now = datetime(2026, 3, 2, 7, 0)
    early = Task(id="a", title="A", estimated_minutes=30, due_at=datetime(2026, 3, 3, 12, 0))
    late = Task(id="b", title="B", estimated_minutes=30, due_at=datetime(2026, 3, 10, 9, 0))

    assert compute_horizon(_request([], now), settings) == (MONDAY, date(2026, 3, 5))
    assert compute_horizon(_request([early], now), settings) == (MONDAY, date(2026, 3, 6))
    assert compute_horizon(_request([early, late], now), settings) == (MONDAY, date(2026, 3, 11))
    explicit = _request([late], now, start_date=date(2026, 3, 3), end_date=date(2026, 3, 4))
    assert compute_horizon(explicit, settings) == (date(2026, 3, 3), date(2026, 3, 4))


def test_horizon_keeps_a_full_default_window_for_near_deadlines() -> None:
    task = Task(id="ps1", title="Problem set", estimated_minutes=60, due_at=datetime(2026, 3, 2, 18, 0))
    undated = Task(id="read", title="Reading", estimated_minutes=60)
    request = _request([task, undated], datetime(2026, 3, 2, 9, 0), rules=[])

    assert compute_horizon(request, SchedulerSettings()) == (MONDAY, date(2026, 3, 6))
    result = run_scheduler(request)
    assert result["horizon"] == {"start": "2026-03-02", "end": "2026-03-06"}
    assert sorted(result["placed_tasks"]) == ["ps1", "read"]


def test_urgent_task_lands_after_morning_class() -> None:
    task = Task(
        id="ps1",
        title="Problem set",
        estimated_minutes=90,
        due_at=datetime(2026, 3, 2, 18, 0),
        priority="Urgent",
    )

    result = run_scheduler(_request([task], datetime(2026, 3, 2, 7, 0)))
    monday = [item for item in result["schedule"] if item["date"] == "2026-03-02"]

    assert [(i["kind"], i["start_time"], i["end_time"]) for i in monday] == [
        ("COURSE", "08:30", "10:10"),
        ("TASK", "10:10", "11:40"),
    ]
    assert monday[0]["id"] == "COURSE-2026-03-02-Calculus"
    assert monday[0]["details"] == "A101"
    assert monday[1]["day"] == "Monday"
    assert monday[1]["details"] == "Priority:Urgent"
    assert result["placed_tasks"] == ["ps1"]
    assert result["unplaced_tasks"] == []
    assert result["daily_limits"]["2026-03-02"] == 140
    assert result["warnings"] == []


def test_nothing_is_placed_before_now_or_over_fixed_tasks() -> None:
    fixed = Task(id="meet", title="Meeting", estimated_minutes=60, fixed_at=datetime(2026, 3, 2, 14, 0))
    task = Task(id="read", title="Reading", estimated_minutes=60, due_at=datetime(2026, 3, 2, 15, 30))

    result = run_scheduler(_request([fixed, task], datetime(2026, 3, 2, 12, 0)))
    tasks = [item for item in result["schedule"] if item["kind"] == "TASK"]

    assert [(i["task_id"], i["start_time"], i["end_time"]) for i in tasks] == [
        ("read", "12:00", "13:00"),
        ("meet", "14:00", "15:00"),
    ]
    assert result["pending_task_count"] == 1
    assert result["daily_load"]["2026-03-02"] == 120


def test_unplaceable_task_is_reported() -> None:
    task = Task(id="late", title="Late", estimated_minutes=120, due_at=datetime(2026, 3, 2, 9, 0))

    result = run_scheduler(_request([task], datetime(2026, 3, 2, 7, 0)))

    assert result["placed_tasks"] == []
    assert [t["id"] for t in result["unplaced_tasks"]] == ["late"]
    assert result["relaxation_applied"] is True
    assert [w["code"] for w in result["warnings"]] == ["WARN_TASK_UNPLACED", "WARN_RELAXATION_APPLIED"]


def test_relaxation_reported_when_daily_limit_is_lifted() -> None:
    due = datetime(2026, 3, 2, 23, 0)
    tasks = [Task(id=f"t{i}", title=f"T{i}", estimated_minutes=150, due_at=due) for i in range(1, 4)]

    result = run_scheduler(_request(tasks, datetime(2026, 3, 2, 8, 0), rules=[]))

    assert sorted(result["placed_tasks"]) == ["t1", "t2", "t3"]
    assert result["relaxation_applied"] is True
    assert result["relaxed_tasks"] == ["t1", "t2", "t3"]
    assert result["daily_load"]["2026-03-02"] == 450
    assert [w["code"] for w in result["warnings"]] == ["WARN_RELAXATION_APPLIED", "WARN_DAILY_LIMIT_EXCEEDED"]


def test_run_scheduler_is_deterministic() -> None:
    tasks = [
        Task(id="a", title="A", estimated_minutes=200, due_at=datetime(2026, 3, 4, 12, 0), priority="High"),
        Task(id="b", title="B", estimated_minutes=45, priority="Low"),
        Task(id="c", title="C", estimated_minutes=90, due_at=datetime(2026, 3, 3, 9, 0)),
    ]
    request = _request(tasks, datetime(2026, 3, 2, 7, 0))

    assert run_scheduler(request) == run_scheduler(request)
