"""Turn raw request payloads into engine inputs.

Inputs are accepted in snake_case or in the camelCase of timetable exports.
Nothing raises on bad values: each skipped or defaulted field is reported as
an info on the validation report.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from studyplanner.engine.models import (
    TASK_TYPE_FOCUS,
    TASK_TYPE_LIGHT,
    BellScheduleNode,
    CourseRule,
    Parity,
    Task,
    TimeInterval,
)
from studyplanner.engine.ordering import importance_label
from studyplanner.engine.plans import SchedulingMode, SchedulingPreference
from studyplanner.engine.runner import PlanRequest, ScheduleRequest
from studyplanner.engine.settings import SchedulerSettings, parse_clock
from studyplanner.validation import ValidationReport

DEFAULT_TASK_TITLE = "Task"


def _pick(mapping: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = mapping.get(key)
        if value is not None:
            return value
    return None


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return None
    return None


def _as_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def parse_datetime(raw: Any) -> datetime | None:
    """Parse ISO-8601 with or without offset; the offset is dropped, wall-clock kept.

    A date alone means midnight of that day.
    """
    if isinstance(raw, datetime):
        return raw.replace(tzinfo=None)
    if isinstance(raw, date):
        return datetime.combine(raw, datetime.min.time())
    if not isinstance(raw, str) or not raw.strip():
        return None
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text).replace(tzinfo=None)
    except ValueError:
        return None


def parse_date(raw: Any) -> date | None:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        return date.fromisoformat(raw.strip()[:10])
    except ValueError:
        return None


def _parse_optional_datetime(raw: Any, path: str, report: ValidationReport) -> datetime | None:
    parsed = parse_datetime(raw)
    if parsed is None and isinstance(raw, str) and raw.strip():
        report.add_info(
            code="INFO_DATETIME_UNPARSEABLE",
            message=f"Unparseable date-time {raw!r} ignored",
            field_path=path,
        )
    return parsed


def _unique_id(candidate: str, seen: set[str], path: str, report: ValidationReport) -> str:
    if candidate not in seen:
        seen.add(candidate)
        return candidate
    suffix = 2
    while f"{candidate}-{suffix}" in seen:
        suffix += 1
    unique = f"{candidate}-{suffix}"
    seen.add(unique)
    report.add_info(
        code="INFO_DUPLICATE_TASK_ID",
        message=f"Duplicate task id {candidate!r} renamed to {unique!r}",
        field_path=path,
        extra={"applied_value": unique},
    )
    return unique


def normalize_course_table(
    course_table: Any,
    report: ValidationReport,
) -> tuple[list[CourseRule], dict[int, BellScheduleNode], dict[str, str], date | None]:
    """Return ``(rules, nodes by index, course names by id, semester start)``."""
    if not isinstance(course_table, dict):
        return [], {}, {}, None

    nodes: dict[int, BellScheduleNode] = {}
    for raw in _pick(course_table, "time_nodes", "timeNodes") or []:
        if not isinstance(raw, dict):
            continue
        index = _as_int(raw.get("node"))
        if index is None:
            continue
        nodes[index] = BellScheduleNode(
            node=index,
            start_time=parse_clock(_pick(raw, "start_time", "startTime")),
            end_time=parse_clock(_pick(raw, "end_time", "endTime")),
        )

    course_names: dict[str, str] = {}
    for raw in _pick(course_table, "courses") or []:
        if not isinstance(raw, dict) or raw.get("id") is None:
            continue
        name = _as_text(_pick(raw, "course_name", "courseName", "name"))
        if name:
            course_names[str(raw["id"])] = name

    table_config = _pick(course_table, "table_config", "tableConfig")
    semester_start = None
    if isinstance(table_config, dict):
        semester_start = parse_date(_pick(table_config, "start_date", "startDate"))

    rules: list[CourseRule] = []
    for idx, raw in enumerate(_pick(course_table, "course_times", "courseTimes") or []):
        if not isinstance(raw, dict):
            continue
        path = f"$.course_table.course_times[{idx}]"
        start_node = _as_int(_pick(raw, "start_node", "startNode"))
        day = _as_int(raw.get("day"))
        if start_node is None or day is None:
            report.add_info(
                code="INFO_RULE_SKIPPED",
                message="Rule without day or startNode skipped",
                field_path=path,
            )
            continue
        step = _as_int(raw.get("step"))
        if step is None or step < 1:
            report.add_info(
                code="INFO_RULE_STEP_CLAMPED",
                message="Rule step must be at least 1",
                field_path=f"{path}.step",
                extra={"applied_value": 1},
            )
            step = 1
        rules.append(
            CourseRule(
                course_ref=str(raw.get("id")) if raw.get("id") is not None else "",
                day_of_week=day,
                start_week=_as_int(_pick(raw, "start_week", "startWeek")) or 1,
                end_week=_as_int(_pick(raw, "end_week", "endWeek")) or 1,
                parity=Parity.from_raw(_pick(raw, "type", "parity")),
                start_node=start_node,
                step=step,
                room=_as_text(raw.get("room")) or "",
                teacher=_as_text(raw.get("teacher")) or "",
            )
        )

    return rules, nodes, course_names, semester_start


def _normalize_schedule_task(
    raw: dict[str, Any],
    idx: int,
    seen: set[str],
    settings: SchedulerSettings,
    report: ValidationReport,
) -> Task:
    path = f"$.tasks[{idx}]"
    task_id = _unique_id(_as_text(raw.get("id")) or f"task-{idx + 1}", seen, f"{path}.id", report)

    minutes = _as_int(_pick(raw, "estimated_minutes", "estimatedMinutes", "duration_min", "durationMin"))
    if minutes is None or minutes < 1:
        report.add_info(
            code="INFO_DURATION_DEFAULTED",
            message=f"Task {task_id} has no positive duration; {settings.default_task_minutes} minutes assumed",
            field_path=f"{path}.estimated_minutes",
            extra={"applied_value": settings.default_task_minutes},
        )
        minutes = settings.default_task_minutes

    priority = _pick(raw, "priority")
    if isinstance(priority, int) and not isinstance(priority, bool):
        priority = importance_label(priority)

    return Task(
        id=task_id,
        title=_as_text(raw.get("title")) or DEFAULT_TASK_TITLE,
        estimated_minutes=minutes,
        due_at=_parse_optional_datetime(_pick(raw, "due_at", "dueDateTime", "due"), f"{path}.due_at", report),
        priority=_as_text(priority),
        type=_as_text(raw.get("type")),
        course_ref=_as_text(_pick(raw, "course_id", "courseId")),
        fixed_at=_parse_optional_datetime(
            _pick(raw, "scheduled_at", "scheduledDateTime"), f"{path}.scheduled_at", report
        ),
    )


def normalize_schedule_request(
    payload: dict[str, Any],
    settings: SchedulerSettings,
    report: ValidationReport,
) -> ScheduleRequest:
    now = _parse_optional_datetime(_pick(payload, "now", "current_date_time", "currentDateTime"), "$.now", report)
    now = (now or datetime.now()).replace(second=0, microsecond=0)

    date_range = payload.get("range") if isinstance(payload.get("range"), dict) else {}
    start_date = parse_date(_pick(payload, "start_date") or date_range.get("start"))
    end_date = parse_date(_pick(payload, "end_date") or date_range.get("end"))
    if start_date is not None and end_date is not None and end_date <= start_date:
        report.add_info(
            code="INFO_RANGE_IGNORED",
            message="end_date must be after start_date; the horizon is derived from the tasks instead",
            field_path="$.range",
        )
        start_date = end_date = None

    rules, nodes, course_names, semester_start = normalize_course_table(
        _pick(payload, "course_table", "courseTable"), report
    )

    seen: set[str] = set()
    tasks = [
        _normalize_schedule_task(raw, idx, seen, settings, report)
        for idx, raw in enumerate(payload.get("tasks") or [])
        if isinstance(raw, dict)
    ]

    return ScheduleRequest(
        now=now,
        tasks=tasks,
        rules=rules,
        nodes=nodes,
        course_names=course_names,
        semester_start=semester_start,
        start_date=start_date,
        end_date=end_date,
    )


def _normalize_plan_task(
    raw: dict[str, Any],
    idx: int,
    seen: set[str],
    settings: SchedulerSettings,
    report: ValidationReport,
) -> Task:
    path = f"$.tasks[{idx}]"
    task_id = _unique_id(_as_text(raw.get("id")) or f"task-{idx}", seen, f"{path}.id", report)

    minutes = _as_int(_pick(raw, "duration_min", "durationMin", "estimated_minutes", "estimatedMinutes"))
    if minutes is None:
        minutes = settings.plan_default_task_minutes
    elif minutes < settings.plan_min_task_minutes:
        report.add_info(
            code="INFO_DURATION_DEFAULTED",
            message=f"Task {task_id} raised to the {settings.plan_min_task_minutes}-minute minimum",
            field_path=f"{path}.duration_min",
            extra={"applied_value": settings.plan_min_task_minutes},
        )
        minutes = settings.plan_min_task_minutes

    importance: int | None = None
    priority = _as_text(raw.get("priority")) if isinstance(raw.get("priority"), str) else None
    if priority is None:
        raw_importance = _as_int(_pick(raw, "importance", "priority"))
        importance = max(1, raw_importance if raw_importance is not None else 1)
        priority = importance_label(importance)

    task_type = (_as_text(raw.get("type")) or TASK_TYPE_FOCUS).upper()
    if task_type not in {TASK_TYPE_FOCUS, TASK_TYPE_LIGHT}:
        task_type = TASK_TYPE_FOCUS

    return Task(
        id=task_id,
        title=_as_text(raw.get("title")) or task_id,
        estimated_minutes=minutes,
        due_at=_parse_optional_datetime(_pick(raw, "ddl", "due_at", "dueDateTime"), f"{path}.ddl", report),
        priority=priority,
        type=task_type,
        course_ref=_as_text(_pick(raw, "course_id", "courseId")),
        importance=importance,
    )


def normalize_plan_request(
    payload: dict[str, Any],
    settings: SchedulerSettings,
    report: ValidationReport,
) -> PlanRequest:
    seen: set[str] = set()
    tasks = [
        _normalize_plan_task(raw, idx, seen, settings, report)
        for idx, raw in enumerate(payload.get("tasks") or [])
        if isinstance(raw, dict)
    ]

    blocked: list[TimeInterval] = []
    for idx, raw in enumerate(_pick(payload, "timetable_blocked", "timetableBlocked") or []):
        if not isinstance(raw, dict):
            continue
        start = parse_datetime(raw.get("start"))
        end = parse_datetime(raw.get("end"))
        if start is None or end is None or end <= start:
            report.add_info(
                code="INFO_BLOCK_DROPPED",
                message="Blocked interval without a valid start < end dropped",
                field_path=f"$.timetable_blocked[{idx}]",
            )
            continue
        blocked.append(TimeInterval(start, end))

    date_range = payload.get("range") if isinstance(payload.get("range"), dict) else {}
    start_date = parse_date(date_range.get("start"))
    end_date = parse_date(date_range.get("end"))

    prefs = payload.get("preferences") if isinstance(payload.get("preferences"), dict) else {}
    day_start = parse_clock(_pick(prefs, "day_start", "dayStart")) or settings.plan_day_start
    day_end = parse_clock(_pick(prefs, "day_end", "dayEnd")) or settings.plan_day_end
    if day_end <= day_start:
        report.add_info(
            code="INFO_DAY_WINDOW_DEFAULTED",
            message="preferences.day_end must be after day_start; default end used",
            field_path="$.preferences.day_end",
        )
        day_end = settings.plan_day_end

    preference = SchedulingPreference(
        mode=SchedulingMode.parse(prefs.get("mode")),
        day_start=day_start,
        day_end=day_end,
    )
    return PlanRequest(
        tasks=tasks,
        blocked=blocked,
        start_date=start_date,
        end_date=end_date,
        preference=preference,
    )
