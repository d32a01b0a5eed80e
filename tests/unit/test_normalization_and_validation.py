from __future__ import annotations

from datetime import date, datetime, time

from studyplanner.engine.models import Parity, TimeInterval
from studyplanner.engine.plans import SchedulingMode
from studyplanner.engine.settings import DEFAULT_SCHEDULER_CONFIG, SchedulerSettings
from studyplanner.normalization import (
    build_settings,
    normalize_plan_request,
    normalize_schedule_request,
    parse_date,
    parse_datetime,
    resolve_effective_config,
)
from studyplanner.validation import (
    ValidationReport,
    validate_course_table,
    validate_plan_request,
    validate_schedule_request,
)


def test_effective_config_clamps_and_reports() -> None:
    report = ValidationReport()
    source = {
        "schema_version": "1.0",
        "task_buffer_minutes": -5,
        "bogus": 1,
        "split_enabled": "yes",
        "horizon_days": 0,
        "day_start": "22:00",
        "day_end": "08:00",
    }

    config = resolve_effective_config(source, report)

    assert [e.code for e in report.errors] == ["INVALID_CONFIG_KEY", "INVALID_CONFIG_VALUE"]
    assert report.info_codes() == ["INFO_CLAMP_APPLIED", "INFO_CLAMP_APPLIED", "INFO_DAY_WINDOW_DEFAULTED"]
    assert config["task_buffer_minutes"] == 0
    assert config["horizon_days"] == 1
    assert config["split_enabled"] is True
    assert (config["day_start"], config["day_end"]) == ("08:00", "23:00")


def test_effective_config_defaults_and_settings_round_trip() -> None:
    report = ValidationReport()

    config = resolve_effective_config({"day_end": "21:30", "max_backtrack": 3}, report)
    settings = build_settings(config)

    assert report.errors == [] and report.infos == []
    assert resolve_effective_config(None, ValidationReport()) == DEFAULT_SCHEDULER_CONFIG
    assert settings.day_end == time(21, 30)
    assert settings.max_backtrack == 3
    assert settings.task_buffer_minutes == SchedulerSettings().task_buffer_minutes


def test_parse_datetime_variants() -> None:
    assert parse_datetime("2026-03-02T10:00:00+08:00") == datetime(2026, 3, 2, 10, 0)
    assert parse_datetime("2026-03-02T10:00:00Z") == datetime(2026, 3, 2, 10, 0)
    assert parse_datetime("2026-03-02T10:00") == datetime(2026, 3, 2, 10, 0)
    assert parse_datetime("2026-03-02") == datetime(2026, 3, 2, 0, 0)
    assert parse_datetime("next tuesday") is None
    assert parse_datetime(None) is None
    assert parse_date("2026-03-02T10:00:00") == date(2026, 3, 2)
    assert parse_date("03/02/2026") is None


def test_normalize_schedule_request() -> None:
    report = ValidationReport()
    payload = {
        "now": "2026-03-02T07:30:00+01:00",
        "courseTable": {
            "timeNodes": [{"node": 1, "startTime": "08:00", "endTime": "08:45"}],
            "courses": [{"id": 1, "courseName": "Physics"}],
            "courseTimes": [
                {"id": 1, "day": 1, "startWeek": 1, "endWeek": 10, "type": 0, "startNode": 1, "step": 0},
                {"id": 1, "day": 2},
            ],
            "tableConfig": {"startDate": "2026-03-02"},
        },
        "tasks": [
            {"id": "a", "title": "A", "estimated_minutes": 0},
            {
                "id": "a",
                "title": "B",
                "estimatedMinutes": 30,
                "priority": 3,
                "dueDateTime": "2026-03-03T18:00:00Z",
            },
            {"title": "C", "scheduled_at": "2026-03-02T15:00", "estimated_minutes": 60, "type": "LIGHT"},
        ],
    }

    request = normalize_schedule_request(payload, SchedulerSettings(), report)

    assert request.now == datetime(2026, 3, 2, 7, 30)
    assert request.semester_start == date(2026, 3, 2)
    assert request.course_names == {"1": "Physics"}
    assert request.nodes[1].start_time == time(8, 0)
    assert len(request.rules) == 1
    assert request.rules[0].step == 1
    assert request.rules[0].parity is Parity.NONE
    assert [t.id for t in request.tasks] == ["a", "a-2", "task-3"]
    assert request.tasks[0].estimated_minutes == 45
    assert request.tasks[1].priority == "High"
    assert request.tasks[1].due_at == datetime(2026, 3, 3, 18, 0)
    assert request.tasks[2].fixed_at == datetime(2026, 3, 2, 15, 0)
    assert request.start_date is None and request.end_date is None
    assert report.info_codes() == [
        "INFO_RULE_STEP_CLAMPED",
        "INFO_RULE_SKIPPED",
        "INFO_DURATION_DEFAULTED",
        "INFO_DUPLICATE_TASK_ID",
    ]


def test_normalize_schedule_request_ignores_inverted_range() -> None:
    report = ValidationReport()
    payload = {"now": "2026-03-02T08:00", "range": {"start": "2026-03-05", "end": "2026-03-02"}}

    request = normalize_schedule_request(payload, SchedulerSettings(), report)

    assert request.start_date is None
    assert report.info_codes() == ["INFO_RANGE_IGNORED"]


def test_normalize_schedule_request_truncates_now_to_the_minute() -> None:
    report = ValidationReport()

    request = normalize_schedule_request({"now": "2026-03-02T08:15:42.500"}, SchedulerSettings(), report)

    assert request.now == datetime(2026, 3, 2, 8, 15)
    assert report.info_codes() == []


def test_normalize_plan_request() -> None:
    report = ValidationReport()
    payload = {
        "tasks": [
            {"title": "Read", "duration_min": 5, "importance": 3},
            {"id": "x", "type": "light", "ddl": "2026-03-04T12:00"},
            {"durationMin": 90, "type": "nap", "priority": "Urgent"},
        ],
        "timetable_blocked": [
            {"start": "2026-03-02T09:00", "end": "2026-03-02T08:00"},
            {"start": "2026-03-02T10:00", "end": "2026-03-02T12:00"},
        ],
        "range": {"start": "2026-03-02", "end": "2026-03-04"},
        "preferences": {"mode": "relaxed", "day_start": "09:00", "day_end": "07:00"},
    }

    request = normalize_plan_request(payload, SchedulerSettings(), report)

    assert [t.id for t in request.tasks] == ["task-0", "x", "task-2"]
    assert [t.estimated_minutes for t in request.tasks] == [15, 60, 90]
    assert [t.priority for t in request.tasks] == ["High", "Low", "Urgent"]
    assert [t.type for t in request.tasks] == ["FOCUS", "LIGHT", "FOCUS"]
    assert [t.importance for t in request.tasks] == [3, 1, None]
    assert request.tasks[1].due_at == datetime(2026, 3, 4, 12, 0)
    assert request.blocked == [TimeInterval(datetime(2026, 3, 2, 10, 0), datetime(2026, 3, 2, 12, 0))]
    assert (request.start_date, request.end_date) == (date(2026, 3, 2), date(2026, 3, 4))
    assert request.preference.mode is SchedulingMode.RELAXED
    assert request.preference.day_start == time(9, 0)
    assert request.preference.day_end == time(23, 30)
    assert report.info_codes() == ["INFO_DURATION_DEFAULTED", "INFO_BLOCK_DROPPED", "INFO_DAY_WINDOW_DEFAULTED"]


def test_plan_request_requires_range() -> None:
    assert [(e.code, e.path) for e in validate_plan_request({})] == [("missing_field", "$.range")]
    assert [(e.code, e.path) for e in validate_plan_request({"range": {"start": "2026-03-02"}})] == [
        ("missing_field", "$.range.end")
    ]
    errors = validate_plan_request({"tasks_path": "", "range": {"start": "2026-03-02", "end": "2026-03-03"}})
    assert [(e.code, e.path) for e in errors] == [("invalid_type", "$.tasks_path")]


def test_schedule_request_shape_errors_accumulate() -> None:
    errors = validate_schedule_request({"tasks": {}, "course_table": [], "now": 5})

    assert [e.path for e in errors] == ["$.tasks", "$.course_table", "$.now"]
    assert validate_schedule_request({"tasks": [], "now": "2026-03-02T08:00"}) == []


def test_course_table_findings_are_infos() -> None:
    course_table = {
        "time_nodes": [
            {"node": 1, "start_time": "08:00", "end_time": "08:45"},
            {"node": 1, "start_time": "08:05", "end_time": "08:50"},
        ],
        "courses": [{"id": "c1", "course_name": "Maths"}],
        "course_times": [{"id": "c2", "day": 8, "start_week": 5, "end_week": 2, "start_node": 1, "step": 2}],
    }

    report = validate_course_table(course_table)

    assert report.errors == []
    assert report.info_codes() == [
        "INFO_DUPLICATE_NODE",
        "INFO_RULE_COURSE_UNKNOWN",
        "INFO_RULE_DAY_INVALID",
        "INFO_RULE_WEEK_RANGE_EMPTY",
        "INFO_RULE_NODE_MISSING",
    ]
    assert report.as_dict()["infos"][-1]["missing_nodes"] == [2]
