from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from studyplanner.cli import main, run_plans_command, run_schedule_command


def _write(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload), encoding="utf-8")


def _read(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding="utf-8"))


def _schedule_files(tmp_path: Path) -> Path:
    request = tmp_path / "schedule_request.json"
    inputs = tmp_path / "inputs"
    inputs.mkdir()

    _write(inputs / "config.json", {"schema_version": "1.0", "horizon_days": 2, "max_backtrack": 1})
    _write(
        inputs / "course_table.json",
        {
            "timeNodes": [
                {"node": 1, "startTime": "08:30", "endTime": "09:15"},
                {"node": 2, "startTime": "09:25", "endTime": "10:10"},
            ],
            "courses": [{"id": 1, "courseName": "Calculus"}],
            "courseTimes": [
                {"id": 1, "day": 1, "startWeek": 1, "endWeek": 16, "type": 0, "startNode": 1, "step": 2, "room": "A101"}
            ],
            "tableConfig": {"startDate": "2026-03-02"},
        },
    )
    _write(
        inputs / "tasks.json",
        [
            {
                "id": "ps1",
                "title": "Problem set",
                "estimatedMinutes": 90,
                "dueDateTime": "2026-03-02T18:00:00",
                "priority": "Urgent",
            },
            {"id": "essay", "title": "Essay", "estimated_minutes": 240, "due_at": "2026-03-03T16:00:00"},
        ],
    )
    _write(
        request,
        {
            "now": "2026-03-02T07:00:00",
            "config_path": "inputs/config.json",
            "course_table_path": "inputs/course_table.json",
            "tasks_path": "inputs/tasks.json",
        },
    )
    return request


def test_schedule_command_resolves_referenced_files(tmp_path: Path) -> None:
    request = _schedule_files(tmp_path)
    output = tmp_path / "schedule_output.json"

    code = run_schedule_command(str(request), str(output))
    payload = _read(output)

    assert code == 0
    assert payload["status"] == "ok"
    assert payload["kind"] == "schedule"
    assert payload["validation_report"]["errors"] == []
    result = payload["result"]
    assert result["horizon"] == {"start": "2026-03-02", "end": "2026-03-05"}
    assert result["effective_config"]["max_backtrack"] == 1
    assert sorted(result["placed_tasks"]) == ["essay", "ps1"]
    assert any(item["kind"] == "COURSE" and item["title"] == "Calculus" for item in result["schedule"])
    assert json.dumps(result["decision_trace"])
    assert 0.0 <= payload["metrics"]["quality_score"] <= 1.0


def test_schedule_command_via_main(tmp_path: Path) -> None:
    request = _schedule_files(tmp_path)
    output = tmp_path / "out.json"

    code = main(["--log-level", "ERROR", "schedule", "--request", str(request), "--output", str(output)])

    assert code == 0
    assert _read(output)["summary"]["unplaced_tasks"] == []


def test_schedule_command_reports_missing_reference(tmp_path: Path) -> None:
    request = tmp_path / "schedule_request.json"
    output = tmp_path / "out.json"
    _write(request, {"now": "2026-03-02T07:00:00", "tasks_path": "missing.json"})

    code = run_schedule_command(str(request), str(output))
    payload = _read(output)

    assert code == 2
    assert payload["status"] == "error"
    assert payload["error"]["code"] == "input_load_error"
    assert payload["error"]["details"][0]["code"] == "file_not_found"


def test_schedule_command_rejects_unknown_config_key(tmp_path: Path) -> None:
    request = tmp_path / "schedule_request.json"
    output = tmp_path / "out.json"
    _write(request, {"now": "2026-03-02T07:00:00", "config": {"sleep_hours": 8}, "tasks": []})

    code = run_schedule_command(str(request), str(output))
    payload = _read(output)

    assert code == 2
    assert payload["error"]["code"] == "validation_error"
    assert [e["code"] for e in payload["validation_report"]["errors"]] == ["INVALID_CONFIG_KEY"]


def test_unreadable_request_is_an_error_report(tmp_path: Path) -> None:
    request = tmp_path / "broken.json"
    output = tmp_path / "out.json"
    request.write_text("{not json", encoding="utf-8")

    code = run_schedule_command(str(request), str(output))

    assert code == 2
    assert _read(output)["error"]["code"] == "request_read_error"


def test_plans_command_builds_three_plans(tmp_path: Path) -> None:
    request = tmp_path / "plan_request.json"
    output = tmp_path / "plans_output.json"
    _write(tmp_path / "tasks.json", {"tasks": [{"title": "Read", "durationMin": 60, "importance": 2}]})
    _write(
        request,
        {
            "tasks_path": "tasks.json",
            "timetable_blocked": [{"start": "2026-03-02T08:00:00", "end": "2026-03-02T12:00:00"}],
            "range": {"start": "2026-03-02", "end": "2026-03-03"},
            "preferences": {"mode": "URGENT"},
        },
    )

    code = run_plans_command(str(request), str(output))
    payload = _read(output)

    assert code == 0
    assert payload["kind"] == "plans"
    assert payload["summary"] == {"plan_count": 3, "overload_tasks": []}
    plans = payload["result"]["plans"]
    assert [p["label"] for p in plans] == ["Balanced", "Urgent", "Relaxed"]
    assert payload["result"]["preference"]["mode"] == "URGENT"
    assert all(p["items"][0]["task_id"] == "task-0" for p in plans)
    assert payload["metrics"]["union_coverage"] == 1.0


def test_plans_command_requires_range(tmp_path: Path) -> None:
    request = tmp_path / "plan_request.json"
    output = tmp_path / "plans_output.json"
    _write(request, {"tasks": [{"title": "Read"}]})

    code = run_plans_command(str(request), str(output))
    payload = _read(output)

    assert code == 2
    assert payload["status"] == "error"
    assert [d["path"] for d in payload["error"]["details"]] == ["$.range"]
