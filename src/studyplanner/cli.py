"""CLI entrypoint for the scheduler."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any

from studyplanner.engine import run_plan_builder, run_scheduler
from studyplanner.io import read_json, read_json_any, write_json
from studyplanner.logger import parse_level, setup_logger
from studyplanner.metrics import collect_metrics, collect_plan_metrics
from studyplanner.normalization import (
    build_settings,
    normalize_plan_request,
    normalize_schedule_request,
    resolve_effective_config,
)
from studyplanner.reporting import (
    build_error_report,
    build_error_report_with_validation,
    build_success_report,
)
from studyplanner.validation import (
    ValidationError,
    ValidationReport,
    validate_course_table,
    validate_plan_request,
    validate_schedule_request,
)

logger = logging.getLogger(__name__)

_REFERENCED_INPUTS = {
    "config_path": "config",
    "course_table_path": "course_table",
    "tasks_path": "tasks",
}


def _resolve_input_path(request_file: Path, value: str) -> Path:
    path = Path(value)
    if path.is_absolute():
        return path
    return (request_file.parent / path).resolve()


def _load_referenced_inputs(request_file: Path, request: dict[str, Any]) -> tuple[dict[str, Any], list[ValidationError]]:
    """Inline every ``*_path`` reference; inline values in the request win."""
    loaded = dict(request)
    errors: list[ValidationError] = []

    for path_field, target_field in _REFERENCED_INPUTS.items():
        if path_field not in request or loaded.get(target_field) is not None:
            continue
        resolved = _resolve_input_path(request_file, request[path_field])
        try:
            payload = read_json_any(resolved)
        except FileNotFoundError:
            errors.append(
                ValidationError(
                    code="file_not_found",
                    message=f"Referenced file not found: {resolved}",
                    path=f"$.{path_field}",
                )
            )
            continue
        except ValueError as exc:
            errors.append(ValidationError(code="invalid_json", message=str(exc), path=f"$.{path_field}"))
            continue

        # Task files may hold a bare list or {"tasks": [...]}.
        if target_field == "tasks" and isinstance(payload, dict):
            payload = payload.get("tasks")
        expected = list if target_field == "tasks" else dict
        if not isinstance(payload, expected):
            errors.append(
                ValidationError(
                    code="invalid_type",
                    message=f"Referenced file has the wrong root type for {target_field}: {resolved}",
                    path=f"$.{path_field}",
                )
            )
            continue
        loaded[target_field] = payload

    return loaded, errors


def _read_request(request_path: str, output_path: str) -> dict[str, Any] | None:
    try:
        return read_json(request_path)
    except (OSError, ValueError) as exc:
        logger.error("Cannot read request %s: %s", request_path, exc)
        write_json(
            output_path,
            build_error_report(
                [ValidationError(code="invalid_request", message=str(exc), path="$.request")],
                code="request_read_error",
            ),
        )
        return None


def _prepare(
    request_path: str,
    output_path: str,
    request_payload: dict[str, Any],
    shape_errors: list[ValidationError],
    validation_report: ValidationReport,
) -> dict[str, Any] | None:
    if shape_errors:
        write_json(output_path, build_error_report(shape_errors))
        return None

    loaded, load_errors = _load_referenced_inputs(Path(request_path), request_payload)
    if load_errors:
        write_json(
            output_path,
            build_error_report_with_validation(load_errors, validation_report=validation_report, code="input_load_error"),
        )
        return None

    loaded["effective_config"] = resolve_effective_config(loaded.get("config"), validation_report)
    return loaded


def _fail_on_validation_errors(output_path: str, validation_report: ValidationReport) -> bool:
    if not validation_report.errors:
        return False
    write_json(
        output_path,
        build_error_report_with_validation(
            validation_report.as_errors(),
            validation_report=validation_report,
            code="validation_error",
        ),
    )
    return True


def run_schedule_command(request_path: str, output_path: str) -> int:
    validation_report = ValidationReport()
    request_payload = _read_request(request_path, output_path)
    if request_payload is None:
        return 2

    loaded = _prepare(
        request_path, output_path, request_payload, validate_schedule_request(request_payload), validation_report
    )
    if loaded is None:
        return 2

    validation_report.extend(validate_course_table(loaded.get("course_table") or loaded.get("courseTable")))
    if _fail_on_validation_errors(output_path, validation_report):
        return 2

    settings = build_settings(loaded["effective_config"])
    request = normalize_schedule_request(loaded, settings, validation_report)
    result = run_scheduler(request, settings)
    metrics = collect_metrics(result)
    write_json(output_path, build_success_report(result, metrics, validation_report, kind="schedule"))
    return 0


def run_plans_command(request_path: str, output_path: str) -> int:
    validation_report = ValidationReport()
    request_payload = _read_request(request_path, output_path)
    if request_payload is None:
        return 2

    loaded = _prepare(
        request_path, output_path, request_payload, validate_plan_request(request_payload), validation_report
    )
    if loaded is None:
        return 2
    if _fail_on_validation_errors(output_path, validation_report):
        return 2

    settings = build_settings(loaded["effective_config"])
    request = normalize_plan_request(loaded, settings, validation_report)
    result = run_plan_builder(request, settings)
    metrics = collect_plan_metrics(result)
    write_json(output_path, build_success_report(result, metrics, validation_report, kind="plans"))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="studyplanner", description="Study time scheduler CLI")
    parser.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--log-file", default=None, help="Optional rotating log file")
    subparsers = parser.add_subparsers(dest="command", required=True)

    schedule_parser = subparsers.add_parser("schedule", help="Place tasks around a course timetable")
    schedule_parser.add_argument("--request", required=True, help="Path to schedule_request.json")
    schedule_parser.add_argument("--output", required=True, help="Path to schedule_output.json")

    plans_parser = subparsers.add_parser("plans", help="Build Balanced/Urgent/Relaxed plans for a date range")
    plans_parser.add_argument("--request", required=True, help="Path to plan_request.json")
    plans_parser.add_argument("--output", required=True, help="Path to plans_output.json")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logger(level=parse_level(args.log_level), log_file=args.log_file)

    if args.command == "schedule":
        return run_schedule_command(args.request, args.output)
    if args.command == "plans":
        return run_plans_command(args.request, args.output)

    parser.error("Unknown command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
