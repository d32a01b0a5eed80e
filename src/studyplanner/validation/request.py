"""Shape checks for schedule and plan requests."""

from __future__ import annotations

from typing import Any

from .errors import ValidationError

_PATH_FIELDS = ("config_path", "course_table_path", "tasks_path")


def _check_path_fields(payload: dict[str, Any], errors: list[ValidationError]) -> None:
    for name in _PATH_FIELDS:
        if name not in payload:
            continue
        value = payload[name]
        if not isinstance(value, str) or not value.strip():
            errors.append(
                ValidationError(
                    code="invalid_type",
                    message=f"Field must be a non-empty string path: {name}",
                    path=f"$.{name}",
                )
            )


def _check_optional_type(
    payload: dict[str, Any],
    name: str,
    expected: type | tuple[type, ...],
    label: str,
    errors: list[ValidationError],
) -> None:
    value = payload.get(name)
    if value is not None and not isinstance(value, expected):
        errors.append(
            ValidationError(
                code="invalid_type",
                message=f"Field {name} must be {label}",
                path=f"$.{name}",
            )
        )


def validate_schedule_request(payload: dict[str, Any]) -> list[ValidationError]:
    """Validate a single-plan schedule request."""
    errors: list[ValidationError] = []
    _check_path_fields(payload, errors)
    _check_optional_type(payload, "tasks", list, "a list", errors)
    _check_optional_type(payload, "course_table", dict, "an object", errors)
    _check_optional_type(payload, "config", dict, "an object", errors)
    _check_optional_type(payload, "now", str, "an ISO date-time string", errors)
    return errors


def validate_plan_request(payload: dict[str, Any]) -> list[ValidationError]:
    """Validate a multi-plan request; the date range is mandatory."""
    errors: list[ValidationError] = []
    _check_path_fields(payload, errors)
    _check_optional_type(payload, "tasks", list, "a list", errors)
    _check_optional_type(payload, "timetable_blocked", list, "a list", errors)
    _check_optional_type(payload, "preferences", dict, "an object", errors)
    _check_optional_type(payload, "config", dict, "an object", errors)

    date_range = payload.get("range")
    if not isinstance(date_range, dict):
        errors.append(
            ValidationError(
                code="missing_field",
                message="Missing required field: range",
                path="$.range",
            )
        )
        return errors

    for bound in ("start", "end"):
        value = date_range.get(bound)
        if not isinstance(value, str) or not value.strip():
            errors.append(
                ValidationError(
                    code="missing_field",
                    message=f"Missing required field: range.{bound}",
                    path=f"$.range.{bound}",
                )
            )
    return errors
