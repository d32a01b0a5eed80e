"""Build CLI reports."""

from __future__ import annotations

from typing import Any

from studyplanner.validation import ValidationError, ValidationReport

REPORT_SCHEMA_VERSION = "1.0.0"


def build_error_report(errors: list[ValidationError], code: str = "validation_error") -> dict[str, Any]:
    """Return a JSON-serializable error report."""
    return {
        "status": "error",
        "error": {
            "code": code,
            "count": len(errors),
            "details": [err.as_dict() for err in errors],
        },
    }


def build_error_report_with_validation(
    errors: list[ValidationError],
    validation_report: ValidationReport,
    code: str = "validation_error",
) -> dict[str, Any]:
    payload = build_error_report(errors, code=code)
    payload["validation_report"] = validation_report.as_dict()
    return payload


def build_success_report(
    result: dict[str, Any],
    metrics: dict[str, Any],
    validation_report: ValidationReport,
    kind: str = "schedule",
) -> dict[str, Any]:
    """Return a JSON-serializable success report.

    ``kind`` is ``"schedule"`` or ``"plans"``; the summary block differs, the
    envelope does not.
    """
    if kind == "plans":
        summary = {
            "plan_count": len(result.get("plans", [])),
            "overload_tasks": list(result.get("overload_tasks", [])),
        }
    else:
        summary = {
            "horizon": result.get("horizon", {}),
            "scheduled_items": len(result.get("schedule", [])),
            "unplaced_tasks": [task.get("id") for task in result.get("unplaced_tasks", [])],
            "relaxation_applied": bool(result.get("relaxation_applied", False)),
        }
    return {
        "status": "ok",
        "schema_version": REPORT_SCHEMA_VERSION,
        "kind": kind,
        "summary": summary,
        "result": result,
        "metrics": metrics,
        "warnings": result.get("warnings", []),
        "validation_report": validation_report.as_dict(),
    }
