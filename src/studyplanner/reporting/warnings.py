"""Warnings derived from a finished scheduling result."""

from __future__ import annotations

from typing import Any


def build_schedule_warnings(result: dict[str, Any]) -> list[dict[str, Any]]:
    """Warnings for unplaced tasks, lifted daily limits and days over their limit."""
    warnings: list[dict[str, Any]] = []

    for task in result.get("unplaced_tasks", []):
        if not isinstance(task, dict):
            continue
        due = task.get("due_date_time") or ""
        warnings.append(
            {
                "code": "WARN_TASK_UNPLACED",
                "severity": "warning",
                "task_id": task.get("id", ""),
                "message": (
                    f"No free time of {task.get('estimated_minutes', 0)} minutes before {due}."
                    if due
                    else "No free time left inside the horizon."
                ),
            }
        )

    if result.get("relaxation_applied"):
        warnings.append(
            {
                "code": "WARN_RELAXATION_APPLIED",
                "severity": "info",
                "task_ids": list(result.get("relaxed_tasks", [])),
                "message": "Daily limits were lifted for some tasks to fit them before their deadline.",
            }
        )

    limits = result.get("daily_limits", {}) if isinstance(result.get("daily_limits"), dict) else {}
    load = result.get("daily_load", {}) if isinstance(result.get("daily_load"), dict) else {}
    for day in sorted(load):
        used = int(load.get(day, 0) or 0)
        limit = limits.get(day)
        if isinstance(limit, int) and used > limit:
            warnings.append(
                {
                    "code": "WARN_DAILY_LIMIT_EXCEEDED",
                    "severity": "warning",
                    "date": day,
                    "used_minutes": used,
                    "limit_minutes": limit,
                    "message": "Task load on this day is above its daily limit.",
                }
            )

    return warnings


def build_plan_warnings(result: dict[str, Any]) -> list[dict[str, Any]]:
    warnings: list[dict[str, Any]] = []
    if not result.get("free_slots"):
        warnings.append(
            {
                "code": "WARN_NO_FREE_SLOTS",
                "severity": "warning",
                "message": "The date range has no free time; check the range and blocked intervals.",
            }
        )
    overload = list(result.get("overload_tasks", []))
    if overload:
        warnings.append(
            {
                "code": "WARN_OVERLOAD_TASKS",
                "severity": "warning",
                "task_ids": overload,
                "message": "These tasks do not fit the balanced plan.",
            }
        )
    return warnings
