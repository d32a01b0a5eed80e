"""Scheduling metrics collector."""

from __future__ import annotations

from collections import defaultdict
from statistics import mean, pstdev
from typing import Any


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


def _quality_level(score: float) -> str:
    if score >= 0.75:
        return "high"
    if score >= 0.5:
        return "medium"
    return "low"


def collect_metrics(result: dict[str, Any]) -> dict[str, Any]:
    """Summarize a single-plan result; ratios are clamped to [0,1]."""
    items = [item for item in result.get("schedule", []) if isinstance(item, dict)]
    task_items = [item for item in items if item.get("kind") == "TASK"]
    free_slots = [slot for slot in result.get("free_slots", []) if isinstance(slot, dict)]
    limits = result.get("daily_limits", {}) if isinstance(result.get("daily_limits"), dict) else {}
    load = result.get("daily_load", {}) if isinstance(result.get("daily_load"), dict) else {}

    pending_count = int(result.get("pending_task_count", 0) or 0)
    placed_count = len(result.get("placed_tasks", []))
    unplaced_count = len(result.get("unplaced_tasks", []))
    placement_ratio = _clamp01(placed_count / pending_count) if pending_count else 1.0

    scheduled_by_day: dict[str, int] = defaultdict(int)
    course_minutes = 0
    for item in items:
        minutes = max(0, int(item.get("minutes", 0) or 0))
        if item.get("kind") == "TASK":
            scheduled_by_day[str(item.get("date", ""))] += minutes
        else:
            course_minutes += minutes
    scheduled_minutes = sum(scheduled_by_day.values())

    free_minutes = sum(max(0, int(slot.get("minutes", 0) or 0)) for slot in free_slots)
    utilization = _clamp01(scheduled_minutes / free_minutes) if free_minutes else 0.0

    daily_minutes = [int(load.get(day, 0) or 0) for day in limits] if limits else list(scheduled_by_day.values())
    avg_daily = mean(daily_minutes) if daily_minutes else 0.0
    cv = (pstdev(daily_minutes) / max(1.0, avg_daily)) if daily_minutes else 0.0
    balance_score = _clamp01(1.0 - min(1.0, cv))

    days_over_limit = sorted(
        day for day, used in load.items() if isinstance(limits.get(day), int) and int(used) > limits[day]
    )

    quality_score = _clamp01(0.7 * placement_ratio + 0.2 * balance_score + 0.1 * (0.0 if days_over_limit else 1.0))

    return {
        "placement_ratio": placement_ratio,
        "placed_task_count": placed_count,
        "unplaced_task_count": unplaced_count,
        "scheduled_task_minutes": scheduled_minutes,
        "scheduled_item_count": len(task_items),
        "course_minutes": course_minutes,
        "split_task_count": len(result.get("split_tasks", [])),
        "relaxed_task_count": len(result.get("relaxed_tasks", [])),
        "free_minutes": free_minutes,
        "utilization": utilization,
        "cv": _clamp01(cv),
        "balance_score": balance_score,
        "days_over_limit": days_over_limit,
        "quality_score": quality_score,
        "quality_level": _quality_level(quality_score),
    }


def collect_plan_metrics(result: dict[str, Any]) -> dict[str, Any]:
    """Per-plan placement counts and coverage for a multi-plan result."""
    task_ids = [str(tid) for tid in result.get("task_ids", [])]
    total = len(task_ids)
    per_plan: list[dict[str, Any]] = []
    union: set[str] = set()
    for plan in result.get("plans", []):
        if not isinstance(plan, dict):
            continue
        placed = {str(item.get("task_id")) for item in plan.get("items", []) if isinstance(item, dict)}
        union |= placed
        per_plan.append(
            {
                "plan_id": plan.get("plan_id", ""),
                "mode": plan.get("mode", ""),
                "placed_task_count": len(placed),
                "coverage": _clamp01(len(placed) / total) if total else 1.0,
            }
        )
    return {
        "task_count": total,
        "plans": per_plan,
        "union_coverage": _clamp01(len(union) / total) if total else 1.0,
        "overload_task_count": len(result.get("overload_tasks", [])),
    }
