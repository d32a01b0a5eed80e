"""Deterministic task ordering before allocation."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Iterable

from .models import Task

PRIORITY_WEIGHTS: dict[str, int] = {
    "urgent": 4,
    "high": 3,
    "medium": 2,
    "low": 1,
}

IMPORTANCE_LABELS: dict[int, str] = {1: "Low", 2: "Medium", 3: "High", 4: "Urgent"}


class TaskOrder(str, Enum):
    """Tie-break on duration once priority and deadline are equal."""

    LONGEST_FIRST = "longest_first"
    SHORTEST_FIRST = "shortest_first"


def priority_weight(label: str | None) -> int:
    if not label:
        return 0
    return PRIORITY_WEIGHTS.get(label.strip().lower(), 0)


def importance_label(importance: int) -> str:
    """Map a 1..n importance score onto the priority labels (4 and above are Urgent)."""
    return IMPORTANCE_LABELS[min(4, max(1, importance))]


def task_weight(task: Task) -> int:
    """Raw importance when the task carries one, else the priority label weight."""
    if task.importance is not None:
        return task.importance
    return priority_weight(task.priority)


def task_sort_key(task: Task, policy: TaskOrder) -> tuple[int, datetime, int]:
    duration = -task.estimated_minutes if policy is TaskOrder.LONGEST_FIRST else task.estimated_minutes
    return (
        -task_weight(task),
        task.due_at if task.due_at is not None else datetime.max,
        duration,
    )


def order_tasks(tasks: Iterable[Task], policy: TaskOrder = TaskOrder.LONGEST_FIRST) -> list[Task]:
    """Priority weight desc, due asc (missing last), then duration per ``policy``; stable on full ties."""
    return sorted(tasks, key=lambda task: task_sort_key(task, policy))
