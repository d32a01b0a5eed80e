"""Scheduler tunables and their dictionary form."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from datetime import datetime, time
from typing import Any, Mapping


def parse_clock(raw: Any) -> time | None:
    """Parse ``HH:MM`` (seconds tolerated); ``None`` when unparseable."""
    if isinstance(raw, time):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(raw.strip(), fmt).time()
        except ValueError:
            continue
    return None


def format_clock(value: time) -> str:
    return value.strftime("%H:%M")


@dataclass(frozen=True, slots=True)
class SchedulerSettings:
    # Single-plan day window and horizon.
    day_start: time = time(8, 0)
    day_end: time = time(23, 0)
    horizon_days: int = 3

    # Placement.
    task_buffer_minutes: int = 15
    split_enabled: bool = True
    min_split_minutes: int = 45
    max_backtrack: int = 2
    default_task_minutes: int = 45

    # Daily capacity.
    daily_task_limit_minutes: int = 240
    min_daily_task_limit_minutes: int = 120
    weekend_bonus_minutes: int = 120
    light_day_bonus_minutes: int = 60
    light_day_course_threshold_minutes: int = 60

    # Bonus scorer.
    preferred_due_offset_hours: int = 6
    preferred_slot_bonus: int = 600
    preferred_due_bonus: int = 250
    cutoff_closeness_bonus: int = 300
    daytime_bonus: int = 200
    daytime_start: time = time(9, 0)
    daytime_end: time = time(18, 0)
    daytime_capacity_threshold_minutes: int = 180
    capacity_score_divisor: int = 5
    preferred_window_max_node: int = 10

    # Multi-plan builder.
    plan_day_start: time = time(8, 0)
    plan_day_end: time = time(23, 30)
    plan_default_task_minutes: int = 60
    plan_min_task_minutes: int = 15

    def as_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        for key, value in payload.items():
            if isinstance(value, time):
                payload[key] = format_clock(value)
        return payload

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> SchedulerSettings:
        """Build settings from a resolved config dict; unknown keys are ignored."""
        defaults = cls()
        overrides: dict[str, Any] = {}
        for item in fields(cls):
            if item.name not in config:
                continue
            current = getattr(defaults, item.name)
            raw = config[item.name]
            if isinstance(current, time):
                parsed = parse_clock(raw)
                if parsed is not None:
                    overrides[item.name] = parsed
            elif isinstance(current, bool):
                overrides[item.name] = bool(raw)
            elif isinstance(raw, (int, float)) and not isinstance(raw, bool):
                overrides[item.name] = int(raw)
        return replace(defaults, **overrides)


DEFAULT_SCHEDULER_CONFIG: dict[str, Any] = SchedulerSettings().as_dict()
