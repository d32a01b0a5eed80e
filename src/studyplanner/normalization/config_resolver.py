"""Resolve the effective scheduler configuration from user overrides."""

from __future__ import annotations

from typing import Any

from studyplanner.engine.settings import DEFAULT_SCHEDULER_CONFIG, SchedulerSettings, parse_clock
from studyplanner.validation import ValidationReport

_CLOCK_WINDOWS = (
    ("day_start", "day_end"),
    ("daytime_start", "daytime_end"),
    ("plan_day_start", "plan_day_end"),
)

# Keys whose value must stay >= 1 for the engine to make progress.
_POSITIVE_KEYS = {"horizon_days", "min_split_minutes", "capacity_score_divisor", "plan_min_task_minutes"}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def resolve_effective_config(source: Any, validation_report: ValidationReport) -> dict[str, Any]:
    """Merge ``source`` over ``DEFAULT_SCHEDULER_CONFIG``.

    Unknown keys and wrongly typed values are errors; out-of-range numbers are
    clamped and inverted clock windows fall back to their defaults, both
    reported as infos.
    """
    config = dict(DEFAULT_SCHEDULER_CONFIG)
    if not isinstance(source, dict):
        return config

    for key, value in source.items():
        path = f"$.config.{key}"
        if key == "schema_version":
            continue
        if key not in DEFAULT_SCHEDULER_CONFIG:
            validation_report.add_error(
                code="INVALID_CONFIG_KEY",
                message=f"Config key {key!r} is not recognised",
                field_path=path,
                suggested_fix=f"Use one of: {', '.join(sorted(DEFAULT_SCHEDULER_CONFIG))}",
            )
            continue

        default = DEFAULT_SCHEDULER_CONFIG[key]
        if isinstance(default, bool):
            if not isinstance(value, bool):
                validation_report.add_error(
                    code="INVALID_CONFIG_VALUE",
                    message=f"Config key {key!r} must be a boolean",
                    field_path=path,
                )
                continue
            config[key] = value
        elif isinstance(default, str):
            if parse_clock(value) is None:
                validation_report.add_error(
                    code="INVALID_CONFIG_VALUE",
                    message=f"Config key {key!r} must be a HH:MM clock time",
                    field_path=path,
                )
                continue
            config[key] = value
        else:
            if not _is_number(value):
                validation_report.add_error(
                    code="INVALID_CONFIG_VALUE",
                    message=f"Config key {key!r} must be a number",
                    field_path=path,
                )
                continue
            floor = 1 if key in _POSITIVE_KEYS else 0
            clamped = max(floor, int(value))
            if clamped != value:
                validation_report.add_info(
                    code="INFO_CLAMP_APPLIED",
                    message=f"{key} was clamped to {clamped}",
                    field_path=path,
                    extra={"applied_value": clamped},
                )
            config[key] = clamped

    for start_key, end_key in _CLOCK_WINDOWS:
        start = parse_clock(config[start_key])
        end = parse_clock(config[end_key])
        if start is not None and end is not None and end <= start:
            config[start_key] = DEFAULT_SCHEDULER_CONFIG[start_key]
            config[end_key] = DEFAULT_SCHEDULER_CONFIG[end_key]
            validation_report.add_info(
                code="INFO_DAY_WINDOW_DEFAULTED",
                message=f"{end_key} must be after {start_key}; defaults restored",
                field_path=f"$.config.{end_key}",
                extra={"applied_value": [config[start_key], config[end_key]]},
            )

    return config


def build_settings(config: dict[str, Any]) -> SchedulerSettings:
    return SchedulerSettings.from_mapping(config)
